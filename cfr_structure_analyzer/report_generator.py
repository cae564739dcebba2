"""
Report Generator for exporting structural analysis results.

This module writes word count, agency statistics and multi-title summary
results as JSON, CSV and human-readable text reports.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union
from datetime import datetime

from .error_handler import ReportGenerationError
from .models import (
    AgencyStatsResult,
    ElementWordCount,
    WordCountResult,
    WordCountSummary,
)


logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = ('json', 'csv', 'summary')

ELEMENT_FIELDS = ['category', 'identifier', 'type', 'label', 'word_count', 'character_count']
AGENCY_FIELDS = [
    'rank', 'agency_name', 'agency_slug', 'short_name',
    'title_count', 'chapter_count', 'part_count', 'titles'
]
DISTRIBUTION_FIELDS = ['title_number', 'title_name', 'agency_count', 'agencies']
TITLE_SUMMARY_FIELDS = ['title', 'title_name', 'total_words', 'total_characters', 'total_elements']


class ReportGenerator:
    """Generates reports from analysis results in various formats."""

    def __init__(self, output_directory: Union[str, Path] = "./results"):
        """
        Initialize the report generator.

        Args:
            output_directory: Directory to save generated reports
        """
        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Report generator initialized with output directory: {self.output_directory}")

    def get_supported_formats(self) -> List[str]:
        return list(SUPPORTED_FORMATS)

    def _check_formats(self, formats: Optional[Sequence[str]]) -> List[str]:
        formats = list(formats) if formats else ['json']
        unsupported = [f for f in formats if f not in SUPPORTED_FORMATS]
        if unsupported:
            raise ReportGenerationError(
                f"Unsupported report format(s): {', '.join(unsupported)}. "
                f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
            )
        return formats

    def _default_base_filename(self, prefix: str) -> str:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix}_{timestamp}"

    def _write(self, filename: str, write: Callable[[Any], None], newline: Optional[str] = None) -> str:
        filepath = self.output_directory / filename
        logger.info(f"Generating report: {filepath}")

        try:
            with open(filepath, 'w', encoding='utf-8', newline=newline) as f:
                write(f)
        except OSError as e:
            logger.error(f"Failed to write report {filepath}: {e}")
            raise ReportGenerationError(f"Failed to write report to {filepath}: {e}", cause=e)

        logger.info(f"Report generated successfully: {filepath}")
        return str(filepath)

    def _write_json(self, filename: str, report_type: str, payload: Dict[str, Any]) -> str:
        report_data = {
            'metadata': {
                'generated_at': datetime.now().isoformat(),
                'report_type': report_type
            }
        }
        report_data.update(payload)
        return self._write(
            filename,
            lambda f: json.dump(report_data, f, indent=2, ensure_ascii=False, default=str)
        )

    def _write_csv(self, filename: str, fieldnames: List[str], rows: Iterable[Dict[str, Any]]) -> str:
        def write(f):
            writer = csv.DictWriter(f, fieldnames=fieldnames, quoting=csv.QUOTE_MINIMAL)
            writer.writeheader()
            for row in rows:
                writer.writerow(row)

        return self._write(filename, write, newline='')

    def _write_text(self, filename: str, content: str) -> str:
        return self._write(filename, lambda f: f.write(content))

    def _escape_csv_value(self, value: Optional[str]) -> str:
        """
        Escape CSV values to handle special characters.

        Args:
            value: String value to escape

        Returns:
            Single-line string safe for CSV
        """
        if not value:
            return ""

        # Remove any null bytes, then collapse line breaks and repeated spaces
        cleaned = str(value).replace('\x00', '')
        return ' '.join(cleaned.split())

    # Word count

    def _element_row(self, category: str, element: ElementWordCount) -> Dict[str, Any]:
        return {
            'category': category,
            'identifier': element.identifier,
            'type': element.type,
            'label': self._escape_csv_value(element.label),
            'word_count': element.word_count,
            'character_count': element.character_count
        }

    def _word_count_rows(self, result: WordCountResult) -> List[Dict[str, Any]]:
        rows = [self._element_row('top_element', e) for e in result.top_elements]
        rows.extend(self._element_row('section', s) for s in result.sections)
        return rows

    def _word_count_summary_content(self, result: WordCountResult) -> str:
        heading = "CFR STRUCTURE ANALYZER - WORD COUNT REPORT"
        lines = ["=" * 80, heading, "=" * 80]
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        if result.title is not None and result.title_name:
            lines.append(f"Title {result.title}: {result.title_name}")
        elif result.title is not None:
            lines.append(f"Title {result.title}")
        lines.append("")

        lines.append("OVERALL STATISTICS")
        lines.append("-" * 40)
        lines.append(f"Total words: {result.total_words:,}")
        lines.append(f"Total characters: {result.total_characters:,}")
        lines.append(f"Total elements: {result.total_elements:,}")
        lines.append(f"Sections: {len(result.sections):,}")
        lines.append("")

        if result.by_hierarchy:
            lines.append("WORDS BY HIERARCHY LEVEL")
            lines.append("-" * 40)
            for level in result.by_hierarchy:
                lines.append(
                    f"{level.type:<12} {level.count:>8,} elements "
                    f"{level.total_words:>12,} words ({level.average_words:.1f} avg)"
                )
            lines.append("")

        if result.top_elements:
            lines.append(f"TOP {len(result.top_elements)} ELEMENTS BY WORD COUNT")
            lines.append("-" * 40)
            for i, element in enumerate(result.top_elements, 1):
                name = element.label or element.identifier
                lines.append(f"{i:2d}. [{element.type}] {name}: {element.word_count:,} words")
            lines.append("")

        lines.extend(["=" * 80, "End of Report", "=" * 80])
        return "\n".join(lines)

    def generate_word_count_reports(self, result: WordCountResult,
                                    formats: Optional[Sequence[str]] = None,
                                    base_filename: Optional[str] = None) -> Dict[str, str]:
        """
        Generate reports for a single title's word count analysis.

        Args:
            result: Word count result to export
            formats: Report formats to write (default: json)
            base_filename: Base filename without extension (default: timestamped)

        Returns:
            Dictionary mapping report format to file path

        Raises:
            ReportGenerationError: If a format is unsupported or a file cannot be written
        """
        formats = self._check_formats(formats)
        if base_filename is None:
            suffix = f"title_{result.title}" if result.title is not None else "structure"
            base_filename = self._default_base_filename(f"cfr_word_count_{suffix}")

        reports = {}
        if 'json' in formats:
            reports['json'] = self._write_json(f"{base_filename}.json", 'word_count', result.to_dict())
        if 'csv' in formats:
            reports['csv'] = self._write_csv(f"{base_filename}.csv", ELEMENT_FIELDS,
                                             self._word_count_rows(result))
        if 'summary' in formats:
            reports['summary'] = self._write_text(f"{base_filename}_summary.txt",
                                                  self._word_count_summary_content(result))

        logger.info(f"Word count reports generated: {len(reports)} files")
        return reports

    # Agency statistics

    def _agency_rows(self, result: AgencyStatsResult) -> List[Dict[str, Any]]:
        return [
            {
                'rank': rank,
                'agency_name': self._escape_csv_value(stat.name),
                'agency_slug': stat.slug,
                'short_name': self._escape_csv_value(stat.short_name),
                'title_count': stat.title_count,
                'chapter_count': stat.chapter_count,
                'part_count': stat.part_count,
                'titles': ';'.join(str(t) for t in stat.titles)
            }
            for rank, stat in enumerate(result.top_agencies, 1)
        ]

    def _distribution_rows(self, result: AgencyStatsResult) -> List[Dict[str, Any]]:
        return [
            {
                'title_number': entry.title_number,
                'title_name': self._escape_csv_value(entry.title_name),
                'agency_count': entry.agency_count,
                'agencies': ';'.join(entry.agencies)
            }
            for entry in result.title_distribution
        ]

    def _agency_summary_content(self, result: AgencyStatsResult) -> str:
        lines = ["=" * 80, "CFR STRUCTURE ANALYZER - AGENCY STATISTICS REPORT", "=" * 80]
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        lines.append("OVERALL STATISTICS")
        lines.append("-" * 40)
        lines.append(f"Top-level agencies: {result.total_agencies}")
        lines.append(f"Agencies with CFR references: {result.agencies_with_references}")
        lines.append(f"Total CFR titles: {result.total_titles}")
        lines.append(f"Average titles per agency: {result.average_titles_per_agency:.2f}")
        lines.append("")

        if result.top_agencies:
            lines.append("TOP AGENCIES BY TITLE COUNT")
            lines.append("-" * 40)
            for i, stat in enumerate(result.top_agencies, 1):
                lines.append(
                    f"{i:2d}. {stat.name}: {stat.title_count} titles, "
                    f"{stat.chapter_count} chapters, {stat.part_count} parts"
                )
            lines.append("")

        if result.title_distribution:
            lines.append("AGENCIES PER TITLE")
            lines.append("-" * 40)
            for entry in result.title_distribution:
                lines.append(f"Title {entry.title_number:>2} ({entry.title_name}): {entry.agency_count} agencies")
            lines.append("")

        lines.extend(["=" * 80, "End of Report", "=" * 80])
        return "\n".join(lines)

    def generate_agency_stats_reports(self, result: AgencyStatsResult,
                                      formats: Optional[Sequence[str]] = None,
                                      base_filename: Optional[str] = None) -> Dict[str, str]:
        """
        Generate reports for agency statistics.

        The CSV format writes two files: agencies to '<base>.csv' (key 'csv')
        and the title distribution to '<base>_titles.csv' (key 'csv_titles').

        Args:
            result: Agency statistics to export
            formats: Report formats to write (default: json)
            base_filename: Base filename without extension (default: timestamped)

        Returns:
            Dictionary mapping report format to file path
        """
        formats = self._check_formats(formats)
        base_filename = base_filename or self._default_base_filename("cfr_agency_stats")

        reports = {}
        if 'json' in formats:
            reports['json'] = self._write_json(f"{base_filename}.json", 'agency_stats', result.to_dict())
        if 'csv' in formats:
            reports['csv'] = self._write_csv(f"{base_filename}.csv", AGENCY_FIELDS, self._agency_rows(result))
            reports['csv_titles'] = self._write_csv(f"{base_filename}_titles.csv", DISTRIBUTION_FIELDS,
                                                    self._distribution_rows(result))
        if 'summary' in formats:
            reports['summary'] = self._write_text(f"{base_filename}_summary.txt",
                                                  self._agency_summary_content(result))

        logger.info(f"Agency statistics reports generated: {len(reports)} files")
        return reports

    # Multi-title summary

    def _title_rows(self, results: Sequence[WordCountResult]) -> List[Dict[str, Any]]:
        return [
            {
                'title': result.title if result.title is not None else '',
                'title_name': self._escape_csv_value(result.title_name),
                'total_words': result.total_words,
                'total_characters': result.total_characters,
                'total_elements': result.total_elements
            }
            for result in results
        ]

    def _title_summary_content(self, summary: WordCountSummary,
                               results: Sequence[WordCountResult]) -> str:
        def describe(result: WordCountResult) -> str:
            name = f"Title {result.title}" if result.title is not None else "Untitled"
            return f"{name} ({result.total_words:,} words)"

        lines = ["=" * 80, "CFR STRUCTURE ANALYZER - TITLE SUMMARY REPORT", "=" * 80]
        lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        lines.append("")

        lines.append("OVERALL STATISTICS")
        lines.append("-" * 40)
        lines.append(f"Titles analyzed: {summary.title_count}")
        lines.append(f"Total words: {summary.total_words:,}")
        lines.append(f"Total elements: {summary.total_elements:,}")
        lines.append(f"Average words per title: {summary.average_words_per_title:,.1f}")
        lines.append(f"Longest title: {describe(summary.longest_title)}")
        lines.append(f"Shortest title: {describe(summary.shortest_title)}")
        lines.append("")

        if results:
            lines.append("TITLES")
            lines.append("-" * 40)
            for result in results:
                lines.append(f"{describe(result)}: {result.total_elements:,} elements")
            lines.append("")

        lines.extend(["=" * 80, "End of Report", "=" * 80])
        return "\n".join(lines)

    def generate_summary_reports(self, summary: WordCountSummary,
                                 results: Sequence[WordCountResult] = (),
                                 formats: Optional[Sequence[str]] = None,
                                 base_filename: Optional[str] = None) -> Dict[str, str]:
        """
        Generate reports for a summary over several titles.

        Args:
            summary: Summary to export
            results: Per-title results the summary was built from
            formats: Report formats to write (default: json)
            base_filename: Base filename without extension (default: timestamped)

        Returns:
            Dictionary mapping report format to file path
        """
        formats = self._check_formats(formats)
        base_filename = base_filename or self._default_base_filename("cfr_title_summary")

        reports = {}
        if 'json' in formats:
            payload = summary.to_dict()
            payload['titles'] = [
                {
                    'title': result.title,
                    'titleName': result.title_name,
                    'totalWords': result.total_words,
                    'totalElements': result.total_elements
                }
                for result in results
            ]
            reports['json'] = self._write_json(f"{base_filename}.json", 'title_summary', payload)
        if 'csv' in formats:
            reports['csv'] = self._write_csv(f"{base_filename}.csv", TITLE_SUMMARY_FIELDS,
                                             self._title_rows(results))
        if 'summary' in formats:
            reports['summary'] = self._write_text(f"{base_filename}_summary.txt",
                                                  self._title_summary_content(summary, results))

        logger.info(f"Title summary reports generated: {len(reports)} files")
        return reports
