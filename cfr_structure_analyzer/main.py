#!/usr/bin/env python3
"""
Command-line interface for the CFR Structure Analyzer.

Downloads eCFR fixtures and runs the structural analyses over them.
"""

import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .agency_stats import analyze_forest, stat_by_slug, stats_referencing_title
from .api_client import ECFRClient
from .config import Config
from .data_loader import FixtureLoader
from .downloader import FixtureDownloader
from .error_handler import (
    FixtureNotFoundError,
    StructureAnalyzerError,
    log_execution_time,
)
from .fixture_store import FixtureStore
from .report_generator import SUPPORTED_FORMATS, ReportGenerator
from .summary import summarize
from .word_count import analyze_tree


logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_NOT_FOUND = 3
EXIT_INTERRUPTED = 130


def parse_title_number(value: str) -> int:
    """
    Argparse type for CFR title numbers.

    Raises:
        argparse.ArgumentTypeError: If value is not an integer in the valid range
    """
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid title number: {value!r}")

    if not Config.MIN_TITLE_NUMBER <= number <= Config.MAX_TITLE_NUMBER:
        raise argparse.ArgumentTypeError(
            f"title number must be between {Config.MIN_TITLE_NUMBER} and "
            f"{Config.MAX_TITLE_NUMBER}, got {number}"
        )
    return number


def setup_argument_parser() -> argparse.ArgumentParser:
    """Set up command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog='cfr-structure-analyzer',
        description="CFR Structure Analyzer - Structural analysis of eCFR titles and agencies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s download-agencies
  %(prog)s download-title 17 --date 2024-01-01
  %(prog)s word-count 17 --format json csv --output-dir ./results
  %(prog)s agency-stats
  %(prog)s agency department-of-energy
  %(prog)s title 17
  %(prog)s summary 1 17 40
        """
    )

    parser.add_argument(
        '--fixtures-dir',
        default=Config.FIXTURES_DIRECTORY,
        help=f'Fixtures directory (default: {Config.FIXTURES_DIRECTORY})'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Suppress output except errors'
    )
    parser.add_argument(
        '--log-file',
        help=f'Log file path (default: {Config.LOG_FILE})'
    )

    # Shared by the analysis commands
    output_options = argparse.ArgumentParser(add_help=False)
    output_options.add_argument(
        '--format', '-f',
        nargs='+',
        choices=SUPPORTED_FORMATS,
        default=None,
        help='Report formats to write with --output-dir (default: json)'
    )
    output_options.add_argument(
        '--output-dir', '-o',
        help='Directory for report files (default: print JSON to stdout)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Download commands
    subparsers.add_parser('download-agencies', help='Download the agencies fixture')
    subparsers.add_parser('download-titles', help='Download the titles summary fixture')

    title_parser = subparsers.add_parser('download-title', help='Download structure, XML and versions of a title')
    title_parser.add_argument('title', type=parse_title_number, help='CFR title number (1-50)')
    title_parser.add_argument('--date', help='Data date in YYYY-MM-DD format (default: today)')
    title_parser.add_argument(
        '--force',
        action='store_true',
        help='Re-download even if the title already exists'
    )

    # Analysis commands
    word_count_parser = subparsers.add_parser(
        'word-count', parents=[output_options], help='Word count analysis of a downloaded title'
    )
    word_count_parser.add_argument('title', type=parse_title_number, help='CFR title number (1-50)')

    agency_stats_parser = subparsers.add_parser(
        'agency-stats', parents=[output_options], help='Agency CFR reference statistics'
    )
    agency_stats_parser.add_argument(
        '--no-registry',
        action='store_true',
        help='Do not use the titles summary for title names and the title total'
    )

    summary_parser = subparsers.add_parser(
        'summary', parents=[output_options], help='Summarize word counts across titles'
    )
    summary_parser.add_argument(
        'titles',
        nargs='*',
        type=parse_title_number,
        help='CFR title numbers (default: all downloaded titles)'
    )

    # Lookup commands
    subparsers.add_parser('titles', help='Show the downloaded titles summary')

    show_title_parser = subparsers.add_parser('title', help='Show the downloaded structure of a title')
    show_title_parser.add_argument('title', type=parse_title_number, help='CFR title number (1-50)')

    subparsers.add_parser('agencies', help='Show the downloaded agencies')

    agency_parser = subparsers.add_parser('agency', help='Show statistics for one agency')
    agency_parser.add_argument('slug', help='Agency slug (e.g., department-of-energy)')

    title_agencies_parser = subparsers.add_parser('title-agencies', help='List agencies referencing a title')
    title_agencies_parser.add_argument('title', type=parse_title_number, help='CFR title number (1-50)')

    subparsers.add_parser('dashboard', help='Launch the Streamlit dashboard')

    return parser


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def print_reports(reports: Dict[str, str]) -> None:
    print("Reports:")
    for format_name, filepath in reports.items():
        print(f"  {format_name.upper()}: {filepath}")


def create_downloader(args: argparse.Namespace, client: ECFRClient) -> FixtureDownloader:
    return FixtureDownloader(client, FixtureStore(args.fixtures_dir))


def cmd_download_agencies(args: argparse.Namespace) -> int:
    """Download the agencies fixture."""
    with ECFRClient() as client:
        record = create_downloader(args, client).download_agencies()
    print(f"Agencies downloaded ({record.status.value})")
    return EXIT_SUCCESS


def cmd_download_titles(args: argparse.Namespace) -> int:
    """Download the titles summary fixture."""
    with ECFRClient() as client:
        record = create_downloader(args, client).download_titles_summary()
    print(f"Titles summary downloaded ({record.status.value})")
    return EXIT_SUCCESS


def cmd_download_title(args: argparse.Namespace) -> int:
    """Download one title."""
    with ECFRClient() as client:
        record = create_downloader(args, client).download_title(args.title, date=args.date, force=args.force)

    if record is None:
        print(f"Title {args.title} already exists. Use --force to re-download.")
        return EXIT_SUCCESS

    print(f"Title {args.title} downloaded ({record.status.value})")
    if record.error:
        print(f"  Errors: {record.error}")
    return EXIT_SUCCESS


@log_execution_time
def cmd_word_count(args: argparse.Namespace) -> int:
    """Run the word count analysis for one title."""
    loader = FixtureLoader(args.fixtures_dir)
    structure = loader.load_title_structure(args.title)
    result = analyze_tree(structure)

    title_name = loader.title_name(args.title)
    if title_name:
        result = result.with_title_name(title_name)

    if not args.output_dir:
        print_json(result.to_dict())
        return EXIT_SUCCESS

    reports = ReportGenerator(args.output_dir).generate_word_count_reports(
        result, formats=args.format, base_filename=f"cfr_word_count_title_{args.title}"
    )
    print(f"Title {args.title}: {result.total_words:,} words in {result.total_elements:,} elements")
    print_reports(reports)
    return EXIT_SUCCESS


@log_execution_time
def cmd_agency_stats(args: argparse.Namespace) -> int:
    """Run the agency statistics analysis."""
    loader = FixtureLoader(args.fixtures_dir)
    agencies = loader.load_agencies()

    registry = None
    if not args.no_registry:
        try:
            registry = loader.load_titles_summary()
        except FixtureNotFoundError:
            logger.warning("Titles summary not downloaded, using default title names")

    result = analyze_forest(agencies, registry)

    if not args.output_dir:
        print_json(result.to_dict())
        return EXIT_SUCCESS

    reports = ReportGenerator(args.output_dir).generate_agency_stats_reports(
        result, formats=args.format, base_filename="cfr_agency_stats"
    )
    print(f"{result.agencies_with_references} agencies with CFR references")
    print_reports(reports)
    return EXIT_SUCCESS


@log_execution_time
def cmd_summary(args: argparse.Namespace) -> int:
    """Summarize word counts across several titles."""
    loader = FixtureLoader(args.fixtures_dir)
    titles: List[int] = args.titles or loader.available_titles()
    if not titles:
        print("No downloaded titles found. Run download-title first.", file=sys.stderr)
        return EXIT_NOT_FOUND

    results = []
    for title in titles:
        result = analyze_tree(loader.load_title_structure(title))
        title_name = loader.title_name(title)
        results.append(result.with_title_name(title_name) if title_name else result)

    summary = summarize(results)

    if not args.output_dir:
        print_json(summary.to_dict())
        return EXIT_SUCCESS

    reports = ReportGenerator(args.output_dir).generate_summary_reports(
        summary, results, formats=args.format, base_filename="cfr_title_summary"
    )
    print(f"{summary.title_count} titles, {summary.total_words:,} words")
    print_reports(reports)
    return EXIT_SUCCESS


def cmd_titles(args: argparse.Namespace) -> int:
    """Print the titles summary fixture."""
    titles = FixtureLoader(args.fixtures_dir).load_titles_summary()
    print_json([title.to_dict() for title in titles])
    return EXIT_SUCCESS


def cmd_title(args: argparse.Namespace) -> int:
    """Print the structure fixture of one title."""
    try:
        structure = FixtureLoader(args.fixtures_dir).load_title_structure(args.title)
    except FixtureNotFoundError as e:
        logger.error(e.message)
        print(f"No fixture data available for Title {args.title}. "
              f"Run 'cfr-structure-analyzer download-title {args.title}' first.", file=sys.stderr)
        return EXIT_NOT_FOUND

    print_json(structure.to_dict())
    return EXIT_SUCCESS


def cmd_agencies(args: argparse.Namespace) -> int:
    """Print the agencies fixture."""
    agencies = FixtureLoader(args.fixtures_dir).load_agencies()
    print_json([agency.to_dict() for agency in agencies])
    return EXIT_SUCCESS


def cmd_agency(args: argparse.Namespace) -> int:
    """Show statistics for one agency."""
    agencies = FixtureLoader(args.fixtures_dir).load_agencies()
    stat = stat_by_slug(agencies, args.slug)
    if stat is None:
        print(f"Agency not found or has no CFR references: {args.slug}", file=sys.stderr)
        return EXIT_NOT_FOUND

    print_json(stat.to_dict())
    return EXIT_SUCCESS


def cmd_title_agencies(args: argparse.Namespace) -> int:
    """List the agencies referencing one title."""
    agencies = FixtureLoader(args.fixtures_dir).load_agencies()
    stats = stats_referencing_title(agencies, args.title)
    print_json({
        'title': args.title,
        'agencyCount': len(stats),
        'agencies': [stat.to_dict() for stat in stats]
    })
    return EXIT_SUCCESS


def cmd_dashboard(args: argparse.Namespace) -> int:
    """Launch the Streamlit dashboard."""
    dashboard_path = Path(__file__).with_name('dashboard.py')
    command = [sys.executable, '-m', 'streamlit', 'run', str(dashboard_path), '--', '--fixtures-dir', args.fixtures_dir]
    logger.info(f"Launching dashboard: {' '.join(command)}")
    return subprocess.call(command)


COMMANDS = {
    'download-agencies': cmd_download_agencies,
    'download-titles': cmd_download_titles,
    'download-title': cmd_download_title,
    'word-count': cmd_word_count,
    'agency-stats': cmd_agency_stats,
    'summary': cmd_summary,
    'titles': cmd_titles,
    'title': cmd_title,
    'agencies': cmd_agencies,
    'agency': cmd_agency,
    'title-agencies': cmd_title_agencies,
    'dashboard': cmd_dashboard,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CFR Structure Analyzer.

    Returns:
        Exit code (0 success, 1 error, 3 not found, 130 interrupted)
    """
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    if getattr(args, 'format', None) and not args.output_dir:
        parser.error("--format requires --output-dir")

    Config.setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        Config.validate()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_ERROR

    logger.info(f"Running command: {args.command}")

    try:
        return COMMANDS[args.command](args)

    except KeyboardInterrupt:
        logger.info("Process interrupted by user")
        print("\nProcess interrupted by user")
        return EXIT_INTERRUPTED

    except FixtureNotFoundError as e:
        logger.error(e.message)
        print(f"Not found: {e.message}", file=sys.stderr)
        return EXIT_NOT_FOUND

    except StructureAnalyzerError as e:
        logger.error(e.message)
        print(f"Error: {e.message}", file=sys.stderr)
        return EXIT_ERROR

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == '__main__':
    sys.exit(main())
