"""Tests for the report generator module."""

import csv
import json
from pathlib import Path

import pytest

from cfr_structure_analyzer.agency_stats import analyze_forest
from cfr_structure_analyzer.error_handler import ReportGenerationError
from cfr_structure_analyzer.report_generator import ReportGenerator
from cfr_structure_analyzer.summary import summarize
from cfr_structure_analyzer.word_count import analyze_tree


def read_csv(path):
    with open(path, newline='', encoding='utf-8') as f:
        return list(csv.DictReader(f))


@pytest.fixture
def generator(tmp_path):
    return ReportGenerator(tmp_path / 'results')


@pytest.fixture
def word_count_result(sample_structure):
    return analyze_tree(sample_structure).with_title_name('Commodity and Securities Exchanges')


@pytest.fixture
def agency_result(sample_agencies, sample_title_registry):
    return analyze_forest(sample_agencies, sample_title_registry)


class TestReportGenerator:
    """Test cases for the ReportGenerator class."""

    def test_creates_output_directory(self, tmp_path):
        ReportGenerator(tmp_path / 'nested' / 'results')
        assert (tmp_path / 'nested' / 'results').is_dir()

    def test_supported_formats(self, generator):
        assert generator.get_supported_formats() == ['json', 'csv', 'summary']

    def test_unsupported_format_raises(self, generator, word_count_result):
        with pytest.raises(ReportGenerationError, match="Unsupported report format"):
            generator.generate_word_count_reports(word_count_result, formats=['xlsx'])

    def test_escape_csv_value(self, generator):
        assert generator._escape_csv_value('Line one\nline\x00 two  ') == 'Line one line two'
        assert generator._escape_csv_value(None) == ''

    def test_write_failure_raises(self, generator, word_count_result):
        (generator.output_directory / 'blocked.json').mkdir()

        with pytest.raises(ReportGenerationError, match="Failed to write report"):
            generator.generate_word_count_reports(word_count_result, base_filename='blocked')


class TestWordCountReports:
    """Test cases for word count reports."""

    def test_default_format_is_json(self, generator, word_count_result):
        reports = generator.generate_word_count_reports(word_count_result, base_filename='title_17')

        assert list(reports) == ['json']
        assert Path(reports['json']).name == 'title_17.json'

    def test_json_report(self, generator, word_count_result):
        reports = generator.generate_word_count_reports(word_count_result, ['json'], 'title_17')

        data = json.loads(Path(reports['json']).read_text(encoding='utf-8'))
        assert data['metadata']['report_type'] == 'word_count'
        assert 'generated_at' in data['metadata']
        assert data['totalWords'] == 19
        assert data['titleName'] == 'Commodity and Securities Exchanges'

    def test_csv_report(self, generator, word_count_result):
        reports = generator.generate_word_count_reports(word_count_result, ['csv'], 'title_17')

        rows = read_csv(reports['csv'])
        top = [r for r in rows if r['category'] == 'top_element']
        sections = [r for r in rows if r['category'] == 'section']
        assert len(top) == 7
        assert [r['identifier'] for r in sections] == ['1.1', '1.2', '2.1']
        assert sections[2]['word_count'] == '9'
        assert sections[0]['label'] == '§ 1.1 Test Section'

    def test_summary_report(self, generator, word_count_result):
        reports = generator.generate_word_count_reports(word_count_result, ['summary'], 'title_17')

        content = Path(reports['summary']).read_text(encoding='utf-8')
        assert Path(reports['summary']).name == 'title_17_summary.txt'
        assert 'Title 17: Commodity and Securities Exchanges' in content
        assert 'Total words: 19' in content
        assert 'WORDS BY HIERARCHY LEVEL' in content

    def test_all_formats(self, generator, word_count_result):
        reports = generator.generate_word_count_reports(word_count_result, ['json', 'csv', 'summary'])

        assert set(reports) == {'json', 'csv', 'summary'}
        assert all(Path(path).exists() for path in reports.values())
        assert Path(reports['json']).name.startswith('cfr_word_count_title_17_')


class TestAgencyStatsReports:
    """Test cases for agency statistics reports."""

    def test_json_report(self, generator, agency_result):
        reports = generator.generate_agency_stats_reports(agency_result, ['json'], 'agencies')

        data = json.loads(Path(reports['json']).read_text(encoding='utf-8'))
        assert data['metadata']['report_type'] == 'agency_stats'
        assert data['agenciesWithReferences'] == 3
        assert len(data['titleDistribution']) == 4

    def test_csv_reports(self, generator, agency_result):
        reports = generator.generate_agency_stats_reports(agency_result, ['csv'], 'agencies')

        agencies = read_csv(reports['csv'])
        assert agencies[0]['rank'] == '1'
        assert agencies[0]['agency_slug'] == 'department-of-energy'
        assert agencies[0]['titles'] == '10;48'
        assert agencies[1]['short_name'] == 'FERC'

        distribution = read_csv(reports['csv_titles'])
        assert [r['title_number'] for r in distribution] == ['10', '48', '18', '17']
        assert distribution[0]['title_name'] == 'Energy'

    def test_summary_report(self, generator, agency_result):
        reports = generator.generate_agency_stats_reports(agency_result, ['summary'], 'agencies')

        content = Path(reports['summary']).read_text(encoding='utf-8')
        assert 'Agencies with CFR references: 3' in content
        assert 'Average titles per agency: 1.33' in content
        assert ' 1. Department of Energy: 2 titles, 3 chapters, 0 parts' in content


class TestSummaryReports:
    """Test cases for multi-title summary reports."""

    @pytest.fixture
    def results(self, sample_structure, word_count_result):
        return [word_count_result, analyze_tree(sample_structure)]

    def test_json_report(self, generator, results):
        reports = generator.generate_summary_reports(summarize(results), results, ['json'], 'summary')

        data = json.loads(Path(reports['json']).read_text(encoding='utf-8'))
        assert data['metadata']['report_type'] == 'title_summary'
        assert data['titleCount'] == 2
        assert data['titles'][0] == {
            'title': 17,
            'titleName': 'Commodity and Securities Exchanges',
            'totalWords': 19,
            'totalElements': 7
        }

    def test_csv_report(self, generator, results):
        reports = generator.generate_summary_reports(summarize(results), results, ['csv'], 'summary')

        rows = read_csv(reports['csv'])
        assert len(rows) == 2
        assert rows[0]['title'] == '17'
        assert rows[0]['total_words'] == '19'

    def test_summary_report(self, generator, results):
        reports = generator.generate_summary_reports(summarize(results), results, ['summary'], 'summary')

        content = Path(reports['summary']).read_text(encoding='utf-8')
        assert 'Titles analyzed: 2' in content
        assert 'Longest title: Title 17 (19 words)' in content
