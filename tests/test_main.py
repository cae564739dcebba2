"""Tests for the command-line interface."""

import argparse
import json
from unittest.mock import patch

import pytest

from cfr_structure_analyzer.main import main, parse_title_number, setup_argument_parser


@pytest.fixture
def run(fixtures_dir, tmp_path):
    """Run the CLI against the sample fixtures, returning the exit code."""
    def _run(*args):
        return main([
            '--fixtures-dir', str(fixtures_dir),
            '--log-file', str(tmp_path / 'logs' / 'test.log'),
            '--quiet',
            *args
        ])
    return _run


class TestArgumentParsing:
    """Test cases for argument parsing."""

    def test_parse_title_number(self):
        assert parse_title_number('1') == 1
        assert parse_title_number('50') == 50

    @pytest.mark.parametrize("value", ['0', '51', '-3', 'seventeen', '1.5'])
    def test_parse_title_number_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_title_number(value)

    def test_invalid_title_is_usage_error(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run('word-count', '99')

        assert exc_info.value.code == 2
        assert 'title number must be between 1 and 50' in capsys.readouterr().err

    def test_parser_defaults(self):
        args = setup_argument_parser().parse_args(['word-count', '17'])

        assert args.title == 17
        assert args.format is None
        assert args.output_dir is None

    def test_format_choices(self):
        args = setup_argument_parser().parse_args(['agency-stats', '--format', 'json', 'csv'])
        assert args.format == ['json', 'csv']

    def test_format_requires_output_dir(self, run, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run('word-count', '17', '--format', 'csv')

        assert exc_info.value.code == 2
        assert '--format requires --output-dir' in capsys.readouterr().err

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 1
        assert 'usage:' in capsys.readouterr().out


class TestAnalysisCommands:
    """Test cases for the analysis commands."""

    def test_word_count_prints_json(self, run, capsys):
        assert run('word-count', '17') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['title'] == 17
        assert data['titleName'] == 'Commodity and Securities Exchanges'
        assert data['totalWords'] == 19
        assert data['totalElements'] == 7

    def test_word_count_missing_title(self, run, capsys):
        assert run('word-count', '5') == 3
        assert 'Not found' in capsys.readouterr().err

    def test_word_count_writes_reports(self, run, tmp_path, capsys):
        output_dir = tmp_path / 'out'

        assert run('word-count', '17', '--format', 'json', 'csv', '--output-dir', str(output_dir)) == 0

        assert (output_dir / 'cfr_word_count_title_17.json').exists()
        assert (output_dir / 'cfr_word_count_title_17.csv').exists()
        assert '19 words' in capsys.readouterr().out

    def test_corrupt_fixture_is_error(self, run, fixtures_dir, capsys):
        (fixtures_dir / 'titles' / 'title-17' / 'structure-2024-01-01.json').write_text('{', encoding='utf-8')

        assert run('word-count', '17') == 1
        assert 'Failed to load title 17 structure' in capsys.readouterr().err

    def test_agency_stats(self, run, capsys):
        assert run('agency-stats') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['totalAgencies'] == 3
        assert data['totalTitles'] == 5
        assert data['titleDistribution'][0]['titleName'] == 'Energy'

    def test_agency_stats_without_registry(self, run, capsys):
        assert run('agency-stats', '--no-registry') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['totalTitles'] == 50
        assert data['titleDistribution'][0]['titleName'] == 'Title 10'

    def test_agency_stats_missing_summary(self, run, fixtures_dir, capsys):
        (fixtures_dir / 'titles' / 'summary.json').unlink()

        assert run('agency-stats') == 0
        assert json.loads(capsys.readouterr().out)['totalTitles'] == 50

    def test_agency_stats_missing_agencies(self, run, fixtures_dir):
        (fixtures_dir / 'agencies' / 'agencies.json').unlink()
        assert run('agency-stats') == 3

    def test_agency_stats_reports(self, run, tmp_path):
        output_dir = tmp_path / 'out'

        assert run('agency-stats', '-f', 'csv', 'summary', '-o', str(output_dir)) == 0

        assert (output_dir / 'cfr_agency_stats.csv').exists()
        assert (output_dir / 'cfr_agency_stats_titles.csv').exists()
        assert (output_dir / 'cfr_agency_stats_summary.txt').exists()

    def test_summary_all_downloaded_titles(self, run, capsys):
        assert run('summary') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['titleCount'] == 1
        assert data['longestTitle']['title'] == 17

    def test_summary_explicit_missing_title(self, run):
        assert run('summary', '17', '5') == 3

    def test_summary_without_downloads(self, tmp_path, capsys):
        code = main(['--fixtures-dir', str(tmp_path / 'empty'),
                     '--log-file', str(tmp_path / 'test.log'), '--quiet', 'summary'])

        assert code == 3
        assert 'No downloaded titles' in capsys.readouterr().err

    def test_interrupted(self, run):
        with patch('cfr_structure_analyzer.main.analyze_tree', side_effect=KeyboardInterrupt):
            assert run('word-count', '17') == 130


class TestLookupCommands:
    """Test cases for agency and title lookups."""

    def test_titles(self, run, capsys):
        assert run('titles') == 0

        data = json.loads(capsys.readouterr().out)
        assert [title['number'] for title in data] == [10, 17, 18, 35, 48]
        assert data[3]['reserved'] is True

    def test_title_structure(self, run, capsys, sample_structure_data):
        assert run('title', '17') == 0
        assert json.loads(capsys.readouterr().out) == sample_structure_data

    def test_title_not_downloaded(self, run, capsys):
        assert run('title', '5') == 3
        assert 'No fixture data available for Title 5' in capsys.readouterr().err

    def test_agencies(self, run, capsys, sample_agencies_data):
        assert run('agencies') == 0
        assert json.loads(capsys.readouterr().out) == sample_agencies_data

    def test_agencies_missing(self, run, fixtures_dir):
        (fixtures_dir / 'agencies' / 'agencies.json').unlink()
        assert run('agencies') == 3

    def test_agency(self, run, capsys):
        assert run('agency', 'federal-energy-regulatory-commission') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['shortName'] == 'FERC'
        assert data['titles'] == [18]

    def test_unknown_agency(self, run, capsys):
        assert run('agency', 'no-such-agency') == 3
        assert 'no-such-agency' in capsys.readouterr().err

    def test_title_agencies(self, run, capsys):
        assert run('title-agencies', '10') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['agencyCount'] == 1
        assert data['agencies'][0]['slug'] == 'department-of-energy'


class TestDownloadCommands:
    """Test cases for the download commands."""

    @pytest.fixture
    def patched_client(self, mock_client):
        with patch('cfr_structure_analyzer.main.ECFRClient') as mock_cls:
            mock_cls.return_value.__enter__.return_value = mock_client
            yield mock_client

    def test_download_title(self, run, patched_client, fixtures_dir, capsys):
        assert run('download-title', '3', '--date', '2024-01-01') == 0

        assert (fixtures_dir / 'titles' / 'title-3' / 'metadata.json').exists()
        patched_client.fetch_title_structure.assert_called_once_with(3, '2024-01-01')
        assert 'Title 3 downloaded (success)' in capsys.readouterr().out

    def test_download_existing_title(self, run, patched_client, capsys):
        assert run('download-title', '17') == 0

        patched_client.fetch_title_structure.assert_not_called()
        assert 'already exists' in capsys.readouterr().out

    def test_download_agencies_failure(self, run, patched_client, capsys):
        from cfr_structure_analyzer.error_handler import ECFRAPIError
        patched_client.fetch_agencies.side_effect = ECFRAPIError("Request failed")

        assert run('download-agencies') == 1
        assert 'Failed to download agencies' in capsys.readouterr().err

    def test_download_titles(self, run, patched_client, fixtures_dir):
        assert run('download-titles') == 0

        saved = json.loads((fixtures_dir / 'titles' / 'summary.json').read_text(encoding='utf-8'))
        assert saved == patched_client.fetch_titles_summary.return_value


class TestDashboardCommand:
    """Test cases for launching the dashboard."""

    def test_dashboard_runs_streamlit(self, run, fixtures_dir):
        with patch('cfr_structure_analyzer.main.subprocess.call', return_value=0) as mock_call:
            assert run('dashboard') == 0

        command = mock_call.call_args[0][0]
        assert command[1:4] == ['-m', 'streamlit', 'run']
        assert command[4].endswith('dashboard.py')
        assert command[-1] == str(fixtures_dir)
