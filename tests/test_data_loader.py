"""Tests for the fixture loader module."""

import pytest

from cfr_structure_analyzer.data_loader import FixtureLoader
from cfr_structure_analyzer.error_handler import FixtureLoadError, FixtureNotFoundError
from cfr_structure_analyzer.models import DownloadType

from factories import make_agency, make_title, make_title_structure, write_json, write_title_fixture


class TestFixtureLoader:
    """Test cases for the FixtureLoader class."""

    def test_load_agencies(self, fixtures_dir):
        agencies = FixtureLoader(fixtures_dir).load_agencies()

        assert [a.slug for a in agencies] == [
            'department-of-energy',
            'securities-and-exchange-commission',
            'acfr',
        ]
        assert agencies[0].children[0].short_name == 'FERC'

    def test_load_agencies_wrapped_object(self, tmp_path):
        write_json(tmp_path / 'agencies' / 'agencies.json', {'agencies': [make_agency()]})

        agencies = FixtureLoader(tmp_path).load_agencies()

        assert [a.slug for a in agencies] == ['test-agency']

    def test_load_agencies_missing(self, tmp_path):
        with pytest.raises(FixtureNotFoundError, match="Failed to load agencies fixture"):
            FixtureLoader(tmp_path).load_agencies()

    def test_load_agencies_invalid_json(self, tmp_path):
        path = tmp_path / 'agencies' / 'agencies.json'
        path.parent.mkdir(parents=True)
        path.write_text('[{"name": ', encoding='utf-8')

        with pytest.raises(FixtureLoadError, match="Failed to load agencies fixture") as exc_info:
            FixtureLoader(tmp_path).load_agencies()

        assert not isinstance(exc_info.value, FixtureNotFoundError)

    def test_load_agencies_invalid_shape(self, tmp_path):
        write_json(tmp_path / 'agencies' / 'agencies.json', {'agencies': 'none'})

        with pytest.raises(FixtureLoadError, match="'agencies' list"):
            FixtureLoader(tmp_path).load_agencies()

    def test_load_agencies_invalid_agency(self, tmp_path):
        write_json(tmp_path / 'agencies' / 'agencies.json', [make_agency(name='')])

        with pytest.raises(FixtureLoadError, match="Agency name and slug are required"):
            FixtureLoader(tmp_path).load_agencies()

    def test_load_titles_summary(self, fixtures_dir):
        titles = FixtureLoader(fixtures_dir).load_titles_summary()

        assert [t.number for t in titles] == [10, 17, 18, 35, 48]
        assert titles[3].reserved is True

    def test_load_titles_summary_wrapped_object(self, tmp_path):
        write_json(tmp_path / 'titles' / 'summary.json', {'titles': [make_title(1, 'General Provisions')]})

        titles = FixtureLoader(tmp_path).load_titles_summary()

        assert titles[0].name == 'General Provisions'

    def test_load_title_structure(self, fixtures_dir):
        structure = FixtureLoader(fixtures_dir).load_title_structure(17)

        assert structure.type == 'title'
        assert structure.title_number == 17
        assert sum(1 for _ in structure.walk()) == 7

    def test_load_title_structure_missing_title(self, fixtures_dir):
        with pytest.raises(FixtureNotFoundError, match="Failed to load title 5 structure"):
            FixtureLoader(fixtures_dir).load_title_structure(5)

    def test_load_title_structure_without_structure_file(self, tmp_path):
        write_json(tmp_path / 'titles' / 'title-5' / 'metadata.json', {
            'title': 5,
            'downloadDate': '2024-01-01T12:00:00',
            'dataDate': '2024-01-01',
            'files': {'versions': 'versions.json'}
        })

        with pytest.raises(FixtureLoadError, match="no structure file found for title 5") as exc_info:
            FixtureLoader(tmp_path).load_title_structure(5)

        assert not isinstance(exc_info.value, FixtureNotFoundError)

    def test_load_title_structure_files_not_object(self, tmp_path):
        write_json(tmp_path / 'titles' / 'title-5' / 'metadata.json', {
            'title': 5,
            'downloadDate': '2024-01-01T12:00:00',
            'dataDate': '2024-01-01',
            'files': ['structure-2024-01-01.json']
        })
        loader = FixtureLoader(tmp_path)

        with pytest.raises(FixtureLoadError, match="'files' must be an object"):
            loader.load_title_structure(5)
        assert loader.title_fixture_exists(5) is False

    def test_load_title_structure_file_missing(self, tmp_path):
        title_dir = write_title_fixture(tmp_path, 5, make_title_structure(5))
        (title_dir / 'structure-2024-01-01.json').unlink()

        with pytest.raises(FixtureNotFoundError, match="Failed to load title 5 structure"):
            FixtureLoader(tmp_path).load_title_structure(5)

    def test_load_title_structure_malformed(self, tmp_path):
        write_title_fixture(tmp_path, 5, {'type': 'title', 'children': []})

        with pytest.raises(FixtureLoadError, match="missing required field 'identifier'"):
            FixtureLoader(tmp_path).load_title_structure(5)

    def test_load_title_metadata(self, fixtures_dir):
        metadata = FixtureLoader(fixtures_dir).load_title_metadata(17)

        assert metadata.title == 17
        assert metadata.data_date == '2024-01-01'
        assert metadata.structure_file == 'structure-2024-01-01.json'

    def test_load_fixture_metadata(self, tmp_path):
        write_json(tmp_path / 'metadata.json', {
            'lastUpdated': '2024-01-01T00:00:00',
            'downloads': [{'type': 'agencies', 'timestamp': '2024-01-01T00:00:00', 'status': 'success'}]
        })

        metadata = FixtureLoader(tmp_path).load_fixture_metadata()

        assert metadata.downloads[0].type == DownloadType.AGENCIES

    def test_load_fixture_metadata_invalid(self, tmp_path):
        write_json(tmp_path / 'metadata.json', {'downloads': []})

        with pytest.raises(FixtureLoadError, match="Failed to load fixture metadata"):
            FixtureLoader(tmp_path).load_fixture_metadata()

    def test_title_fixture_exists(self, fixtures_dir):
        loader = FixtureLoader(fixtures_dir)

        assert loader.title_fixture_exists(17) is True
        assert loader.title_fixture_exists(18) is False

    def test_available_titles(self, fixtures_dir):
        write_title_fixture(fixtures_dir, 3, make_title_structure(3))
        (fixtures_dir / 'titles' / 'title-x').mkdir()

        assert FixtureLoader(fixtures_dir).available_titles() == [3, 17]

    def test_available_titles_empty(self, tmp_path):
        assert FixtureLoader(tmp_path).available_titles() == []

    def test_title_name(self, fixtures_dir):
        loader = FixtureLoader(fixtures_dir)

        assert loader.title_name(17) == 'Commodity and Securities Exchanges'
        assert loader.title_name(1) is None

    def test_title_name_without_summary(self, tmp_path):
        assert FixtureLoader(tmp_path).title_name(17) is None
