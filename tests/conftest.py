"""
Pytest configuration and shared fixtures.
"""

import pytest
from pathlib import Path
from unittest.mock import Mock

from cfr_structure_analyzer.models import AgencyNode, StructureNode, TitleEntry

from factories import (
    make_agency,
    make_chapter,
    make_part,
    make_section,
    make_title,
    make_title_structure,
    write_json,
    write_title_fixture,
)


@pytest.fixture
def sample_structure_data():
    """Title 17 with one chapter, two parts and three sections."""
    return make_title_structure(17, children=[
        make_chapter('I', children=[
            make_part('1', children=[
                make_section('1.1', content='Definitions apply to this part.'),
                make_section('1.2', content='Scope.', text='Applies to all registrants.'),
            ]),
            make_part('2', children=[
                make_section('2.1', content='Filing requirements for annual reports are set out here.'),
            ]),
        ]),
    ])


@pytest.fixture
def sample_structure(sample_structure_data):
    return StructureNode.from_dict(sample_structure_data)


@pytest.fixture
def sample_agencies_data():
    """Two departments, one with a sub-agency, and one agency without references."""
    return [
        make_agency(
            'Department of Energy', 'department-of-energy',
            cfr_references=[
                {'title': 10, 'chapter': 'II'},
                {'title': 10, 'chapter': 'III'},
                {'title': 48, 'chapter': '9'},
            ],
            children=[
                make_agency(
                    'Federal Energy Regulatory Commission',
                    'federal-energy-regulatory-commission',
                    cfr_references=[{'title': 18, 'chapter': 'I'}],
                    short_name='FERC'
                ),
            ]
        ),
        make_agency(
            'Securities and Exchange Commission', 'securities-and-exchange-commission',
            cfr_references=[{'title': 17, 'chapter': 'II'}],
            short_name='SEC'
        ),
        make_agency('Administrative Committee of the Federal Register', 'acfr', cfr_references=[]),
    ]


@pytest.fixture
def sample_agencies(sample_agencies_data):
    return [AgencyNode.from_dict(agency) for agency in sample_agencies_data]


@pytest.fixture
def sample_titles_data():
    return [
        make_title(10, 'Energy'),
        make_title(17, 'Commodity and Securities Exchanges'),
        make_title(18, 'Conservation of Power and Water Resources'),
        make_title(35, 'Panama Canal', reserved=True),
        make_title(48, 'Federal Acquisition Regulations System'),
    ]


@pytest.fixture
def sample_title_registry(sample_titles_data):
    return [TitleEntry.from_dict(title) for title in sample_titles_data]


@pytest.fixture
def fixtures_dir(tmp_path, sample_structure_data, sample_agencies_data, sample_titles_data) -> Path:
    """A fixtures directory holding agencies, the titles summary and title 17."""
    root = tmp_path / 'fixtures'
    write_json(root / 'agencies' / 'agencies.json', sample_agencies_data)
    write_json(root / 'titles' / 'summary.json', sample_titles_data)
    write_title_fixture(root, 17, sample_structure_data)
    return root


@pytest.fixture
def mock_client():
    """Mock eCFR client returning canned data."""
    client = Mock()
    client.fetch_agencies.return_value = [make_agency()]
    client.fetch_titles_summary.return_value = [make_title()]
    client.fetch_title_structure.return_value = make_title_structure()
    client.fetch_title_full.return_value = '<ECFR><DIV1 N="17" TYPE="TITLE"></DIV1></ECFR>'
    client.fetch_title_versions.return_value = {'content_versions': [], 'meta': {'title': '17'}}
    return client


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: mark test as integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on test names."""
    for item in items:
        if "integration" in item.nodeid.lower():
            item.add_marker(pytest.mark.integration)

        if "deep" in item.nodeid.lower():
            item.add_marker(pytest.mark.slow)
