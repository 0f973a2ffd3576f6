"""
Pytest configuration and shared fixtures.
"""

import json
import pytest
from datetime import datetime
from unittest.mock import Mock

from ecfr_analyzer.api_client import ECFRClient, RequestThrottle
from ecfr_analyzer.models import Title
from ecfr_analyzer.retry_handler import RetryConfig, RetryHandler
from ecfr_analyzer.storage import SnapshotStorage


BASE_URL = 'https://www.ecfr.gov'

SAMPLE_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    '<CFR><TITLE><HEAD>Title 7 - Agriculture</HEAD>'
    '<SECTION><SECTNO>1.1</SECTNO><P>Each agency shall publish its rules in the Federal '
    'Register and make them available for public inspection.</P></SECTION></TITLE></CFR>'
)

SAMPLE_STRUCTURE = json.dumps({
    'type': 'title',
    'identifier': '7',
    'children': [
        {'type': 'chapter', 'identifier': 'I', 'children': [
            {'type': 'part', 'identifier': '1', 'children': [
                {'type': 'section', 'identifier': '1.1', 'children': []},
                {'type': 'section', 'identifier': '1.2', 'children': []},
            ]},
        ]},
    ],
})


@pytest.fixture
def fast_retry_handler():
    """Retry handler that never waits between attempts."""
    return RetryHandler(RetryConfig(max_attempts=3, base_delay=0.0, max_delay=0.0))


@pytest.fixture
def client(fast_retry_handler):
    """eCFR client with no inter-call delay."""
    api_client = ECFRClient(
        base_url=BASE_URL,
        retry_handler=fast_retry_handler,
        throttle=RequestThrottle(0),
    )
    yield api_client
    api_client.close()


@pytest.fixture
def storage(tmp_path):
    """Snapshot storage rooted in a temporary directory."""
    return SnapshotStorage(tmp_path / 'data')


@pytest.fixture
def mock_client():
    """Mock eCFR client."""
    return Mock(spec=ECFRClient)


def make_title(number, name='Test Title', agency='Test Agency', content='word ' * 10,
               word_count=None, **kwargs):
    """Build an enriched title for tests."""
    if word_count is None:
        word_count = len(content.split()) if content else 0
    return Title(
        number=number,
        name=name,
        agency=agency,
        content=content,
        word_count=word_count,
        last_updated=kwargs.pop('last_updated', datetime(2024, 5, 1, 12, 30, 15, 123456)),
        **kwargs
    )


@pytest.fixture
def title_factory():
    """Factory for enriched titles."""
    return make_title


@pytest.fixture
def sample_titles():
    """Enriched titles across three agencies."""
    return [
        make_title(7, name='Agriculture', agency='Agriculture', content='a b c d',
                   latest_amended_on='2024-03-01'),
        make_title(29, name='Labor', agency='Labor', content='x y',
                   latest_amended_on='2023-06-15'),
        make_title(40, name='Protection of Environment', agency='Protection of Environment',
                   content='one two three four five six', latest_amended_on='2024-07-01'),
        make_title(35, name='Reserved', agency='Reserved', content=None, reserved=True),
    ]


@pytest.fixture
def catalog_payload():
    """Titles payload as returned by the titles endpoint."""
    return {
        'titles': [
            {'number': 1, 'name': 'General Provisions', 'latest_amended_on': '2024-01-15',
             'latest_issue_date': '2024-01-15', 'up_to_date_as_of': '2024-05-01',
             'reserved': False},
            {'number': 35, 'name': 'Reserved', 'latest_amended_on': None,
             'latest_issue_date': None, 'up_to_date_as_of': None, 'reserved': True},
            {'number': 7, 'name': 'Agriculture', 'latest_amended_on': '2024-04-01',
             'latest_issue_date': '2024-04-01', 'up_to_date_as_of': '2024-05-01',
             'reserved': False},
        ],
        'meta': {'date': '2024-05-01'}
    }


@pytest.fixture
def agencies_payload():
    """Agencies payload as returned by the agencies endpoint."""
    return {
        'agencies': [
            {'name': 'Department of Agriculture', 'short_name': 'USDA',
             'display_name': 'Department of Agriculture', 'sortable_name': 'Agriculture, Department of',
             'slug': 'agriculture-department',
             'children': [{'name': 'Forest Service', 'slug': 'forest-service'}],
             'cfr_references': [{'title': 7, 'chapter': 'I'}]},
            {'name': 'Department of Labor', 'slug': 'labor-department', 'children': [],
             'cfr_references': [{'title': 29}]},
        ]
    }


@pytest.fixture
def sample_xml():
    """Full-title XML payload that passes content validation."""
    return SAMPLE_XML


@pytest.fixture
def sample_structure():
    """Structure payload with one chapter, one part and two sections."""
    return SAMPLE_STRUCTURE
