"""Tests for record cleaning and query helpers."""

import pytest

from ferry_pkg.models import ORIGINAL_ID_KEY
from ferry_pkg.utils.bulk_utils import chunked
from ferry_pkg.utils.record_utils import build_select_fields, clean_record, is_relationship_projection


class TestCleanRecord:
    def test_strips_system_fields_and_keeps_the_rest(self):
        record = {
            'attributes': {'type': 'Account', 'url': '/services/data/v62.0/sobjects/Account/001'},
            'Id': '001',
            'Name': 'Acme',
            'NumberOfEmployees': 12,
            'Description': None,
            'OwnerId': '005',
            'SystemModstamp': '2026-01-01T00:00:00.000+0000',
            'Parent__r': None,
            'Owner': {'attributes': {'type': 'User'}, 'Name': 'Admin'},
        }

        assert clean_record(record) == {
            'Name': 'Acme',
            'NumberOfEmployees': 12,
            'Description': None,
            ORIGINAL_ID_KEY: '001',
        }

    def test_input_is_not_modified(self):
        record = {'Id': '001', 'Name': 'Acme', 'OwnerId': '005'}
        clean_record(record)
        assert record == {'Id': '001', 'Name': 'Acme', 'OwnerId': '005'}

    def test_custom_exclusions_replace_the_defaults(self):
        cleaned = clean_record({'Id': '001', 'OwnerId': '005', 'Rating': 'Hot'}, excluded_fields={'Rating'})
        assert cleaned == {'OwnerId': '005', ORIGINAL_ID_KEY: '001'}


@pytest.mark.parametrize('name, value, expected', [
    ('Account__r', None, True),
    ('Owner', {'Name': 'Admin'}, True),
    ('AccountId', '001', False),
    ('Name', 'Acme', False),
])
def test_is_relationship_projection(name, value, expected):
    assert is_relationship_projection(name, value) is expected


def test_build_select_fields_puts_id_first():
    assert build_select_fields(['Name', 'Id', 'Industry']) == 'Id, Name, Industry'
    assert build_select_fields([]) == 'Id'


def test_chunked():
    assert [(start, list(chunk)) for start, chunk in chunked([1, 2, 3, 4, 5], 2)] == [
        (0, [1, 2]), (2, [3, 4]), (4, [5])
    ]
    with pytest.raises(ValueError):
        list(chunked([1], 0))
