#!/usr/bin/env python3
"""
Record Utilities

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License
"""

from typing import Any, Dict, Iterable, List

from ferry_pkg.models import ORIGINAL_ID_KEY

# Fields that should never be copied (owner, audit and system managed fields)
DEFAULT_EXCLUDED_FIELDS = frozenset({
    'OwnerId',
    'CreatedById',
    'LastModifiedById',
    'CreatedDate',
    'LastModifiedDate',
    'SystemModstamp',
    'LastActivityDate',
    'LastViewedDate',
    'LastReferencedDate',
    'IsDeleted',
    'MasterRecordId',  # Merged record pointer, not writable
})

# Objects whose lookups are skipped by default (users, org specific)
# RecordType is not listed: it is matched by DeveloperName in the target
DEFAULT_EXCLUDED_OBJECTS = frozenset({
    'User',
    'Group',
    'Profile',
    'UserRole',
    'Organization',
})

# Objects that are never inserted; their Ids are resolved in the target org
TERMINAL_OBJECTS = frozenset({'RecordType'})


def is_relationship_projection(field_name: str, value: Any) -> bool:
    """True for materialized relationship values (Account__r, Owner: {...}) as opposed to raw Ids."""
    return field_name.endswith('__r') or isinstance(value, dict)


def clean_record(record: Dict[str, Any], excluded_fields: Iterable[str] = DEFAULT_EXCLUDED_FIELDS) -> Dict[str, Any]:
    """
    Prepares a source record for insertion: drops Id, attributes, excluded
    fields and relationship projections, keeps everything else verbatim and
    stores the source Id under ORIGINAL_ID_KEY.
    """
    excluded = set(excluded_fields)
    cleaned = {}
    for field_name, value in record.items():
        if (field_name == 'Id' or
                field_name == 'attributes' or
                field_name in excluded or
                is_relationship_projection(field_name, value)):
            continue
        cleaned[field_name] = value

    cleaned[ORIGINAL_ID_KEY] = record.get('Id')
    return cleaned


def build_select_fields(field_names: Iterable[str]) -> str:
    """Comma separated projection that always starts with Id."""
    names = [name for name in field_names if name != 'Id']
    return ', '.join(['Id'] + names)


def quote_ids(record_ids: List[str]) -> str:
    return "','".join(record_ids)
