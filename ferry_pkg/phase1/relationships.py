#!/usr/bin/env python3
"""
Relationship Discovery - Phase 1

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Finds the lookup fields of an object and derives the default
include/skip decision for each of them.
"""

from typing import Dict, List, Optional

from ferry_pkg.exceptions import ConfigError
from ferry_pkg.models import (
    ChildRelationship,
    FieldDescribe,
    ObjectSchema,
    RelationshipAction,
    RelationshipConfig,
    RelationshipField
)
from ferry_pkg.utils.record_utils import DEFAULT_EXCLUDED_FIELDS, DEFAULT_EXCLUDED_OBJECTS


def relationships_of(schema: ObjectSchema) -> List[RelationshipField]:
    """All reference fields of a schema that point at one or more object types."""
    return [
        RelationshipField(
            field_name=f.name,
            field_label=f.label,
            reference_to=f.reference_to,
            relationship_name=f.relationship_name,
            is_required=not f.nillable,
            is_createable=f.createable
        )
        for f in schema.fields
        if f.is_reference and f.reference_to
    ]


class RelationshipDiscoverer:
    def __init__(self, schema_cache,
                 excluded_fields=DEFAULT_EXCLUDED_FIELDS,
                 excluded_objects=DEFAULT_EXCLUDED_OBJECTS):
        self.schema_cache = schema_cache
        self.excluded_fields = frozenset(excluded_fields)
        self.excluded_objects = frozenset(excluded_objects)

    def relationships_of(self, sobject: str) -> List[RelationshipField]:
        return relationships_of(self.schema_cache.describe(sobject))

    def default_config_for(self, sobject: str) -> List[RelationshipConfig]:
        """
        Default relationship configuration for an object.
        Owner/audit fields and lookups to users or other org specific objects
        are skipped, everything else createable is included. Polymorphic
        lookups default to their first target object.
        """
        configs = []
        for rel in self.relationships_of(sobject):
            if not rel.is_createable:
                continue
            excluded = (rel.field_name in self.excluded_fields or
                        any(obj in self.excluded_objects for obj in rel.reference_to))
            configs.append(RelationshipConfig(
                field_name=rel.field_name,
                action=RelationshipAction.SKIP if excluded else RelationshipAction.INCLUDE,
                reference_to=rel.reference_to[0]
            ))
        return configs

    def child_relationships(self, sobject: str) -> List[ChildRelationship]:
        return list(self.schema_cache.describe(sobject).child_relationships)

    def external_id_fields(self, sobject: str) -> List[FieldDescribe]:
        """Fields usable for matchByExternalId, external Ids first."""
        schema = self.schema_cache.describe(sobject)
        candidates = [f for f in schema.fields if f.external_id or f.unique]
        return sorted(candidates, key=lambda f: not f.external_id)


def apply_overrides(defaults: List[RelationshipConfig],
                    overrides: Optional[Dict[str, Dict[str, str]]]) -> List[RelationshipConfig]:
    """
    Applies caller overrides keyed by field name on top of a default config.

    Args:
        defaults: Default configuration (from default_config_for)
        overrides: {field_name: {"action": ..., "referenceTo": ..., "externalIdField": ...}}

    Returns:
        list: New configuration list, same field order as defaults
    """
    overrides = overrides or {}
    by_field = {config.field_name: config for config in defaults}
    unknown = sorted(set(overrides) - set(by_field))
    if unknown:
        raise ConfigError(f"Unknown relationship field(s): {', '.join(unknown)}")

    configs = []
    for config in defaults:
        override = overrides.get(config.field_name)
        if not override:
            configs.append(config)
            continue
        configs.append(RelationshipConfig(
            field_name=config.field_name,
            action=override.get('action', config.action),
            reference_to=override.get('referenceTo', config.reference_to),
            external_id_field=override.get('externalIdField')
        ))
    return configs
