#!/usr/bin/env python3
"""
Migration Data Model

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Schema metadata, relationship configuration, the record graph, the migration
plan and migration results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from ferry_pkg.exceptions import ConfigError

# Reserved key carrying a cleaned record's source Id until it is inserted
ORIGINAL_ID_KEY = '_originalId'


@dataclass(frozen=True)
class FieldDescribe:
    name: str
    label: str
    type: str
    reference_to: Tuple[str, ...] = ()
    relationship_name: Optional[str] = None
    nillable: bool = True
    createable: bool = False
    external_id: bool = False
    unique: bool = False

    @property
    def is_reference(self) -> bool:
        return self.type == 'reference'

    @classmethod
    def from_describe(cls, field_desc: Dict[str, Any]) -> 'FieldDescribe':
        return cls(
            name=field_desc['name'],
            label=field_desc.get('label') or field_desc['name'],
            type=(field_desc.get('type') or '').lower(),
            reference_to=tuple(field_desc.get('referenceTo') or ()),
            relationship_name=field_desc.get('relationshipName'),
            nillable=bool(field_desc.get('nillable', True)),
            createable=bool(field_desc.get('createable', False)),
            external_id=bool(field_desc.get('externalId', False)),
            unique=bool(field_desc.get('unique', False)),
        )


@dataclass(frozen=True)
class ChildRelationship:
    child_sobject: str
    field: str
    relationship_name: str


@dataclass(frozen=True)
class ObjectSchema:
    """Structural metadata for one object type, as returned by describe."""
    name: str
    fields: Tuple[FieldDescribe, ...] = ()
    child_relationships: Tuple[ChildRelationship, ...] = ()

    @classmethod
    def from_describe(cls, object_name: str, describe: Dict[str, Any]) -> 'ObjectSchema':
        fields = tuple(FieldDescribe.from_describe(f) for f in describe.get('fields') or [])
        children = tuple(
            ChildRelationship(
                child_sobject=rel['childSObject'],
                field=rel['field'],
                relationship_name=rel['relationshipName'],
            )
            for rel in describe.get('childRelationships') or []
            if rel.get('childSObject') and rel.get('field') and rel.get('relationshipName')
        )
        return cls(name=describe.get('name') or object_name, fields=fields, child_relationships=children)

    def get_field(self, name: str) -> Optional[FieldDescribe]:
        for field_desc in self.fields:
            if field_desc.name == name:
                return field_desc
        return None

    def createable_field_names(self) -> List[str]:
        return [f.name for f in self.fields if f.createable]


@dataclass(frozen=True)
class RelationshipField:
    field_name: str
    field_label: str
    reference_to: Tuple[str, ...]
    relationship_name: Optional[str]
    is_required: bool
    is_createable: bool


class RelationshipAction(str, Enum):
    INCLUDE = 'include'
    SKIP = 'skip'
    MATCH_BY_EXTERNAL_ID = 'matchByExternalId'


@dataclass
class RelationshipConfig:
    """What to do with one relationship field during a migration."""
    field_name: str
    action: RelationshipAction
    reference_to: str
    external_id_field: Optional[str] = None

    def __post_init__(self):
        try:
            self.action = RelationshipAction(self.action)
        except ValueError as e:
            raise ConfigError(f"Unknown relationship action '{self.action}' for {self.field_name}") from e
        if self.action is RelationshipAction.MATCH_BY_EXTERNAL_ID and not self.external_id_field:
            raise ConfigError(f"{self.field_name}: matchByExternalId requires an external Id field")

    @property
    def include(self) -> bool:
        return self.action is RelationshipAction.INCLUDE


@dataclass
class RelationshipEdge:
    field_name: str
    related_ids: List[str] = field(default_factory=list)


@dataclass
class RecordNode:
    object_name: str
    record: Dict[str, Any]
    edges: List[RelationshipEdge] = field(default_factory=list)

    @property
    def record_id(self) -> str:
        return self.record.get('Id')


@dataclass
class RecordGraph:
    """
    Arena of record nodes indexed by source Id.
    Edges refer to nodes by Id so shared and cyclic references stay flat.
    """
    nodes: Dict[str, RecordNode] = field(default_factory=dict)
    roots: List[str] = field(default_factory=list)

    def add(self, node: RecordNode) -> None:
        self.nodes[node.record_id] = node

    def related(self, edge: RelationshipEdge) -> List[RecordNode]:
        return [self.nodes[rid] for rid in edge.related_ids if rid in self.nodes]

    def forest(self) -> List[RecordNode]:
        return [self.nodes[rid] for rid in self.roots]

    def __len__(self):
        return len(self.nodes)

    def __contains__(self, record_id):
        return record_id in self.nodes


@dataclass(frozen=True)
class RemappingInstruction:
    object_name: str
    field_name: str
    original_id: str
    record_index: int


@dataclass
class MigrationPlan:
    """Records grouped by object type, in insertion order (parents before children)."""
    object_order: List[str] = field(default_factory=list)
    records_by_object: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    relationship_remapping: List[RemappingInstruction] = field(default_factory=list)
    total_records: int = 0
    object_counts: Dict[str, int] = field(default_factory=dict)
    external_id_lookups: Dict[str, List[RelationshipConfig]] = field(default_factory=dict)
    # Source Ids of the selected records; external_id_lookups apply to these only
    root_ids: List[str] = field(default_factory=list)

    def original_ids(self) -> Set[str]:
        return {
            record[ORIGINAL_ID_KEY]
            for records in self.records_by_object.values()
            for record in records
            if record.get(ORIGINAL_ID_KEY)
        }


@dataclass(frozen=True)
class InsertOutcome:
    success: bool
    id: Optional[str] = None
    errors: Tuple[str, ...] = ()

    @classmethod
    def from_response(cls, item: Dict[str, Any]) -> 'InsertOutcome':
        """Build from one composite API result: {"id", "success", "errors": [{"message", "statusCode"}]}."""
        errors = []
        for err in item.get('errors') or []:
            if isinstance(err, dict):
                code = err.get('statusCode')
                message = err.get('message') or ''
                errors.append(f"{code}: {message}" if code else message)
            else:
                errors.append(str(err))
        return cls(success=bool(item.get('success')), id=item.get('id'), errors=tuple(errors))


@dataclass
class ObjectResult:
    object_name: str
    inserted: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    created: Dict[str, str] = field(default_factory=dict)
    aborted: bool = False


@dataclass
class MigrationResult:
    target: str
    results: List[ObjectResult] = field(default_factory=list)
    id_mapping: Dict[str, str] = field(default_factory=dict)
    lookups_updated: int = 0
    error: Optional[str] = None

    @property
    def total_inserted(self) -> int:
        return sum(r.inserted for r in self.results)

    @property
    def total_failed(self) -> int:
        return sum(r.failed for r in self.results)

    @property
    def success(self) -> bool:
        return self.error is None and self.total_failed == 0

    def result_for(self, object_name: str) -> Optional[ObjectResult]:
        for result in self.results:
            if result.object_name == object_name:
                return result
        return None
