#!/usr/bin/env python3
"""
Migration Session

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Ties schema caching, relationship analysis, planning and execution together
for one source org connection.
"""

import logging
from typing import Any, Dict, List, Optional

from ferry_pkg.cli import MAX_COLLECTION_SIZE
from ferry_pkg.models import (
    ChildRelationship,
    FieldDescribe,
    MigrationPlan,
    MigrationResult,
    ObjectSchema,
    RelationshipAction,
    RelationshipConfig,
    RelationshipField
)
from ferry_pkg.phase1 import MigrationPlanBuilder, RecordGraphBuilder, RelationshipDiscoverer
from ferry_pkg.phase2 import LookupResolver, execute_all
from ferry_pkg.utils.bulk_utils import chunked
from ferry_pkg.utils.record_utils import build_select_fields, quote_ids
from ferry_pkg.utils.schema_cache import SchemaCache

logger = logging.getLogger(__name__)


class MigrationSession:
    """
    One analysis/migration session against a source org.
    Describe results are cached for the lifetime of the session; reconnect()
    starts over with an empty cache.
    """

    def __init__(self, sf_cli_source):
        self.sf_cli_source = sf_cli_source
        self.schema_cache = SchemaCache(sf_cli_source)
        self.discoverer = RelationshipDiscoverer(self.schema_cache)

    def reconnect(self, sf_cli_source) -> None:
        self.sf_cli_source = sf_cli_source
        self.schema_cache = SchemaCache(sf_cli_source)
        self.discoverer = RelationshipDiscoverer(self.schema_cache)

    def describe(self, sobject: str) -> ObjectSchema:
        return self.schema_cache.describe(sobject)

    def relationships_of(self, sobject: str) -> List[RelationshipField]:
        return self.discoverer.relationships_of(sobject)

    def default_config_for(self, sobject: str) -> List[RelationshipConfig]:
        return self.discoverer.default_config_for(sobject)

    def child_relationships(self, sobject: str) -> List[ChildRelationship]:
        return self.discoverer.child_relationships(sobject)

    def external_id_fields(self, sobject: str) -> List[FieldDescribe]:
        return self.discoverer.external_id_fields(sobject)

    def fetch_records(self, sobject: str, record_ids: List[str]) -> List[Dict[str, Any]]:
        """Fetch root records by Id with their createable fields, 200 Ids per query."""
        schema = self.describe(sobject)
        fields_str = build_select_fields(schema.createable_field_names())

        records = []
        for _, batch in chunked(list(record_ids), MAX_COLLECTION_SIZE):
            query = f"SELECT {fields_str} FROM {sobject} WHERE Id IN ('{quote_ids(batch)}')"
            records.extend(self.sf_cli_source.query_records(query) or [])

        # Keep the caller's order
        by_id = {record['Id']: record for record in records}
        missing = [rid for rid in record_ids if rid not in by_id]
        if missing:
            logger.warning(f"{len(missing)} {sobject} record(s) not found in source: {', '.join(missing)}")
        logger.info(f"Fetched {len(by_id)} {sobject} record(s) from source")
        return [by_id[rid] for rid in record_ids if rid in by_id]

    def analyze(self, sobject: str, records: List[Dict[str, Any]],
                config: Optional[List[RelationshipConfig]] = None) -> MigrationPlan:
        """
        Expand the selected records into a record graph and flatten it into a plan.

        Args:
            sobject: Object type of the selected records
            records: Selected source records
            config: Relationship configuration for sobject (default config when None)
        """
        if config is None:
            config = self.default_config_for(sobject)

        builder = RecordGraphBuilder(self.sf_cli_source, self.schema_cache, self.discoverer)
        graph = builder.build(sobject, records, config)
        plan = MigrationPlanBuilder().build(graph)

        matches = [c for c in config if c.action is RelationshipAction.MATCH_BY_EXTERNAL_ID]
        if matches:
            plan.external_id_lookups[sobject] = matches
        return plan

    def execute(self, plan: MigrationPlan, targets: List[Any],
                batch_size: int = MAX_COLLECTION_SIZE, max_workers: int = 1) -> List[MigrationResult]:
        """Run the plan against each target org; one MigrationResult per target."""
        def resolver_for(sf_cli_target):
            return LookupResolver(self.sf_cli_source, sf_cli_target, plan.external_id_lookups, plan.root_ids)

        return execute_all(plan, targets, batch_size=batch_size,
                           lookup_resolver_factory=resolver_for, max_workers=max_workers)
