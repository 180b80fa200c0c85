#!/usr/bin/env python3
"""
Record Graph Expansion - Phase 1

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Recursively fetches the records referenced by the selected records and
links them into a RecordGraph. Each record is fetched and expanded at most
once per run, which also terminates cycles (A -> B -> A).
"""

import logging
from typing import Any, Dict, List, Optional, Set

from ferry_pkg.exceptions import RelatedRecordFetchError, SalesforceCliError, SchemaFetchError
from ferry_pkg.models import RecordGraph, RecordNode, RelationshipConfig, RelationshipEdge
from ferry_pkg.utils.record_utils import TERMINAL_OBJECTS, build_select_fields

logger = logging.getLogger(__name__)


class RecordGraphBuilder:
    """
    Builds the record graph for one migration run.
    The builder owns the graph arena until build() hands it to the plan builder.
    """

    def __init__(self, sf_cli_source, schema_cache, discoverer, terminal_objects=TERMINAL_OBJECTS):
        self.sf_cli_source = sf_cli_source
        self.schema_cache = schema_cache
        self.discoverer = discoverer
        self.terminal_objects = frozenset(terminal_objects)
        self.graph = RecordGraph()
        self.fetch_count = 0

    def build(self, sobject: str, records: List[Dict[str, Any]],
              config: List[RelationshipConfig]) -> RecordGraph:
        """Expand the root records and return the finished graph."""
        visited: Set[str] = set()
        self.expand(sobject, records, config, visited)

        # A root can already have been pulled in as another root's related record
        for record in records:
            record_id = record.get('Id')
            if record_id in self.graph and record_id not in self.graph.roots:
                self.graph.roots.append(record_id)
        logger.info(
            f"Record graph for {len(self.graph.roots)} {sobject} record(s): "
            f"{len(self.graph)} record(s), {self.fetch_count} related fetch(es)"
        )
        return self.graph

    def expand(self, sobject: str, records: List[Dict[str, Any]],
               config: List[RelationshipConfig], visited: Optional[Set[str]] = None) -> List[RecordNode]:
        """
        Expand records into nodes, following every 'include' relationship.

        Args:
            sobject: Object type of the records
            records: Source records (must carry 'Id')
            config: Relationship configuration for this object type
            visited: Ids already expanded in this run, shared across the recursion

        Returns:
            list: One RecordNode per record that had not been visited yet
        """
        if visited is None:
            visited = set()
        included = [c for c in config if c.include]

        nodes = []
        for record in records:
            record_id = record.get('Id')
            if not record_id:
                logger.warning(f"Skipping {sobject} record without Id")
                continue
            if record_id in visited:
                continue
            # Mark before recursing so cycles terminate
            visited.add(record_id)

            node = RecordNode(object_name=sobject, record=dict(record))
            self.graph.add(node)

            if sobject not in self.terminal_objects:
                for rel_config in included:
                    edge = self._expand_edge(node, rel_config, visited)
                    if edge:
                        node.edges.append(edge)

            nodes.append(node)

        return nodes

    def _expand_edge(self, node: RecordNode, rel_config: RelationshipConfig,
                     visited: Set[str]) -> Optional[RelationshipEdge]:
        related_id = node.record.get(rel_config.field_name)
        if not related_id or isinstance(related_id, dict):
            return None

        # Already in the graph through another path: reference it, don't refetch
        if related_id in self.graph:
            return RelationshipEdge(rel_config.field_name, [related_id])
        if related_id in visited:
            return None

        related_object = rel_config.reference_to
        try:
            related_records = self._fetch_related(related_object, related_id)
        except RelatedRecordFetchError as e:
            logger.warning(f"  Error fetching related record for {node.object_name}.{rel_config.field_name}: {e}")
            return None

        if not related_records:
            # Polymorphic lookups can point at another object type than the configured one
            logger.warning(
                f"  {node.object_name}.{rel_config.field_name}: no {related_object} found for {related_id} "
                f"(key prefix {related_id[:3]}), value is copied unchanged"
            )
            return None

        if related_object in self.terminal_objects:
            nested_config = []
        else:
            nested_config = self.discoverer.default_config_for(related_object)
        related_nodes = self.expand(related_object, related_records, nested_config, visited)
        if not related_nodes:
            return None

        return RelationshipEdge(rel_config.field_name, [n.record_id for n in related_nodes])

    def _fetch_related(self, sobject: str, record_id: str) -> List[Dict[str, Any]]:
        """Fetch one record by Id with its createable fields."""
        try:
            schema = self.schema_cache.describe(sobject)
            fields_str = build_select_fields(schema.createable_field_names())
            query = f"SELECT {fields_str} FROM {sobject} WHERE Id = '{record_id}'"
            self.fetch_count += 1
            return self.sf_cli_source.query_records(query) or []
        except (SchemaFetchError, SalesforceCliError) as e:
            raise RelatedRecordFetchError(sobject, record_id, str(e)) from e
