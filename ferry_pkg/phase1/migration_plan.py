#!/usr/bin/env python3
"""
Migration Plan - Phase 1

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Flattens a record graph into insertion order: every record's related
records are finalized before the record itself, so parents come before
children.
"""

import logging
from typing import Set

from ferry_pkg.models import MigrationPlan, RecordGraph, RecordNode, RemappingInstruction
from ferry_pkg.utils.record_utils import DEFAULT_EXCLUDED_FIELDS, TERMINAL_OBJECTS, clean_record

logger = logging.getLogger(__name__)


class MigrationPlanBuilder:
    def __init__(self, excluded_fields=DEFAULT_EXCLUDED_FIELDS, terminal_objects=TERMINAL_OBJECTS):
        self.excluded_fields = frozenset(excluded_fields)
        self.terminal_objects = frozenset(terminal_objects)

    def build(self, graph: RecordGraph) -> MigrationPlan:
        """
        Depth-first post-order walk over the graph roots.

        A record reached through several edges is emitted once. A record that
        is still on the walk stack (a cycle back-reference) is not re-entered;
        its lookup is written after insertion by the executor's update pass.
        Terminal objects (RecordType) are never emitted.
        """
        plan = MigrationPlan()
        processed: Set[str] = set()
        in_progress: Set[str] = set()

        def process_record(node: RecordNode):
            record_id = node.record_id
            if record_id in processed or record_id in in_progress:
                return

            # Related records need to be inserted first
            in_progress.add(record_id)
            for edge in node.edges:
                for related in graph.related(edge):
                    process_record(related)
            in_progress.discard(record_id)
            processed.add(record_id)

            # RecordTypes are matched by DeveloperName in the target, not inserted
            if node.object_name in self.terminal_objects:
                return

            if node.object_name not in plan.object_order:
                plan.object_order.append(node.object_name)

            records = plan.records_by_object.setdefault(node.object_name, [])
            for edge in node.edges:
                if graph.related(edge):
                    plan.relationship_remapping.append(RemappingInstruction(
                        object_name=node.object_name,
                        field_name=edge.field_name,
                        original_id=node.record.get(edge.field_name),
                        record_index=len(records)
                    ))
            records.append(clean_record(node.record, self.excluded_fields))

        for root in graph.forest():
            process_record(root)
        plan.root_ids = list(graph.roots)

        plan.object_counts = {name: len(records) for name, records in plan.records_by_object.items()}
        plan.total_records = sum(plan.object_counts.values())
        logger.info(
            f"Migration plan: {plan.total_records} record(s) across {len(plan.object_order)} object(s): "
            f"{', '.join(plan.object_order)}"
        )
        return plan
