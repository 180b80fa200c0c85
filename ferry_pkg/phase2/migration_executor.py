#!/usr/bin/env python3
"""
Migration Execution - Phase 2

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Inserts a migration plan into a target org object by object, replacing
source Ids with the Ids created earlier in the same run. Lookups to records
that are inserted later (cycles, same-batch parents) are written afterwards
with a bulk update.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from rich.console import Console

from ferry_pkg.cli import MAX_COLLECTION_SIZE
from ferry_pkg.exceptions import BatchInsertError
from ferry_pkg.models import ORIGINAL_ID_KEY, MigrationPlan, MigrationResult, ObjectResult
from ferry_pkg.utils.bulk_utils import BulkRecordWriter, chunked

logger = logging.getLogger(__name__)
console = Console()


@dataclass
class DeferredLookup:
    object_name: str
    record_number: int
    target_id: str
    field_name: str
    referenced_id: str


def join_errors(errors) -> str:
    return ', '.join(errors) if errors else 'Unknown error'


class MigrationExecutor:
    """Runs one migration plan against one target org."""

    def __init__(self, sf_cli_target, batch_size: int = MAX_COLLECTION_SIZE, lookup_resolver=None):
        self.sf_cli_target = sf_cli_target
        self.writer = BulkRecordWriter(sf_cli_target, batch_size)
        self.lookup_resolver = lookup_resolver

    @property
    def target_label(self) -> str:
        return getattr(self.sf_cli_target, 'target_org', None) or repr(self.sf_cli_target)

    def execute(self, plan: MigrationPlan) -> MigrationResult:
        """
        Insert every object type of the plan, in plan order.

        Returns:
            MigrationResult: Per-object counts and errors plus the Id mapping

        Raises:
            BatchInsertError: A batch failed as a whole; carries the partial result
        """
        result = MigrationResult(target=self.target_label)
        plan_ids = plan.original_ids()
        deferred: List[DeferredLookup] = []

        logger.info(f"Migrating {plan.total_records} record(s) into {self.target_label}")

        for sobject in plan.object_order:
            records = plan.records_by_object.get(sobject) or []
            if not records:
                continue

            object_result = ObjectResult(object_name=sobject)
            result.results.append(object_result)
            try:
                self._insert_object(sobject, records, object_result, result.id_mapping, plan_ids, deferred)
            except Exception as e:
                object_result.aborted = True
                logger.error(f"  ✗ Aborting {sobject} migration into {self.target_label}: {e}")
                # Records already created still get their pending lookups
                if deferred:
                    try:
                        self._update_deferred_lookups(result, deferred)
                    except BatchInsertError as update_error:
                        logger.error(f"  ✗ {update_error}")
                result.error = f"{sobject}: {e}"
                raise BatchInsertError(sobject, self.target_label, str(e), result) from e

            console.print(
                f"  [green]✓ {sobject}: {object_result.inserted} inserted[/green]"
                + (f" [red]{object_result.failed} failed[/red]" if object_result.failed else "")
            )
            logger.info(f"  {sobject} Summary: {object_result.inserted} inserted, {object_result.failed} failed")

        if deferred:
            self._update_deferred_lookups(result, deferred)

        logger.info(
            f"Migration into {self.target_label} finished: "
            f"{result.total_inserted} inserted, {result.total_failed} failed"
        )
        return result

    def _prepare(self, sobject: str, record: Dict[str, Any], id_mapping: Dict[str, str],
                 plan_ids: Set[str]) -> Tuple[Dict[str, Any], List[Tuple[str, str]]]:
        """Build the outgoing payload; returns (payload, [(field, source_id) to write later])."""
        payload = dict(record)
        original_id = payload.pop(ORIGINAL_ID_KEY, None)

        # External Id / RecordType matching works on the source values
        if self.lookup_resolver:
            self.lookup_resolver.resolve(sobject, payload, original_id)

        pending = []
        for field_name, value in list(payload.items()):
            if not isinstance(value, str):
                continue
            if value in id_mapping:
                payload[field_name] = id_mapping[value]
            elif value in plan_ids:
                # Referenced record is not inserted yet
                pending.append((field_name, value))
                del payload[field_name]
        return payload, pending

    def _insert_object(self, sobject, records, object_result, id_mapping, plan_ids, deferred):
        for start, batch in chunked(records, self.writer.batch_size):
            # Prepared per batch so earlier batches' Ids are already mapped
            prepared = [self._prepare(sobject, record, id_mapping, plan_ids) for record in batch]
            outcomes = self.writer.insert_batch(sobject, [payload for payload, _ in prepared])

            for offset, (record, (_, pending), outcome) in enumerate(zip(batch, prepared, outcomes)):
                record_number = start + offset + 1
                if outcome.success:
                    object_result.inserted += 1
                    original_id = record.get(ORIGINAL_ID_KEY)
                    if original_id and outcome.id:
                        id_mapping[original_id] = outcome.id
                        object_result.created[original_id] = outcome.id
                    for field_name, referenced_id in pending:
                        deferred.append(DeferredLookup(sobject, record_number, outcome.id, field_name, referenced_id))
                else:
                    object_result.failed += 1
                    object_result.errors.append(f"Record {record_number}: {join_errors(outcome.errors)}")

    def _update_deferred_lookups(self, result: MigrationResult, deferred: List[DeferredLookup]) -> None:
        """Write lookups whose referenced record was created after the referencing one."""
        logger.info(f"[PHASE 2] Updating {len(deferred)} deferred lookup(s) in {self.target_label}")

        # object -> target Id -> (record number, update payload)
        by_object: Dict[str, Dict[str, Tuple[int, Dict[str, Any]]]] = {}
        for lookup in deferred:
            new_id = result.id_mapping.get(lookup.referenced_id)
            if not new_id:
                logger.warning(
                    f"  {lookup.object_name} record {lookup.record_number}: {lookup.field_name} → "
                    f"{lookup.referenced_id} was not created, leaving it empty"
                )
                continue
            updates = by_object.setdefault(lookup.object_name, {})
            _, payload = updates.setdefault(lookup.target_id, (lookup.record_number, {'Id': lookup.target_id}))
            payload[lookup.field_name] = new_id

        for sobject, updates in by_object.items():
            object_result = result.result_for(sobject)
            entries = list(updates.values())
            payloads = [payload for _, payload in entries]
            try:
                for start, outcomes in self.writer.update_all(sobject, payloads):
                    for offset, outcome in enumerate(outcomes):
                        record_number, payload = entries[start + offset]
                        fields = ', '.join(name for name in payload if name != 'Id')
                        if outcome.success:
                            result.lookups_updated += len(payload) - 1
                        else:
                            object_result.errors.append(
                                f"Record {record_number}: lookup {fields} not updated: {join_errors(outcome.errors)}"
                            )
            except Exception as e:
                result.error = f"{sobject} lookup update: {e}"
                logger.error(f"  ✗ Lookup update for {sobject} in {self.target_label} failed: {e}")
                raise BatchInsertError(sobject, self.target_label, f"lookup update failed: {e}", result) from e

        console.print(f"  [green]✓ Lookup update: {result.lookups_updated} field(s) updated[/green]")


def execute_all(plan: MigrationPlan, targets: List[Any], batch_size: int = MAX_COLLECTION_SIZE,
                lookup_resolver_factory: Optional[Callable[[Any], Any]] = None,
                max_workers: int = 1) -> List[MigrationResult]:
    """
    Run the same plan against several target orgs independently.
    A failed target returns its partial result with `error` set; the other
    targets are not affected. Results come back in target order.
    """
    def run(sf_cli_target):
        resolver = lookup_resolver_factory(sf_cli_target) if lookup_resolver_factory else None
        executor = MigrationExecutor(sf_cli_target, batch_size, resolver)
        try:
            return executor.execute(plan)
        except BatchInsertError as e:
            logger.error(f"Migration into {executor.target_label} aborted: {e}")
            return e.result

    if max_workers > 1 and len(targets) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(run, targets))
    return [run(target) for target in targets]
