#!/usr/bin/env python3
"""
Target Lookup Resolution - Phase 2

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Resolves lookups that point at records this tool never inserts:
- RecordTypeId is mapped by SobjectType + DeveloperName
- matchByExternalId lookups are matched on an external Id field in the target
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ferry_pkg.exceptions import SalesforceCliError
from ferry_pkg.models import RelationshipConfig

logger = logging.getLogger(__name__)


def soql_literal(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    escaped = str(value).replace('\\', '\\\\').replace("'", "\\'")
    return f"'{escaped}'"


class LookupResolver:
    """
    Bound to one target org. Caches every resolution, including misses.

    External Id matching only applies to the records in root_ids (the
    selected records whose configuration asked for it). Related records of
    the same object type keep their own lookups. When root_ids is None every
    record of a configured object type is matched.
    """

    def __init__(self, sf_cli_source, sf_cli_target,
                 external_id_lookups: Optional[Dict[str, List[RelationshipConfig]]] = None,
                 root_ids: Optional[Iterable[str]] = None):
        self.sf_cli_source = sf_cli_source
        self.sf_cli_target = sf_cli_target
        self.external_id_lookups = external_id_lookups or {}
        self.root_ids = None if root_ids is None else frozenset(root_ids)
        self._record_type_cache: Dict[str, Optional[str]] = {}
        self._external_id_cache: Dict[tuple, Optional[str]] = {}

    def resolve(self, sobject: str, record: Dict[str, Any], original_id: Optional[str] = None) -> Dict[str, Any]:
        """Rewrite (or drop) the lookups of one outgoing record in place."""
        record_type_id = record.get('RecordTypeId')
        if record_type_id and isinstance(record_type_id, str):
            self._map_record_type(sobject, record)

        if self.root_ids is not None and original_id not in self.root_ids:
            return record
        for config in self.external_id_lookups.get(sobject, []):
            self._match_external_id(sobject, config, record)
        return record

    def _map_record_type(self, sobject: str, record: Dict[str, Any]) -> None:
        prod_record_type_id = record['RecordTypeId']

        if prod_record_type_id not in self._record_type_cache:
            target_id = None
            try:
                rt_info = self.sf_cli_source.get_record_type_info_by_id(prod_record_type_id)
                if rt_info and rt_info.get('DeveloperName'):
                    dev_name = rt_info['DeveloperName']
                    rt_object = rt_info.get('SobjectType') or sobject
                    target_id = self.sf_cli_target.get_record_type_id(rt_object, dev_name)
                    if target_id:
                        logger.info(f"    Mapped RecordType: {dev_name} ({prod_record_type_id} → {target_id})")
                    else:
                        logger.warning(f"    RecordType '{dev_name}' not found in {self.sf_cli_target.target_org}")
                else:
                    logger.warning(f"    Could not get RecordType info for {prod_record_type_id}")
            except SalesforceCliError as e:
                logger.warning(f"    Could not map RecordType {prod_record_type_id}: {e}")
            self._record_type_cache[prod_record_type_id] = target_id

        target_id = self._record_type_cache[prod_record_type_id]
        if target_id:
            record['RecordTypeId'] = target_id
        else:
            # Let the target fall back to the default RecordType
            del record['RecordTypeId']

    def _match_external_id(self, sobject: str, config: RelationshipConfig, record: Dict[str, Any]) -> None:
        source_id = record.get(config.field_name)
        if not source_id or isinstance(source_id, dict):
            return

        key = (config.reference_to, config.external_id_field, source_id)
        if key not in self._external_id_cache:
            try:
                self._external_id_cache[key] = self._lookup_by_external_id(config, source_id)
            except SalesforceCliError as e:
                logger.warning(f"    External Id lookup for {sobject}.{config.field_name} failed: {e}")
                self._external_id_cache[key] = None

        target_id = self._external_id_cache[key]
        if target_id:
            record[config.field_name] = target_id
        else:
            logger.warning(
                f"    No {config.reference_to} with matching {config.external_id_field} for "
                f"{sobject}.{config.field_name} = {source_id}, removing field"
            )
            del record[config.field_name]

    def _lookup_by_external_id(self, config: RelationshipConfig, source_id: str) -> Optional[str]:
        external_field = config.external_id_field
        source_rows = self.sf_cli_source.query_records(
            f"SELECT Id, {external_field} FROM {config.reference_to} WHERE Id = '{source_id}' LIMIT 1"
        )
        if not source_rows:
            return None
        external_value = source_rows[0].get(external_field)
        if external_value is None or external_value == '':
            return None

        target_rows = self.sf_cli_target.query_records(
            f"SELECT Id FROM {config.reference_to} "
            f"WHERE {external_field} = {soql_literal(external_value)} LIMIT 1"
        )
        if not target_rows:
            return None
        logger.info(f"    Matched {config.reference_to} {external_field}={external_value} → {target_rows[0]['Id']}")
        return target_rows[0]['Id']
