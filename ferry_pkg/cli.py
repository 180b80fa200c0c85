#!/usr/bin/env python3
"""
Salesforce CLI Wrapper

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Thin wrapper around the 'sf' command line. Every call returns parsed JSON or
raises SalesforceCliError.
"""

import json
import logging
import subprocess
from typing import Any, Dict, List, Optional

from ferry_pkg.exceptions import SalesforceCliError
from ferry_pkg.models import InsertOutcome

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = '62.0'
# Composite sObject collection limit
MAX_COLLECTION_SIZE = 200


class SalesforceCLI:
    """Runs 'sf' commands against one org alias."""

    def __init__(self, target_org: str, api_version: str = DEFAULT_API_VERSION, timeout: int = 120):
        self.target_org = target_org
        self.api_version = api_version
        self.timeout = timeout
        self._record_type_ids: Dict[tuple, Optional[str]] = {}

    def __repr__(self):
        return f"SalesforceCLI(target_org={self.target_org!r})"

    def _run(self, command: List[str], stdin: Optional[str] = None) -> str:
        try:
            result = subprocess.run(
                command,
                input=stdin,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False
            )
        except subprocess.TimeoutExpired as e:
            raise SalesforceCliError(f"CLI command timed out after {self.timeout} seconds") from e
        except FileNotFoundError as e:
            raise SalesforceCliError(
                "SF CLI not found. Please install Salesforce CLI: "
                "https://developer.salesforce.com/tools/salesforcecli"
            ) from e

        if result.returncode != 0:
            error_msg = result.stderr or result.stdout
            # --json errors come back on stdout with a message
            try:
                error_msg = json.loads(result.stdout).get('message') or error_msg
            except (json.JSONDecodeError, TypeError, AttributeError):
                pass
            raise SalesforceCliError(f"CLI command failed ({' '.join(command[:3])}): {error_msg}")
        return result.stdout

    def _run_json(self, command: List[str]) -> Any:
        stdout = self._run(command + ['--target-org', self.target_org, '--json'])
        try:
            response = json.loads(stdout)
        except json.JSONDecodeError as e:
            raise SalesforceCliError(f"Invalid JSON response from CLI: {stdout[:500]}") from e

        if response.get('status') != 0:
            raise SalesforceCliError(f"SF CLI error: {response.get('message', 'Unknown error')}")
        return response.get('result')

    def _rest(self, method: str, path: str, body: Any) -> Any:
        url = f"/services/data/v{self.api_version}{path}"
        command = [
            'sf', 'api', 'request', 'rest', url,
            '--method', method,
            '--body', '-',
            '--target-org', self.target_org,
        ]
        stdout = self._run(command, stdin=json.dumps(body))
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise SalesforceCliError(f"Invalid JSON response from REST call {url}: {stdout[:500]}") from e

    def describe(self, sobject: str) -> Dict[str, Any]:
        """Raw describe payload for an object (fields, childRelationships, ...)."""
        return self._run_json(['sf', 'sobject', 'describe', '--sobject', sobject]) or {}

    def query_records(self, query: str) -> List[Dict[str, Any]]:
        result = self._run_json(['sf', 'data', 'query', '--query', query]) or {}
        return result.get('records', [])

    def _write_collection(self, method: str, sobject: str, records: List[Dict[str, Any]]) -> List[InsertOutcome]:
        if len(records) > MAX_COLLECTION_SIZE:
            raise SalesforceCliError(
                f"Cannot send {len(records)} {sobject} records in one call (max {MAX_COLLECTION_SIZE})"
            )
        body = {
            'allOrNone': False,
            'records': [dict(record, attributes={'type': sobject}) for record in records]
        }
        response = self._rest(method, '/composite/sobjects', body)
        if not isinstance(response, list):
            # Errors on the whole request come back as a list of error objects or a dict
            raise SalesforceCliError(f"Unexpected response writing {sobject}: {response}")
        if response and 'success' not in response[0]:
            raise SalesforceCliError(f"{sobject} request rejected: {response[0].get('message', response[0])}")
        return [InsertOutcome.from_response(item) for item in response]

    def insert_records(self, sobject: str, records: List[Dict[str, Any]]) -> List[InsertOutcome]:
        """Insert up to 200 records; one outcome per record, in order."""
        return self._write_collection('POST', sobject, records)

    def update_records(self, sobject: str, records: List[Dict[str, Any]]) -> List[InsertOutcome]:
        """Update up to 200 records; each record must carry 'Id'."""
        return self._write_collection('PATCH', sobject, records)

    def get_org_info(self) -> Optional[Dict[str, Any]]:
        try:
            return self._run_json(['sf', 'org', 'display'])
        except SalesforceCliError as e:
            logger.warning(f"Could not read org info for {self.target_org}: {e}")
            return None

    def get_record_type_info_by_id(self, record_type_id: str) -> Optional[Dict[str, Any]]:
        records = self.query_records(
            f"SELECT Id, DeveloperName, SobjectType FROM RecordType WHERE Id = '{record_type_id}' LIMIT 1"
        )
        return records[0] if records else None

    def get_record_type_id(self, sobject: str, developer_name: str) -> Optional[str]:
        key = (sobject, developer_name)
        if key not in self._record_type_ids:
            records = self.query_records(
                f"SELECT Id FROM RecordType WHERE SobjectType = '{sobject}' "
                f"AND DeveloperName = '{developer_name}' LIMIT 1"
            )
            self._record_type_ids[key] = records[0]['Id'] if records else None
        return self._record_type_ids[key]
