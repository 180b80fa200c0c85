#!/usr/bin/env python3
"""
Bulk Write Utilities

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Sends records to the target org in fixed-size batches instead of one-by-one.
"""

import logging
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from ferry_pkg.cli import MAX_COLLECTION_SIZE
from ferry_pkg.exceptions import SalesforceCliError
from ferry_pkg.models import InsertOutcome

logger = logging.getLogger(__name__)


def chunked(items: Sequence[Any], size: int) -> Iterator[Tuple[int, Sequence[Any]]]:
    """Yield (start_index, chunk) pairs of at most `size` items, preserving order."""
    if size < 1:
        raise ValueError("Chunk size must be at least 1")
    for start in range(0, len(items), size):
        yield start, items[start:start + size]


class BulkRecordWriter:
    """
    Batches record writes for one target org.
    Each batch is a single composite API call that reports per-record outcomes.
    """

    def __init__(self, sf_cli_target, batch_size: int = MAX_COLLECTION_SIZE):
        """
        Initialize bulk writer.

        Args:
            sf_cli_target: Salesforce CLI wrapper for target org
            batch_size: Records per call (1-200, default: 200)
        """
        if not 1 <= batch_size <= MAX_COLLECTION_SIZE:
            raise ValueError(f"batch_size must be between 1 and {MAX_COLLECTION_SIZE}")
        self.sf_cli_target = sf_cli_target
        self.batch_size = batch_size

    def _check(self, sobject: str, batch: Sequence[Dict[str, Any]], outcomes: List[InsertOutcome]) -> List[InsertOutcome]:
        if len(outcomes) != len(batch):
            raise SalesforceCliError(
                f"Expected {len(batch)} {sobject} results, got {len(outcomes)}"
            )
        return outcomes

    def insert_batch(self, sobject: str, batch: Sequence[Dict[str, Any]]) -> List[InsertOutcome]:
        logger.info(f"Inserting {len(batch)} {sobject} record(s)")
        outcomes = self.sf_cli_target.insert_records(sobject, list(batch))
        return self._check(sobject, batch, outcomes)

    def update_batch(self, sobject: str, batch: Sequence[Dict[str, Any]]) -> List[InsertOutcome]:
        logger.info(f"Updating {len(batch)} {sobject} record(s)")
        outcomes = self.sf_cli_target.update_records(sobject, list(batch))
        return self._check(sobject, batch, outcomes)

    def update_all(self, sobject: str, records: Sequence[Dict[str, Any]]) -> Iterator[Tuple[int, List[InsertOutcome]]]:
        """Update records batch by batch, yielding (start_index, outcomes)."""
        for start, batch in chunked(records, self.batch_size):
            yield start, self.update_batch(sobject, batch)
