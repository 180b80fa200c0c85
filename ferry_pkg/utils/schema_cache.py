#!/usr/bin/env python3
"""
Object Schema Cache

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License
"""

import logging
from typing import Dict

from ferry_pkg.exceptions import SchemaFetchError
from ferry_pkg.models import ObjectSchema

# Configure logging
logger = logging.getLogger(__name__)


class SchemaCache:
    """
    Memoizes describe results per object type for the lifetime of one
    migration session. Not safe to share between concurrently running sessions.
    """

    def __init__(self, sf_cli_source):
        self.sf_cli_source = sf_cli_source
        self._cache: Dict[str, ObjectSchema] = {}

    def describe(self, sobject: str) -> ObjectSchema:
        """
        Return the schema for an object, fetching it from the source org once.

        Raises:
            SchemaFetchError: If the describe call fails
        """
        cached = self._cache.get(sobject)
        if cached is not None:
            logger.debug(f"Cache hit for {sobject} describe")
            return cached

        try:
            describe = self.sf_cli_source.describe(sobject)
        except Exception as e:
            logger.error(f"Failed to describe {sobject}: {e}")
            raise SchemaFetchError(sobject, str(e)) from e

        schema = ObjectSchema.from_describe(sobject, describe)
        self._cache[sobject] = schema
        logger.info(f"Described {sobject}: {len(schema.fields)} fields")
        return schema

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, sobject):
        return sobject in self._cache

    def __len__(self):
        return len(self._cache)
