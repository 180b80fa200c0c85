#!/usr/bin/env python3
"""
Migration Exceptions

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License
"""


class FerryError(Exception):
    """Base class for all errors raised by Ferry."""
    pass


class SalesforceCliError(FerryError):
    """Custom exception for Salesforce CLI errors."""
    pass


class ConfigError(FerryError):
    """Invalid configuration file or relationship override."""
    pass


class SchemaFetchError(FerryError):
    """The describe call for an object type failed."""

    def __init__(self, object_name, message):
        super().__init__(f"Could not describe {object_name}: {message}")
        self.object_name = object_name


class RelatedRecordFetchError(FerryError):
    """A related record could not be fetched while expanding the record graph."""

    def __init__(self, object_name, record_id, message):
        super().__init__(f"Could not fetch {object_name} {record_id}: {message}")
        self.object_name = object_name
        self.record_id = record_id


class BatchInsertError(FerryError):
    """
    A write batch failed as a whole (transport, auth, CLI failure).

    Carries the partial MigrationResult for the target so completed object
    types are still reported.
    """

    def __init__(self, object_name, target, message, result=None):
        super().__init__(f"Batch insert of {object_name} into {target} failed: {message}")
        self.object_name = object_name
        self.target = target
        self.result = result
