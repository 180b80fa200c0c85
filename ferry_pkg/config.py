#!/usr/bin/env python3
"""
Configuration Loading

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License

Reads ~/Ferry.json (or --config) into a MigrationConfig.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ferry_pkg.cli import DEFAULT_API_VERSION, MAX_COLLECTION_SIZE
from ferry_pkg.exceptions import ConfigError
from ferry_pkg.models import RelationshipAction

DEFAULT_CONFIG_PATH = Path.home() / 'Ferry.json'

VALID_ACTIONS = {action.value for action in RelationshipAction}


@dataclass
class MigrationConfig:
    source_alias: Optional[str] = None
    target_aliases: List[str] = field(default_factory=list)
    object_name: Optional[str] = None
    record_ids: List[str] = field(default_factory=list)
    relationships: Dict[str, Dict[str, str]] = field(default_factory=dict)
    batch_size: int = MAX_COLLECTION_SIZE
    max_workers: int = 1
    api_version: str = DEFAULT_API_VERSION
    export_id_mapping: bool = True


def _string_list(raw, key):
    value = raw.get(key, [])
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"'{key}' must be a list of strings")
    return value


def _validate_relationships(relationships):
    if not isinstance(relationships, dict):
        raise ConfigError("'relationships' must be an object keyed by field name")
    for field_name, override in relationships.items():
        if not isinstance(override, dict):
            raise ConfigError(f"Relationship override for {field_name} must be an object")
        action = override.get('action')
        if action is not None and action not in VALID_ACTIONS:
            raise ConfigError(
                f"Unknown action '{action}' for {field_name} (expected one of: {', '.join(sorted(VALID_ACTIONS))})"
            )
        if action == RelationshipAction.MATCH_BY_EXTERNAL_ID.value and not override.get('externalIdField'):
            raise ConfigError(f"{field_name}: matchByExternalId requires 'externalIdField'")
    return relationships


def parse_config(raw: dict) -> MigrationConfig:
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a JSON object")

    batch_size = raw.get('batch_size', MAX_COLLECTION_SIZE)
    if not isinstance(batch_size, int) or not 1 <= batch_size <= MAX_COLLECTION_SIZE:
        raise ConfigError(f"'batch_size' must be an integer between 1 and {MAX_COLLECTION_SIZE}")

    max_workers = raw.get('max_workers', 1)
    if not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigError("'max_workers' must be a positive integer")

    return MigrationConfig(
        source_alias=raw.get('source_alias'),
        target_aliases=_string_list(raw, 'target_aliases'),
        object_name=raw.get('object'),
        record_ids=_string_list(raw, 'record_ids'),
        relationships=_validate_relationships(raw.get('relationships', {})),
        batch_size=batch_size,
        max_workers=max_workers,
        api_version=str(raw.get('api_version', DEFAULT_API_VERSION)),
        export_id_mapping=bool(raw.get('export_id_mapping', True))
    )


def load_config(config_path) -> MigrationConfig:
    """
    Load and validate a JSON configuration file.

    Raises:
        ConfigError: If the file is missing, not valid JSON or has invalid values
    """
    config_path = Path(config_path).expanduser()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found at: {config_path}")

    try:
        with open(config_path, 'r') as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {config_path}: {e}") from e

    return parse_config(raw)
