"""Utility modules for schema caching, record cleaning, CSV export and bulk writes."""

from .schema_cache import SchemaCache
from .record_utils import (
    DEFAULT_EXCLUDED_FIELDS,
    DEFAULT_EXCLUDED_OBJECTS,
    TERMINAL_OBJECTS,
    clean_record,
    build_select_fields
)
from .csv_utils import write_id_mapping_csv
from .bulk_utils import BulkRecordWriter, chunked

__all__ = [
    'SchemaCache',
    'DEFAULT_EXCLUDED_FIELDS',
    'DEFAULT_EXCLUDED_OBJECTS',
    'TERMINAL_OBJECTS',
    'clean_record',
    'build_select_fields',
    'write_id_mapping_csv',
    'BulkRecordWriter',
    'chunked'
]
