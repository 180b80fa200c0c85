"""Phase 2: insert the migration plan into target orgs and write deferred lookups."""

from .lookup_resolver import LookupResolver
from .migration_executor import MigrationExecutor, execute_all

__all__ = [
    'LookupResolver',
    'MigrationExecutor',
    'execute_all'
]
