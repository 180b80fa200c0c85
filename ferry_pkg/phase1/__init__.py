"""Phase 1: relationship discovery, record graph expansion and migration planning."""

from .relationships import RelationshipDiscoverer, relationships_of, apply_overrides
from .record_graph import RecordGraphBuilder
from .migration_plan import MigrationPlanBuilder

__all__ = [
    'RelationshipDiscoverer',
    'relationships_of',
    'apply_overrides',
    'RecordGraphBuilder',
    'MigrationPlanBuilder'
]
