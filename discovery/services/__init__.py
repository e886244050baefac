from .dispatcher import CommandDispatcher
from .ingestion import EventIngestion
from .preference_store import PreferenceStore
from .preference_tracker import PreferenceTracker
from .query_engine import QueryEngine
from .replica_store import ReplicaStore
from .search_backends import ElasticsearchBackend, ReplicaSearchBackend, SearchBackend

__all__ = [
    'CommandDispatcher',
    'ElasticsearchBackend',
    'EventIngestion',
    'PreferenceStore',
    'PreferenceTracker',
    'QueryEngine',
    'ReplicaSearchBackend',
    'ReplicaStore',
    'SearchBackend',
]
