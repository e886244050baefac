from .prune_scheduler import CachePruneScheduler
from .tracked_cache import TrackedCache

__all__ = ['CachePruneScheduler', 'TrackedCache']
