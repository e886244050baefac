"""
Scheduler for the periodic pruning of the cache namespace indexes.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

from .tracked_cache import TrackedCache

logger = logging.getLogger(__name__)


class CachePruneScheduler:
    """Runs ``TrackedCache.prune_expired`` on the service's event loop."""

    def __init__(self, cache: TrackedCache, interval_seconds: int = 60):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self.running = False
        self.last_prune_time: Optional[datetime] = None
        self.task: Optional[asyncio.Task] = None

    async def run_once(self) -> int:
        removed = await self.cache.prune_expired()
        self.last_prune_time = datetime.now()
        return removed

    async def _run_scheduler(self):
        while self.running:
            try:
                await asyncio.sleep(self.interval_seconds)
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error in cache prune loop: {str(e)}")

    def start(self):
        if self.running:
            return
        self.running = True
        self.task = asyncio.get_running_loop().create_task(self._run_scheduler())
        logger.info(f"Cache prune scheduler started with interval {self.interval_seconds}s")

    async def stop(self):
        if not self.running:
            return
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Cache prune scheduler stopped")
