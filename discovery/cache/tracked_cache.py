"""
Redis-backed result cache with namespace invalidation.

Redis only deletes by exact key, so every tracked write also registers its key
in a per-namespace index. The index is a sorted set scored by the key's expiry
timestamp: invalidation walks the set, and pruning drops members whose TTL has
already lapsed.
"""

import json
import logging
import time
from functools import wraps
from typing import Any, Callable, Optional

from redis import RedisError, WatchError

logger = logging.getLogger(__name__)

INDEX_PREFIX = "cache:index:"
NAMESPACE_REGISTRY = "cache:namespaces"


def handle_redis_errors(default=None):
    """Log Redis failures and hand back ``default`` so reads degrade to a miss."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except RedisError as e:
                logger.error(f"Redis error in {func.__name__}: {str(e)}")
                return default
        return wrapper
    return decorator


class TrackedCache:
    def __init__(self, redis, ttl: int = 300, clock: Callable[[], float] = time.time):
        self.redis = redis
        self.ttl = ttl
        self.clock = clock

    @staticmethod
    def index_key(namespace: str) -> str:
        return f"{INDEX_PREFIX}{namespace}"

    @handle_redis_errors(default=None)
    async def get(self, key: str) -> Optional[Any]:
        raw = await self.redis.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    @handle_redis_errors(default=False)
    async def set(self, key: str, value: Any) -> bool:
        """Write without registering the key in any namespace."""
        await self.redis.set(key, json.dumps(value), ex=self.ttl)
        return True

    @handle_redis_errors(default=False)
    async def set_tracked(self, key: str, value: Any, namespace: str, *extra_namespaces: str) -> bool:
        expires_at = self.clock() + self.ttl
        namespaces = (namespace,) + extra_namespaces

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(key, json.dumps(value), ex=self.ttl)
            for ns in namespaces:
                pipe.zadd(self.index_key(ns), {key: expires_at})
            pipe.sadd(NAMESPACE_REGISTRY, *namespaces)
            await pipe.execute()
        return True

    @handle_redis_errors(default=0)
    async def invalidate_namespace(self, namespace: str) -> int:
        """Delete every key currently tracked under ``namespace``.

        Only the members read here are removed from the index, so a key
        registered concurrently stays tracked and is cleared by the next pass.
        """
        index = self.index_key(namespace)
        keys = await self.redis.zrange(index, 0, -1)
        if not keys:
            return 0

        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.delete(*keys)
            pipe.zrem(index, *keys)
            results = await pipe.execute()

        logger.debug(f"Invalidated {len(keys)} cache keys in namespace {namespace}")
        return results[0]

    @handle_redis_errors(default=0)
    async def prune_expired(self) -> int:
        """Drop index entries whose cache entry has already expired."""
        now = self.clock()
        removed = 0
        namespaces = await self.redis.smembers(NAMESPACE_REGISTRY)

        for ns in namespaces:
            index = self.index_key(ns)
            removed += await self.redis.zremrangebyscore(index, "-inf", now)
            await self._forget_if_empty(ns)

        if removed:
            logger.info(f"Pruned {removed} expired entries from {len(namespaces)} cache namespaces")
        return removed

    async def _forget_if_empty(self, namespace: str):
        """Unregister ``namespace`` if its index is empty.

        The index is WATCHed so a concurrent tracked write aborts the removal
        and the namespace stays registered.
        """
        index = self.index_key(namespace)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(index)
                if await pipe.zcard(index) > 0:
                    return
                pipe.multi()
                pipe.srem(NAMESPACE_REGISTRY, namespace)
                await pipe.execute()
            except WatchError:
                logger.debug(f"Namespace {namespace} written during prune, keeping it registered")

    async def tracked_keys(self, namespace: str) -> list:
        return await self.redis.zrange(self.index_key(namespace), 0, -1)
