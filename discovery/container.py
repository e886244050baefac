"""
Builds the discovery components and owns the lifecycle of their clients.
"""

import logging
from typing import Dict, Optional

from .cache import CachePruneScheduler, TrackedCache
from .core.config import Settings
from .db.elasticsearch import create_elasticsearch_client, test_elasticsearch_connection
from .db.mongodb import MongoDBConnection, ensure_indexes
from .db.redis import create_redis_client, test_redis_connection
from .services import (
    CommandDispatcher,
    ElasticsearchBackend,
    EventIngestion,
    PreferenceStore,
    PreferenceTracker,
    QueryEngine,
    ReplicaSearchBackend,
    ReplicaStore,
)

logger = logging.getLogger(__name__)


class DiscoveryContainer:
    def __init__(
        self,
        settings: Settings,
        db,
        redis,
        search_client=None,
        mongo: Optional[MongoDBConnection] = None
    ):
        self.settings = settings
        self.db = db
        self.redis = redis
        self.search_client = search_client
        self.mongo = mongo

        self.cache = TrackedCache(redis, ttl=settings.CACHE_TTL)
        self.replica = ReplicaStore(db)
        self.preferences = PreferenceStore(db)

        backends = []
        if search_client is not None:
            backends.append(ElasticsearchBackend(
                search_client,
                index=settings.ELASTICSEARCH_INDEX,
                timeout=settings.SEARCH_TIMEOUT_SECONDS
            ))
        backends.append(ReplicaSearchBackend(self.replica, candidate_limit=settings.SEARCH_FALLBACK_CANDIDATES))

        self.engine = QueryEngine(self.cache, self.replica, self.preferences, backends, settings)
        self.ingestion = EventIngestion(self.replica, self.cache)
        self.tracker = PreferenceTracker(self.preferences, self.engine, self.cache)
        self.dispatcher = CommandDispatcher(self.ingestion, self.engine, self.tracker)
        self.prune_scheduler = CachePruneScheduler(self.cache, settings.CACHE_PRUNE_INTERVAL_SECONDS)

    @classmethod
    async def from_settings(cls, settings: Settings) -> "DiscoveryContainer":
        mongo = MongoDBConnection(settings)
        db = await mongo.connect()
        return cls(
            settings,
            db,
            create_redis_client(settings),
            search_client=create_elasticsearch_client(settings),
            mongo=mongo
        )

    async def start(self):
        logger.info("Starting discovery components...")
        try:
            await ensure_indexes(self.db)
        except Exception as e:
            logger.error(f"Error ensuring MongoDB indexes: {str(e)}")

        await test_redis_connection(self.redis)
        if self.search_client is not None:
            await test_elasticsearch_connection(self.search_client)

        self.prune_scheduler.start()

    async def close(self):
        logger.info("Shutting down discovery components...")
        await self.prune_scheduler.stop()

        if self.search_client is not None:
            try:
                await self.search_client.close()
                logger.info("Elasticsearch connection closed")
            except Exception as e:
                logger.error(f"Error closing Elasticsearch connection: {str(e)}")

        try:
            await self.redis.aclose()
            logger.info("Redis connection closed")
        except Exception as e:
            logger.error(f"Error closing Redis connection: {str(e)}")

        if self.mongo is not None:
            await self.mongo.close()

    async def health(self) -> Dict[str, bool]:
        status = {"redis": await test_redis_connection(self.redis)}

        try:
            await self.db.command("ping")
            status["mongodb"] = True
        except Exception as e:
            logger.warning(f"MongoDB health check failed: {str(e)}")
            status["mongodb"] = False

        if self.search_client is not None:
            status["elasticsearch"] = await test_elasticsearch_connection(self.search_client)
        return status
