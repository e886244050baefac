import logging

from redis import RedisError
from redis import asyncio as aioredis

from ..core.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> aioredis.Redis:
    return aioredis.from_url(
        settings.REDIS_URL,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        decode_responses=True,
        encoding="utf-8"
    )


async def test_redis_connection(client: aioredis.Redis) -> bool:
    try:
        await client.ping()
        logger.info("Successfully connected to Redis")
        return True
    except RedisError as e:
        logger.warning(f"Failed to connect to Redis: {str(e)}")
        return False
