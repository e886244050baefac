"""
Applies content change events to the replica and invalidates the cached
result sets they make stale.

Events arrive fire-and-forget: a failure is logged and dropped, and the
replica stays stale until the next event for the same content id.
"""

import logging
from typing import Any, Dict

from pydantic import ValidationError

from ..cache import TrackedCache
from ..models import ContentEvent
from .query_engine import similar_namespace
from .replica_store import ReplicaStore

logger = logging.getLogger(__name__)

CONTENT_NAMESPACES = ("trending", "recommendations")


class EventIngestion:
    def __init__(self, replica: ReplicaStore, cache: TrackedCache):
        self.replica = replica
        self.cache = cache

    async def apply_created(self, payload: Dict[str, Any]) -> bool:
        return await self._apply("content_created", payload)

    async def apply_updated(self, payload: Dict[str, Any]) -> bool:
        return await self._apply("content_updated", payload, invalidate_similar=True)

    async def _apply(self, event_name: str, payload: Dict[str, Any], invalidate_similar: bool = False) -> bool:
        content_id = payload.get("contentId") if isinstance(payload, dict) else None
        try:
            event = ContentEvent.model_validate(payload)
            await self.replica.upsert(event)

            namespaces = list(CONTENT_NAMESPACES)
            if invalidate_similar:
                namespaces.append(similar_namespace(event.content_id))
            for namespace in namespaces:
                await self.cache.invalidate_namespace(namespace)

            logger.info(f"Applied {event_name} for content {event.content_id}")
            return True
        except ValidationError as e:
            logger.error(f"Dropping malformed {event_name} event for content {content_id}: {e.errors()}")
        except Exception as e:
            logger.error(f"Failed to apply {event_name} for content {content_id}: {str(e)}")
        return False
