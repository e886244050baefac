import logging
from typing import List, Optional

from ..cache import TrackedCache
from ..models import UserPreference
from .preference_store import PreferenceStore
from .query_engine import QueryEngine, recommendations_namespace

logger = logging.getLogger(__name__)


class PreferenceTracker:
    """Keeps user preferences current and drops the recommendations they invalidate."""

    def __init__(self, store: PreferenceStore, engine: QueryEngine, cache: TrackedCache):
        self.store = store
        self.engine = engine
        self.cache = cache

    async def get_preferences(self, user_id: str) -> UserPreference:
        return await self.store.get_or_create(user_id)

    async def record_interaction(self, user_id: str, content_id: str) -> UserPreference:
        """Record that ``user_id`` watched ``content_id``.

        Unknown content is still recorded as watched; affinity weights only
        move when the content's category and tags can be looked up.
        """
        content = await self.engine.get_content(content_id)
        if content is None:
            logger.warning(f"Content {content_id} not found, recording watch for {user_id} without weights")

        preference = await self.store.record_watch(
            user_id,
            content_id,
            category=content.category if content else None,
            tags=content.tags if content else ()
        )

        await self.cache.invalidate_namespace(recommendations_namespace(user_id))
        return preference

    async def update_preferences(
        self,
        user_id: str,
        favorite_categories: Optional[List[str]] = None,
        favorite_tags: Optional[List[str]] = None
    ) -> UserPreference:
        preference = await self.store.set_favorites(user_id, categories=favorite_categories, tags=favorite_tags)

        await self.cache.invalidate_namespace(recommendations_namespace(user_id))
        logger.info(f"Updated favorites for {user_id}")
        return preference
