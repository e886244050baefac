import logging
from typing import Awaitable, Callable, List, Optional

from ..cache import TrackedCache
from ..core.config import Settings
from ..models import Category, ContentRecord, ManualSearchQuery, ManualSearchResult, SearchQuery
from .preference_store import PreferenceStore
from .replica_store import ReplicaStore, clamp
from .search_backends import SearchBackend

logger = logging.getLogger(__name__)

CATEGORIES_CACHE_KEY = "all_categories"


def recommendations_namespace(user_id: str) -> str:
    return f"recommendations_{user_id}"


def similar_namespace(content_id: str) -> str:
    return f"similar_{content_id}"


class QueryEngine:
    """Answers the discovery read operations.

    Each operation checks the cache, then asks the backends in order (primary
    search engine first, replica last). A failing backend is logged and
    skipped; when every backend fails the caller gets a degraded result, never
    an exception.
    """

    def __init__(
        self,
        cache: TrackedCache,
        replica: ReplicaStore,
        preferences: PreferenceStore,
        backends: List[SearchBackend],
        settings: Settings
    ):
        self.cache = cache
        self.replica = replica
        self.preferences = preferences
        self.backends = backends
        self.settings = settings

    def clamp_limit(self, limit: Optional[int]) -> int:
        return clamp(limit, self.settings.DEFAULT_RESULT_LIMIT, self.settings.MAX_RESULT_LIMIT)

    async def _resolve(
        self,
        operation: str,
        call: Callable[[SearchBackend], Awaitable[List[ContentRecord]]]
    ) -> Optional[List[ContentRecord]]:
        for backend in self.backends:
            try:
                return await call(backend)
            except Exception as e:
                logger.warning(f"{backend.name} backend failed during {operation}, falling back: {str(e)}")
        logger.error(f"All search backends failed during {operation}")
        return None

    async def _cached(self, key: str) -> Optional[List[ContentRecord]]:
        cached = await self.cache.get(key)
        if cached is None:
            return None
        return [ContentRecord.model_validate(item) for item in cached]

    async def _store(self, key: str, results: List[ContentRecord], namespace: str, *extra_namespaces: str):
        payload = [record.to_payload() for record in results]
        await self.cache.set_tracked(key, payload, namespace, *extra_namespaces)

    async def get_trending_content(self, limit: Optional[int] = None) -> List[ContentRecord]:
        limit = self.clamp_limit(limit)
        cache_key = f"trending_{limit}"
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        results = await self._resolve("trending", lambda backend: backend.trending(limit))
        if results is None:
            return []

        await self._store(cache_key, results, "trending")
        return results

    async def get_recommendations(self, user_id: str, limit: Optional[int] = None) -> List[ContentRecord]:
        limit = self.clamp_limit(limit)
        cache_key = f"recommendations_{user_id}_{limit}"
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        try:
            preference = await self.preferences.get(user_id)
        except Exception as e:
            logger.warning(f"Could not load preferences for {user_id}, serving trending: {str(e)}")
            preference = None

        if preference is None:
            return await self.get_trending_content(limit)

        results = await self._resolve("recommendations", lambda backend: backend.recommend(preference, limit))
        if results is None:
            return await self.get_trending_content(limit)

        await self._store(cache_key, results, "recommendations", recommendations_namespace(user_id))
        return results

    async def search(self, query: SearchQuery) -> List[ContentRecord]:
        cache_key = query.cache_key()
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        size = self.settings.SEARCH_RESULT_SIZE
        results = await self._resolve("search", lambda backend: backend.search(query, size))
        if results is None:
            return []

        await self._store(cache_key, results, "search")
        return results

    async def get_content(self, content_id: str) -> Optional[ContentRecord]:
        """Look the record up in each backend until one knows it."""
        for backend in self.backends:
            try:
                record = await backend.get_content(content_id)
            except Exception as e:
                logger.warning(f"{backend.name} backend failed to load {content_id}: {str(e)}")
                continue
            if record is not None:
                return record
        return None

    async def get_similar_content(self, content_id: str, limit: Optional[int] = None) -> List[ContentRecord]:
        limit = self.clamp_limit(limit)
        cache_key = f"similar_{content_id}_{limit}"
        cached = await self._cached(cache_key)
        if cached is not None:
            return cached

        reference = await self.get_content(content_id)
        if reference is None:
            logger.info(f"No reference content {content_id} for similarity lookup")
            return []

        results = await self._resolve("similar", lambda backend: backend.similar(reference, limit))
        if results is None:
            return []

        await self._store(cache_key, results, similar_namespace(content_id))
        return results

    async def manual_search(self, query: ManualSearchQuery) -> ManualSearchResult:
        return await self.replica.manual_search(
            query,
            default_limit=self.settings.DEFAULT_MANUAL_SEARCH_LIMIT,
            max_limit=self.settings.MAX_MANUAL_SEARCH_LIMIT
        )

    async def get_categories(self) -> List[Category]:
        cached = await self.cache.get(CATEGORIES_CACHE_KEY)
        if cached is not None:
            return [Category.model_validate(item) for item in cached]

        categories = await self.replica.active_categories()
        await self.cache.set(CATEGORIES_CACHE_KEY, [category.to_payload() for category in categories])
        return categories
