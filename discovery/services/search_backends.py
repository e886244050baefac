"""
Read backends of the query engine.

``ElasticsearchBackend`` is the primary ranked search engine; the
``ReplicaSearchBackend`` answers the same operations from the MongoDB replica
when the primary is unavailable. Both raise ``SearchBackendError`` on failure
so callers can walk the chain.
"""

import abc
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from elasticsearch import NotFoundError

from ..core.errors import SearchBackendError
from ..models import ContentRecord, ContentStatus, SearchQuery, UserPreference
from .replica_store import ReplicaStore, contains_pattern

logger = logging.getLogger(__name__)

PUBLISHED_CLAUSE = {"term": {"status": ContentStatus.PUBLISHED.value}}

TITLE_WEIGHT = 3
DESCRIPTION_WEIGHT = 2
TAG_WEIGHT = 1


class SearchBackend(abc.ABC):
    name = "backend"

    @abc.abstractmethod
    async def trending(self, limit: int) -> List[ContentRecord]:
        """Published content, newest first."""

    @abc.abstractmethod
    async def recommend(self, preference: UserPreference, limit: int) -> List[ContentRecord]:
        """Unwatched published content, favoring the user's categories and tags."""

    @abc.abstractmethod
    async def search(self, query: SearchQuery, size: int) -> List[ContentRecord]:
        """Keyword search ranked by title, description and tags."""

    @abc.abstractmethod
    async def similar(self, reference: ContentRecord, limit: int) -> List[ContentRecord]:
        """Published content sharing the reference's category or tags."""

    @abc.abstractmethod
    async def get_content(self, content_id: str) -> Optional[ContentRecord]:
        """Single record by id, ``None`` when it does not exist."""


class ElasticsearchBackend(SearchBackend):
    name = "elasticsearch"

    def __init__(self, client, index: str = "content", timeout: float = 5.0):
        self.client = client
        self.index = index
        self.timeout = timeout

    async def _call(self, operation: str, coro):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except NotFoundError:
            raise
        except Exception as e:
            raise SearchBackendError(self.name, operation, e) from e

    @staticmethod
    def _records(response) -> List[ContentRecord]:
        records = []
        for hit in response["hits"]["hits"]:
            source = dict(hit.get("_source") or {})
            source.setdefault("contentId", hit["_id"])
            records.append(ContentRecord.model_validate(source))
        return records

    async def _search(self, operation: str, **body) -> List[ContentRecord]:
        response = await self._call(operation, self.client.search(index=self.index, **body))
        return self._records(response)

    async def trending(self, limit: int) -> List[ContentRecord]:
        return await self._search(
            "trending",
            size=limit,
            sort=[
                {"publishDate": {"order": "desc"}},
                {"_score": {"order": "desc"}}
            ],
            query={"bool": {"must": [PUBLISHED_CLAUSE]}}
        )

    async def recommend(self, preference: UserPreference, limit: int) -> List[ContentRecord]:
        should = []
        if preference.favorite_categories:
            should.append({"terms": {"category": preference.favorite_categories}})
        if preference.favorite_tags:
            should.append({"terms": {"tags": preference.favorite_tags}})

        query: Dict[str, Any] = {"must": [PUBLISHED_CLAUSE]}
        if should:
            query["should"] = should
        if preference.watched_content:
            query["must_not"] = [{"ids": {"values": preference.watched_content}}]

        return await self._search("recommend", size=limit, query={"bool": query})

    async def search(self, query: SearchQuery, size: int) -> List[ContentRecord]:
        bool_query: Dict[str, Any] = {
            "must": [
                PUBLISHED_CLAUSE,
                {
                    "multi_match": {
                        "query": query.keywords,
                        "fields": ["title^3", "description^2", "tags"],
                        "fuzziness": "AUTO"
                    }
                }
            ]
        }
        if query.category:
            bool_query["filter"] = [{"term": {"category": query.category}}]
        if query.tags:
            bool_query["should"] = [{"term": {"tags": tag}} for tag in query.tags]

        return await self._search("search", size=size, query={"bool": bool_query})

    async def similar(self, reference: ContentRecord, limit: int) -> List[ContentRecord]:
        should = []
        if reference.category:
            should.append({"term": {"category": reference.category}})
        if reference.tags:
            should.append({"terms": {"tags": reference.tags}})

        query: Dict[str, Any] = {
            "must": [PUBLISHED_CLAUSE],
            "must_not": [{"ids": {"values": [reference.content_id]}}]
        }
        if should:
            query["should"] = should

        return await self._search("similar", size=limit, query={"bool": query})

    async def get_content(self, content_id: str) -> Optional[ContentRecord]:
        try:
            response = await self._call("get_content", self.client.get(index=self.index, id=content_id))
        except NotFoundError:
            return None
        source = dict(response["_source"])
        source.setdefault("contentId", response["_id"])
        return ContentRecord.model_validate(source)


class ReplicaSearchBackend(SearchBackend):
    """Answers the search operations from the MongoDB replica.

    MongoDB has no should-clauses, so preference and similarity boosts are
    emulated by returning the matching records first and filling the rest of
    the page with other eligible records. Keyword search uses escaped
    substring matching (no fuzziness) and ranks candidates in Python.
    """
    name = "replica"

    def __init__(self, store: ReplicaStore, candidate_limit: int = 200):
        self.store = store
        self.candidate_limit = candidate_limit

    async def _guard(self, operation: str, coro):
        try:
            return await coro
        except Exception as e:
            raise SearchBackendError(self.name, operation, e) from e

    async def _preferred_first(self, preferred: List[dict], limit: int, exclude: List[str]) -> List[ContentRecord]:
        results = []
        if preferred:
            results = await self.store.find_published({"$or": preferred}, limit=limit, exclude_ids=exclude)

        if len(results) < limit:
            seen = list(exclude) + [record.content_id for record in results]
            results += await self.store.find_published(limit=limit - len(results), exclude_ids=seen)
        return results

    async def trending(self, limit: int) -> List[ContentRecord]:
        return await self._guard("trending", self.store.find_published(limit=limit))

    async def recommend(self, preference: UserPreference, limit: int) -> List[ContentRecord]:
        preferred = []
        if preference.favorite_categories:
            preferred.append({"category": {"$in": preference.favorite_categories}})
        if preference.favorite_tags:
            preferred.append({"tags": {"$in": preference.favorite_tags}})
        return await self._guard(
            "recommend",
            self._preferred_first(preferred, limit, preference.watched_content)
        )

    async def similar(self, reference: ContentRecord, limit: int) -> List[ContentRecord]:
        preferred = []
        if reference.category:
            preferred.append({"category": reference.category})
        if reference.tags:
            preferred.append({"tags": {"$in": reference.tags}})
        return await self._guard(
            "similar",
            self._preferred_first(preferred, limit, [reference.content_id])
        )

    async def _candidates(self, terms: List[str], category: Optional[str]) -> List[ContentRecord]:
        """Title matches first, then description and tag matches, newest first in each tier."""
        def matching(*fields: str) -> Dict[str, Any]:
            clauses = [{field: contains_pattern(term)} for term in terms for field in fields]
            query: Dict[str, Any] = {"$or": clauses}
            if category:
                query = {"$and": [query, {"category": category}]}
            return query

        candidates = await self.store.find_published(matching("title"), limit=self.candidate_limit)
        if len(candidates) < self.candidate_limit:
            candidates += await self.store.find_published(
                matching("description", "tags"),
                limit=self.candidate_limit - len(candidates),
                exclude_ids=[record.content_id for record in candidates]
            )
        return candidates

    async def search(self, query: SearchQuery, size: int) -> List[ContentRecord]:
        terms = query.terms
        if not terms:
            return []

        candidates = await self._guard("search", self._candidates(terms, query.category))
        ranked = sorted(
            candidates,
            key=lambda record: (score_record(record, terms, query.tags), record.publish_date or datetime.min),
            reverse=True
        )
        return ranked[:size]

    async def get_content(self, content_id: str) -> Optional[ContentRecord]:
        return await self._guard("get_content", self.store.get(content_id))


def score_record(record: ContentRecord, terms: List[str], boost_tags: Optional[List[str]] = None) -> int:
    title = record.title.lower()
    description = record.description.lower()
    tags = [tag.lower() for tag in record.tags]

    score = 0
    for term in (t.lower() for t in terms):
        if term in title:
            score += TITLE_WEIGHT
        if term in description:
            score += DESCRIPTION_WEIGHT
        if any(term in tag for tag in tags):
            score += TAG_WEIGHT

    if boost_tags:
        score += len(set(boost_tags) & set(record.tags))
    return score
