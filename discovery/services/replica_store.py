"""
Local MongoDB replica of the searchable content attributes.

The replica is written only by event ingestion and read by the fallback
search backend and by manual search.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from ..db.mongodb import CATEGORY_COLLECTION, CONTENT_COLLECTION
from ..models import (
    Category,
    ContentEvent,
    ContentRecord,
    ContentStatus,
    ManualSearchFilters,
    ManualSearchQuery,
    ManualSearchResult,
)
from ..models.base import utcnow

logger = logging.getLogger(__name__)

PROJECTION = {"_id": 0}
SORTABLE_FIELDS = ("publishDate", "title", "category", "duration", "createdAt")
DEFAULT_SORT_FIELD = "publishDate"


def contains_pattern(text: str) -> Dict[str, str]:
    """Case-insensitive literal substring match; the input never acts as a regex."""
    return {"$regex": re.escape(text), "$options": "i"}


def build_manual_filter(filters: ManualSearchFilters) -> Dict[str, Any]:
    query: Dict[str, Any] = {}

    text_clauses = []
    if filters.title:
        text_clauses.append({"title": contains_pattern(filters.title)})
    if filters.description:
        text_clauses.append({"description": contains_pattern(filters.description)})
    if text_clauses:
        query["$or"] = text_clauses

    if filters.type:
        query["type"] = filters.type
    if filters.category:
        query["category"] = filters.category
    if filters.language:
        query["language"] = filters.language

    if filters.tags:
        query["tags"] = {"$in": list(filters.tags)}

    if filters.publish_date and (filters.publish_date.start or filters.publish_date.end):
        date_range = {}
        if filters.publish_date.start:
            date_range["$gte"] = filters.publish_date.start
        if filters.publish_date.end:
            date_range["$lte"] = filters.publish_date.end
        query["publishDate"] = date_range

    return query


def resolve_sort(sort_by: Optional[str], sort_order: Optional[str]) -> List[Tuple[str, int]]:
    field = sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    direction = ASCENDING if sort_order == "asc" else DESCENDING
    return [(field, direction), ("contentId", ASCENDING)]


def clamp(value: Optional[int], default: int, maximum: int) -> int:
    if value is None:
        return default
    return max(1, min(value, maximum))


class ReplicaStore:
    def __init__(self, db):
        self.contents = db[CONTENT_COLLECTION]
        self.categories = db[CATEGORY_COLLECTION]

    async def upsert(self, event: ContentEvent):
        now = utcnow()
        fields = event.replica_fields()
        fields["updatedAt"] = now
        await self.contents.update_one(
            {"contentId": event.content_id},
            {
                "$set": fields,
                "$setOnInsert": {"contentId": event.content_id, "createdAt": now},
            },
            upsert=True
        )

    async def get(self, content_id: str) -> Optional[ContentRecord]:
        document = await self.contents.find_one({"contentId": content_id}, PROJECTION)
        if document is None:
            return None
        return ContentRecord.model_validate(document)

    async def find(
        self,
        query: Dict[str, Any],
        sort: List[Tuple[str, int]] = None,
        limit: int = 0,
        skip: int = 0
    ) -> List[ContentRecord]:
        cursor = self.contents.find(query, PROJECTION)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        documents = await cursor.to_list(length=None)
        return [ContentRecord.model_validate(doc) for doc in documents]

    async def find_published(
        self,
        query: Dict[str, Any] = None,
        limit: int = 0,
        exclude_ids: List[str] = None
    ) -> List[ContentRecord]:
        """Published records matching ``query``, newest first."""
        conditions = [{"status": ContentStatus.PUBLISHED.value}]
        if query:
            conditions.append(query)
        if exclude_ids:
            conditions.append({"contentId": {"$nin": list(exclude_ids)}})
        return await self.find(
            {"$and": conditions},
            sort=[("publishDate", DESCENDING), ("contentId", ASCENDING)],
            limit=limit
        )

    async def count(self, query: Dict[str, Any]) -> int:
        return await self.contents.count_documents(query)

    async def manual_search(
        self,
        search: ManualSearchQuery,
        default_limit: int = 20,
        max_limit: int = 100
    ) -> ManualSearchResult:
        page = max(search.page or 1, 1)
        limit = clamp(search.limit, default_limit, max_limit)
        query = build_manual_filter(search.filters)

        content = await self.find(
            query,
            sort=resolve_sort(search.sort_by, search.sort_order),
            skip=(page - 1) * limit,
            limit=limit
        )
        total = await self.count(query)

        return ManualSearchResult(
            content=content,
            total=total,
            page=page,
            total_pages=math.ceil(total / limit)
        )

    async def active_categories(self) -> List[Category]:
        cursor = self.categories.find({"isActive": True}, PROJECTION).sort([("name", ASCENDING)])
        documents = await cursor.to_list(length=None)
        return [Category.model_validate(doc) for doc in documents]
