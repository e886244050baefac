"""
Payload contracts of the commands answered by the discovery core.
"""

import json
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import CamelModel, as_naive_utc
from .content import ContentRecord


class TrendingQuery(CamelModel):
    limit: Optional[int] = None


class RecommendationsQuery(CamelModel):
    user_id: str = Field(..., min_length=1)
    limit: Optional[int] = None


class SimilarQuery(CamelModel):
    content_id: str = Field(..., min_length=1)
    limit: Optional[int] = None


class SearchQuery(CamelModel):
    keywords: str
    category: Optional[str] = None
    tags: Optional[List[str]] = None

    def cache_key(self) -> str:
        encoded = json.dumps(self.model_dump(by_alias=True, exclude_none=True), sort_keys=True)
        return f"search_{encoded}"

    @property
    def terms(self) -> List[str]:
        return [term for term in self.keywords.split() if term]


class DateRange(CamelModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @field_validator("start", "end")
    @classmethod
    def normalize(cls, v):
        return as_naive_utc(v)


class ManualSearchFilters(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    category: Optional[str] = None
    language: Optional[str] = None
    tags: Optional[List[str]] = None
    publish_date: Optional[DateRange] = None


class ManualSearchQuery(CamelModel):
    page: Optional[int] = None
    limit: Optional[int] = None
    sort_by: Optional[str] = None
    sort_order: Optional[str] = None
    filters: ManualSearchFilters = Field(default_factory=ManualSearchFilters)

    @field_validator("filters", mode="before")
    @classmethod
    def default_missing_filters(cls, v):
        return v if v is not None else {}


class ManualSearchResult(CamelModel):
    content: List[ContentRecord]
    total: int
    page: int
    total_pages: int


class PreferencesQuery(CamelModel):
    user_id: str = Field(..., min_length=1)


class PreferencesUpdate(CamelModel):
    user_id: str = Field(..., min_length=1)
    favorite_categories: Optional[List[str]] = None
    favorite_tags: Optional[List[str]] = None


class InteractionCommand(CamelModel):
    user_id: str = Field(..., min_length=1)
    content_id: str = Field(..., min_length=1)
