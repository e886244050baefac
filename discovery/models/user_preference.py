from datetime import datetime
from typing import Dict, Iterable, List

from pydantic import Field

from .base import CamelModel, utcnow


def unique_labels(values: Iterable[str]) -> List[str]:
    """Drop empty and repeated labels, keeping first-seen order."""
    return list(dict.fromkeys(v for v in values if v))


class UserPreference(CamelModel):
    user_id: str
    favorite_categories: List[str] = Field(default_factory=list)
    favorite_tags: List[str] = Field(default_factory=list)
    watched_content: List[str] = Field(default_factory=list)
    category_weights: Dict[str, int] = Field(default_factory=dict)
    tag_weights: Dict[str, int] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=utcnow)
