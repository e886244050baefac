import enum
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import CamelModel, as_naive_utc


class ContentType(str, enum.Enum):
    PODCAST = "podcast"
    DOCUMENTARY = "documentary"


class ContentStatus(str, enum.Enum):
    PUBLISHED = "published"
    DRAFT = "draft"


class ContentRecord(CamelModel):
    """Projection of canonical content as served by the discovery read path.

    Records coming from the search index may lack attributes the index does
    not store, so everything except the identity is optional here.
    """
    content_id: str
    title: str = ""
    description: str = ""
    type: Optional[ContentType] = None
    category: Optional[str] = None
    language: Optional[str] = None
    duration: Optional[int] = Field(None, ge=0)
    publish_date: Optional[datetime] = None
    tags: List[str] = Field(default_factory=list)
    status: str = ContentStatus.PUBLISHED.value
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_published(self) -> bool:
        return self.status == ContentStatus.PUBLISHED.value


class ContentEvent(CamelModel):
    """Payload of the ``content_created`` / ``content_updated`` events."""
    content_id: str = Field(..., min_length=1)
    title: str
    description: str
    type: ContentType
    category: str
    language: str
    duration: int = Field(..., ge=0)
    publish_date: datetime
    tags: List[str] = Field(default_factory=list)
    status: ContentStatus = ContentStatus.PUBLISHED

    @field_validator("publish_date")
    @classmethod
    def normalize_publish_date(cls, v):
        return as_naive_utc(v)

    @field_validator("tags", mode="before")
    @classmethod
    def default_missing_tags(cls, v):
        return v if v is not None else []

    def replica_fields(self) -> dict:
        """Mutable attributes written to the replica on every upsert."""
        document = self.model_dump(by_alias=True, exclude={"content_id"})
        document["type"] = self.type.value
        document["status"] = self.status.value
        return document
