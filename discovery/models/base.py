from datetime import datetime, timezone

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    """Naive UTC timestamp, the form MongoDB hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in storage."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
