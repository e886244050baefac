"""
Routes command payloads to the discovery operations.

Results are JSON-ready (camelCase) so any transport can send them as is.
Events return ``None`` and never raise.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.errors import InvalidPayloadError, UnknownCommandError
from ..models import (
    InteractionCommand,
    ManualSearchQuery,
    PreferencesQuery,
    PreferencesUpdate,
    RecommendationsQuery,
    SearchQuery,
    SimilarQuery,
    TrendingQuery,
)
from .ingestion import EventIngestion
from .preference_tracker import PreferenceTracker
from .query_engine import QueryEngine

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)
Handler = Callable[[Dict[str, Any]], Awaitable[Any]]

EVENT_COMMANDS = ("content_created", "content_updated")


def parse_payload(command: str, model: Type[ModelT], payload: Dict[str, Any]) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidPayloadError(command, e.errors(include_url=False, include_context=False)) from e


class CommandDispatcher:
    def __init__(self, ingestion: EventIngestion, engine: QueryEngine, tracker: PreferenceTracker):
        self.ingestion = ingestion
        self.engine = engine
        self.tracker = tracker
        self.handlers: Dict[str, Handler] = {
            "content_created": self._content_created,
            "content_updated": self._content_updated,
            "search_content": self._search_content,
            "get_recommendations": self._get_recommendations,
            "get_trending": self._get_trending,
            "get_similar": self._get_similar,
            "manual_search": self._manual_search,
            "get_preferences": self._get_preferences,
            "update_preferences": self._update_preferences,
            "record_interaction": self._record_interaction,
            "get_categories": self._get_categories,
        }

    @property
    def commands(self):
        return sorted(self.handlers)

    async def dispatch(self, command: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        handler = self.handlers.get(command)
        if handler is None:
            raise UnknownCommandError(command)
        logger.debug(f"Dispatching {command}", extra={"command": command})
        return await handler(payload or {})

    async def _content_created(self, payload):
        await self.ingestion.apply_created(payload)
        return None

    async def _content_updated(self, payload):
        await self.ingestion.apply_updated(payload)
        return None

    async def _search_content(self, payload):
        query = parse_payload("search_content", SearchQuery, payload)
        return [record.to_payload() for record in await self.engine.search(query)]

    async def _get_recommendations(self, payload):
        query = parse_payload("get_recommendations", RecommendationsQuery, payload)
        results = await self.engine.get_recommendations(query.user_id, query.limit)
        return [record.to_payload() for record in results]

    async def _get_trending(self, payload):
        query = parse_payload("get_trending", TrendingQuery, payload)
        return [record.to_payload() for record in await self.engine.get_trending_content(query.limit)]

    async def _get_similar(self, payload):
        query = parse_payload("get_similar", SimilarQuery, payload)
        results = await self.engine.get_similar_content(query.content_id, query.limit)
        return [record.to_payload() for record in results]

    async def _manual_search(self, payload):
        query = parse_payload("manual_search", ManualSearchQuery, payload)
        return (await self.engine.manual_search(query)).to_payload()

    async def _get_preferences(self, payload):
        query = parse_payload("get_preferences", PreferencesQuery, payload)
        return (await self.tracker.get_preferences(query.user_id)).to_payload()

    async def _update_preferences(self, payload):
        update = parse_payload("update_preferences", PreferencesUpdate, payload)
        preference = await self.tracker.update_preferences(
            update.user_id,
            favorite_categories=update.favorite_categories,
            favorite_tags=update.favorite_tags
        )
        return preference.to_payload()

    async def _record_interaction(self, payload):
        command = parse_payload("record_interaction", InteractionCommand, payload)
        return (await self.tracker.record_interaction(command.user_id, command.content_id)).to_payload()

    async def _get_categories(self, payload):
        return [category.to_payload() for category in await self.engine.get_categories()]
