"""
One preference document per user.

Writes are single atomic updates on the fields they change: the watch
history only grows (``$addToSet``), affinity counters only increase
(``$inc``), and favorite lists are replaced only when given. Concurrent
writers therefore never undo each other's interactions.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from pymongo import ReturnDocument

from ..db.mongodb import PREFERENCE_COLLECTION
from ..models import UserPreference
from ..models.base import utcnow
from ..models.user_preference import unique_labels

logger = logging.getLogger(__name__)


def weight_path(field: str, label: str) -> Optional[str]:
    # Labels become field names inside the weights map.
    if "." in label or label.startswith("$"):
        return None
    return f"{field}.{label}"


class PreferenceStore:
    def __init__(self, db):
        self.collection = db[PREFERENCE_COLLECTION]

    async def get(self, user_id: str) -> Optional[UserPreference]:
        document = await self.collection.find_one({"userId": user_id}, {"_id": 0})
        if document is None:
            return None
        return UserPreference.model_validate(document)

    async def get_or_create(self, user_id: str) -> UserPreference:
        preference = await self.get(user_id)
        if preference is not None:
            return preference

        preference = UserPreference(user_id=user_id)
        await self.collection.update_one(
            {"userId": user_id},
            {"$setOnInsert": preference.to_document()},
            upsert=True
        )
        # A concurrent writer may have created the record first.
        return await self.get(user_id) or preference

    async def save(self, preference: UserPreference) -> UserPreference:
        """Write ``preference`` as a whole; used for seeding and imports."""
        await self.collection.replace_one(
            {"userId": preference.user_id},
            preference.to_document(),
            upsert=True
        )
        return preference

    async def _update(self, user_id: str, update: Dict[str, Any], defaults: Dict[str, Any]) -> UserPreference:
        # The upsert copies userId from the filter; every other field not
        # written by the update starts from its default.
        touched = {"userId"}
        for operator in ("$set", "$addToSet", "$inc"):
            touched.update(path.split(".")[0] for path in update.get(operator, {}))
        on_insert = {field: value for field, value in defaults.items() if field not in touched}

        document = await self.collection.find_one_and_update(
            {"userId": user_id},
            {**update, "$setOnInsert": on_insert},
            projection={"_id": 0},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return UserPreference.model_validate(document)

    async def record_watch(
        self,
        user_id: str,
        content_id: str,
        category: Optional[str] = None,
        tags: Iterable[str] = ()
    ) -> UserPreference:
        """Add ``content_id`` to the watch history and bump affinity counters.

        The watch history is a set; the counters grow on every call, each
        distinct tag once.
        """
        increments = {}
        labels = [("categoryWeights", category)] if category else []
        labels += [("tagWeights", tag) for tag in unique_labels(tags)]
        for field, label in labels:
            path = weight_path(field, label)
            if path is None:
                logger.warning(f"Skipping weight for unsupported label {label!r} on {user_id}")
                continue
            increments[path] = 1

        update: Dict[str, Any] = {
            "$addToSet": {"watchedContent": content_id},
            "$set": {"lastUpdated": utcnow()},
        }
        if increments:
            update["$inc"] = increments

        return await self._update(user_id, update, self._defaults(user_id))

    async def set_favorites(
        self,
        user_id: str,
        categories: Optional[List[str]] = None,
        tags: Optional[List[str]] = None
    ) -> UserPreference:
        changes: Dict[str, Any] = {"lastUpdated": utcnow()}
        if categories is not None:
            changes["favoriteCategories"] = unique_labels(categories)
        if tags is not None:
            changes["favoriteTags"] = unique_labels(tags)

        return await self._update(user_id, {"$set": changes}, self._defaults(user_id))

    @staticmethod
    def _defaults(user_id: str) -> Dict[str, Any]:
        return UserPreference(user_id=user_id).to_document()
