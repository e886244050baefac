import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from ..container import DiscoveryContainer
from ..core.config import settings
from ..core.rate_limit import limiter

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/discovery", tags=["discovery"])


def get_container(request: Request) -> DiscoveryContainer:
    return request.app.state.container


def _without_none(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


@router.get("/trending")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def get_trending(
    request: Request,
    limit: Optional[int] = None,
    container: DiscoveryContainer = Depends(get_container)
):
    return await container.dispatcher.dispatch("get_trending", _without_none({"limit": limit}))


@router.get("/recommendations")
@limiter.limit(settings.RECOMMENDATIONS_RATE_LIMIT)
async def get_recommendations(
    request: Request,
    user_id: str = Query(..., alias="userId"),
    limit: Optional[int] = None,
    container: DiscoveryContainer = Depends(get_container)
):
    """Personalized recommendations; users without preferences get trending content."""
    return await container.dispatcher.dispatch(
        "get_recommendations",
        _without_none({"userId": user_id, "limit": limit})
    )


@router.get("/search")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def search_content(
    request: Request,
    keywords: str,
    category: Optional[str] = None,
    tags: Optional[List[str]] = Query(None),
    container: DiscoveryContainer = Depends(get_container)
):
    return await container.dispatcher.dispatch(
        "search_content",
        _without_none({"keywords": keywords, "category": category, "tags": tags})
    )


@router.get("/similar/{content_id}")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def get_similar_content(
    request: Request,
    content_id: str,
    limit: Optional[int] = None,
    container: DiscoveryContainer = Depends(get_container)
):
    return await container.dispatcher.dispatch(
        "get_similar",
        _without_none({"contentId": content_id, "limit": limit})
    )


@router.post("/manual-search")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def manual_search(
    request: Request,
    payload: Optional[Dict[str, Any]] = Body(None),
    container: DiscoveryContainer = Depends(get_container)
):
    return await container.dispatcher.dispatch("manual_search", payload or {})


@router.get("/categories")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def get_categories(request: Request, container: DiscoveryContainer = Depends(get_container)):
    return await container.dispatcher.dispatch("get_categories")


@router.get("/preferences/{user_id}")
@limiter.limit(settings.PUBLIC_RATE_LIMIT)
async def get_preferences(
    request: Request,
    user_id: str,
    container: DiscoveryContainer = Depends(get_container)
):
    return await container.dispatcher.dispatch("get_preferences", {"userId": user_id})


@router.put("/preferences/{user_id}")
@limiter.limit(settings.PREFERENCE_WRITE_RATE_LIMIT)
async def update_preferences(
    request: Request,
    user_id: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    container: DiscoveryContainer = Depends(get_container)
):
    update = dict(payload or {})
    update["userId"] = user_id
    return await container.dispatcher.dispatch("update_preferences", update)


@router.post("/preferences/{user_id}/content/{content_id}")
@limiter.limit(settings.PREFERENCE_WRITE_RATE_LIMIT)
async def record_interaction(
    request: Request,
    user_id: str,
    content_id: str,
    container: DiscoveryContainer = Depends(get_container)
):
    preferences = await container.dispatcher.dispatch(
        "record_interaction",
        {"userId": user_id, "contentId": content_id}
    )
    return {"message": "User preference updated successfully", "preferences": preferences}
