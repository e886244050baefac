import os
from datetime import datetime
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from .. import __version__
from ..container import DiscoveryContainer
from .discovery import get_container

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    environment: str
    components: Dict[str, bool]


@router.get("", response_model=HealthResponse)
async def health_check(container: DiscoveryContainer = Depends(get_container)):
    """Reports degraded rather than failing when a backing service is down."""
    components = await container.health()
    environment = "production" if os.getenv("ENV") == "production" else "development"

    return HealthResponse(
        status="healthy" if all(components.values()) else "degraded",
        version=__version__,
        timestamp=datetime.now().isoformat(),
        environment=environment,
        components=components
    )
