from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from ..container import DiscoveryContainer
from .discovery import get_container

router = APIRouter(prefix="/commands", tags=["commands"])


@router.get("")
async def list_commands(container: DiscoveryContainer = Depends(get_container)):
    return {"commands": container.dispatcher.commands}


@router.post("/{command}")
async def run_command(
    command: str,
    payload: Optional[Dict[str, Any]] = Body(None),
    container: DiscoveryContainer = Depends(get_container)
):
    """Generic entry point for the command contracts, events included."""
    result = await container.dispatcher.dispatch(command, payload)
    return {"command": command, "result": result}
