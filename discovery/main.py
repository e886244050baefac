import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .container import DiscoveryContainer
from .core.config import Settings, settings as default_settings
from .core.errors import APIError, InvalidPayloadError, NotFoundError, UnknownCommandError, ValidationError
from .core.rate_limit import limiter
from .routes import commands, discovery
from .routes import health as health_router

logger = logging.getLogger(__name__)


def _error_response(error: APIError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


def create_app(container: Optional[DiscoveryContainer] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting up application...")
        if app.state.container is None:
            app.state.container = await DiscoveryContainer.from_settings(settings)
        await app.state.container.start()
        yield
        logger.info("Shutting down application...")
        await app.state.container.close()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan
    )
    app.state.container = container
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(InvalidPayloadError)
    async def invalid_payload_handler(request: Request, exc: InvalidPayloadError):
        return _error_response(ValidationError(str(exc), metadata={"errors": exc.errors}))

    @app.exception_handler(UnknownCommandError)
    async def unknown_command_handler(request: Request, exc: UnknownCommandError):
        return _error_response(NotFoundError("Command", exc.command))

    @app.get("/")
    async def root():
        return {"status": "healthy", "message": settings.PROJECT_NAME}

    app.include_router(health_router.router, tags=["health"])
    app.include_router(discovery.router, prefix=settings.API_V1_STR)
    app.include_router(commands.router, prefix=settings.API_V1_STR)
    return app
