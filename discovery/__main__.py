import uvicorn

from .core.config import settings
from .core.logging import setup_logging
from .main import create_app


def main():
    setup_logging(settings)
    uvicorn.run(
        create_app(),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
