import json
import logging
from datetime import datetime, timezone

from .config import Settings, settings as default_settings

PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
        }

        if hasattr(record, "command"):
            log_record["command"] = record.command

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_record)


def setup_logging(settings: Settings = None) -> logging.Logger:
    """Configure the ``discovery`` logger hierarchy once per process."""
    settings = settings or default_settings
    logger = logging.getLogger("discovery")

    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    logger.handlers = [handler]
    logger.setLevel(settings.LOG_LEVEL.upper())
    logger.propagate = False
    return logger
