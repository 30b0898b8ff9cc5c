from __future__ import annotations
import logging
import logging.config
from pathlib import Path
from .config import settings

SERVICE_NAME = "eje-api"
LOG_FORMAT = "%(asctime)s %(levelname)s [" + SERVICE_NAME + "] %(name)s: %(message)s"


def build_logging_config(level: str | None = None, log_file: str | None = None) -> dict:
    level = (level or settings.LOG_LEVEL).upper()
    log_file = log_file if log_file is not None else settings.LOG_FILE

    handlers: dict = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        # 10MB per file
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "formatter": "default",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 1,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S"}},
        "handlers": handlers,
        "loggers": {
            "eje_api": {"level": level},
            "uvicorn.access": {"level": "WARNING"},
        },
        "root": {"level": "WARNING", "handlers": list(handlers)},
    }


def setup_logging(level: str | None = None, log_file: str | None = None) -> None:
    logging.config.dictConfig(build_logging_config(level, log_file))
