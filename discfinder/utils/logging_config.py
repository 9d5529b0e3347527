# discfinder/utils/logging_config.py

"""
Application logging setup.

Console and rotating-file handlers are attached to the root logger so the
``discfinder.*`` module loggers and ``app.logger`` share one configuration.
Structured ``extra`` fields (``importer_*``, ``linker_*``) are emitted as
top-level keys when ``LOG_FORMAT`` is ``json``.
"""

import json
import logging
import os
from logging.handlers import RotatingFileHandler

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_STRUCTURED_PREFIXES = ("importer_", "linker_")
_HANDLER_MARKER = "_discfinder_handler"


class JsonFormatter(logging.Formatter):
    """One JSON object per record, including prefixed ``extra`` fields"""

    def format(self, record):
        payload = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key.startswith(_STRUCTURED_PREFIXES):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _build_formatter(log_format):
    if log_format == "json":
        return JsonFormatter()
    return logging.Formatter(TEXT_FORMAT)


def _mark(handler):
    setattr(handler, _HANDLER_MARKER, True)
    return handler


def setup_logging(app):
    """Configure handlers from the app config; safe to call more than once."""
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    formatter = _build_formatter(app.config.get("LOG_FORMAT", "text"))

    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console = _mark(logging.StreamHandler())
        console.setFormatter(formatter)
        root.addHandler(console)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_dir = app.config.get("LOG_DIR", "logs")
        os.makedirs(log_dir, exist_ok=True)
        file_handler = _mark(
            RotatingFileHandler(
                os.path.join(log_dir, "discfinder.log"),
                maxBytes=app.config.get("LOG_FILE_MAX_BYTES", 10485760),
                backupCount=app.config.get("LOG_FILE_BACKUP_COUNT", 10),
            )
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    app.logger.setLevel(level)
    app.logger.info("Logging configured at %s", logging.getLevelName(level))
