"""Logging helpers for psbuild."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging

from .models import ToolConfig

LOGGER_NAME = "psbuild"


def configure_logging(config: ToolConfig, level: str | None = None) -> logging.Logger:
    """Configure and return the package logger.

    Console output always; a JSON-lines file as well when ``log_path`` is set.
    Calling it again only adjusts the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = getattr(logging, (level or config.log_level).upper(), logging.INFO)
    logger.setLevel(resolved)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(resolved)
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    ch = logging.StreamHandler()
    ch.setFormatter(formatter)
    ch.setLevel(resolved)
    logger.addHandler(ch)

    if config.log_path is not None:
        log_file = config.log_path / "psbuild.log"
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        fh.setLevel(resolved)
        logger.addHandler(fh)

    logger.propagate = False
    return logger


class JSONFormatter(logging.Formatter):
    """Simple JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "path": record.pathname,
            "line": record.lineno,
        }

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry)
