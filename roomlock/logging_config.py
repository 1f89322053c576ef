"""Loguru sinks for processes that embed roomlock.

Library modules only call ``from loguru import logger``; the host process
decides where records go by calling ``setup_logging`` once at startup.
"""

from __future__ import annotations

import json
import sys
from typing import Any

from loguru import logger

from roomlock.settings import LoggingSettings

CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"
FILE_ROTATION = "10 MB"
FILE_RETENTION = "7 days"


def json_line(record: dict[str, Any]) -> str:
    """One JSON object per record; keyword context (record ids, hashes) is inlined."""
    entry: dict[str, Any] = {
        "ts": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "message": record["message"],
    }
    entry.update(record["extra"])
    exception = record["exception"]
    if exception is not None and exception.type is not None:
        entry["error"] = f"{exception.type.__name__}: {exception.value}"
    # loguru treats the returned string as a format template
    return json.dumps(entry, ensure_ascii=False, default=str).replace("{", "{{").replace("}", "}}") + "\n"


def setup_logging(section: LoggingSettings | None = None) -> list[int]:
    """Replace loguru's sinks with the ones described by the ``logging`` settings.

    Returns the ids of the added handlers.
    """
    section = section or LoggingSettings()
    line_format: Any = json_line if section.json_format else CONSOLE_FORMAT

    logger.remove()
    handler_ids = [logger.add(sys.stderr, level=section.level, format=line_format, colorize=False)]
    if section.file is not None:
        section.file.parent.mkdir(parents=True, exist_ok=True)
        handler_ids.append(
            logger.add(
                section.file,
                level=section.level,
                format=line_format,
                rotation=FILE_ROTATION,
                retention=FILE_RETENTION,
            )
        )
    return handler_ids


__all__ = ["json_line", "setup_logging"]
