"""Logging for the CLI: console lines by default, JSON lines with ``--json``.

Both formats carry the synthesis context passed through ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

CONTEXT_FIELDS = ("generation_id", "event", "path", "command", "status", "error_code")


def _context(record: logging.LogRecord) -> dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, so machine-readable runs stay parseable."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context(record),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """``[debug] tts: message generation_id=... event=...``"""

    def format(self, record: logging.LogRecord) -> str:
        area = record.name.removeprefix("hume_cli.")
        line = f"[{record.levelname.lower()}] {area}: {record.getMessage()}"
        context = _context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        if record.exc_info and record.exc_info[1]:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "WARNING", *, structured: bool = False) -> None:
    """Configure the root logger on stderr; stdout is reserved for results."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter() if structured else ConsoleFormatter())
    root.addHandler(handler)

    # Library debug output drowns ours
    for lib in ("asyncio", "aiohttp"):
        logging.getLogger(lib).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"hume_cli.{name}")
