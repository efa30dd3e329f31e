"""Record of the most recent synthesis, used by ``--last``."""

from __future__ import annotations

import json
import time
from pathlib import Path

from pydantic import BaseModel, ValidationError

from hume_cli.errors import OutputWriteError
from hume_cli.logging import get_logger

logger = get_logger("history")

HISTORY_FILE = "last_generation.json"


class GenerationHistory(BaseModel):
    """Generation ids of the latest synthesis, in the order they were produced."""

    ids: list[str]
    timestamp: int

    @classmethod
    def now(cls, ids: list[str]) -> GenerationHistory:
        return cls(ids=ids, timestamp=int(time.time() * 1000))


class HistoryStore:
    """Single-record store: every save replaces the previous record."""

    def __init__(self, root: Path) -> None:
        self._path = Path(root) / HISTORY_FILE

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> GenerationHistory | None:
        """Return the last record, or None when absent or unreadable."""
        try:
            return GenerationHistory.model_validate_json(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, ValidationError) as exc:
            logger.debug(
                "Ignoring unreadable history file: %s", exc,
                extra={"path": str(self._path), "event": "history_unreadable"},
            )
            return None

    def save(self, history: GenerationHistory) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(history.model_dump()), encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(
                f"Could not write generation history {self._path}: {exc.strerror or exc}"
            ) from exc
        logger.debug(
            "History saved (%d ids)", len(history.ids),
            extra={"path": str(self._path), "event": "history_saved"},
        )
