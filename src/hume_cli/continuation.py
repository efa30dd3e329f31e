"""Resolve ``--last`` / ``--last-index`` into a context generation id."""

from __future__ import annotations

from hume_cli.errors import ContinuationError
from hume_cli.history import GenerationHistory, HistoryStore
from hume_cli.logging import get_logger
from hume_cli.options import SynthesisOptions

logger = get_logger("continuation")


def select_generation(history: GenerationHistory, last_index: int | None) -> str:
    """Pick a generation id from ``history`` by 1-based ``last_index``.

    ``last_index`` may only be omitted when the history holds one id.
    """
    n = len(history.ids)
    if (last_index is None and n > 1) or (last_index is not None and not 1 <= last_index <= n):
        raise ContinuationError(
            f"Previous synthesis contained {n} generations. Please specify --last-index "
            f"as a number between 1 and {n} to select from the previous synthesis"
        )
    return history.ids[(last_index or 1) - 1]


def resolve_context(opts: SynthesisOptions, history: HistoryStore) -> str | None:
    """Return the generation id the new synthesis should continue from, if any.

    An explicit ``--context-generation-id`` wins over ``--last`` so that a
    ``last`` inherited from session config can be overridden per call.
    """
    if opts.context_generation_id:
        return opts.context_generation_id
    if not opts.last:
        return None

    last = history.get()
    if last is None or not last.ids:
        raise ContinuationError("No previous generation found to continue from")
    generation_id = select_generation(last, opts.last_index)
    logger.debug(
        "Continuing from previous generation",
        extra={"generation_id": generation_id, "event": "context_resolved"},
    )
    return generation_id
