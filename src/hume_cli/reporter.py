"""Reporters present results to the CLI user (as opposed to logs)."""

from __future__ import annotations

import asyncio
import itertools
import json
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Literal, Protocol, TextIO

from colorama import Fore, Style, just_fix_windows_console
from pydantic import BaseModel

ReporterMode = Literal["json", "pretty"]

_SPINNER_FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"
_SPINNER_INTERVAL_S = 0.08


def redact_audio(data: Any) -> Any:
    """Replace every ``audio`` field with a placeholder."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if isinstance(data, dict):
        return {k: "<audio>" if k == "audio" else redact_audio(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [redact_audio(v) for v in data]
    return data


class Reporter(Protocol):
    mode: ReporterMode

    def json(self, data: Any) -> None: ...

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def spinner(self, message: str) -> Any:
        """Async context manager; stops the spinner, then re-raises any error."""
        ...


class JsonReporter:
    """Machine-readable output: only ``json`` payloads reach stdout."""

    mode: ReporterMode = "json"

    def __init__(self, out: TextIO | None = None, err: TextIO | None = None) -> None:
        self._out = out or sys.stdout
        self._err = err or sys.stderr

    def json(self, data: Any) -> None:
        print(json.dumps(redact_audio(data), indent=2, default=str), file=self._out)

    def info(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        print(f"Warning: {message}", file=self._err)

    @asynccontextmanager
    async def spinner(self, message: str) -> AsyncIterator[None]:
        yield


class PrettyReporter:
    """Human-readable output with an animated spinner on interactive terminals."""

    mode: ReporterMode = "pretty"

    def __init__(self, out: TextIO | None = None) -> None:
        just_fix_windows_console()
        self._out = out or sys.stderr

    def json(self, data: Any) -> None:
        pass

    def info(self, message: str) -> None:
        print(f"{Fore.GREEN}◆{Style.RESET_ALL}  {message}", file=self._out)

    def warn(self, message: str) -> None:
        print(f"{Fore.YELLOW}▲{Style.RESET_ALL}  {message}", file=self._out)

    async def _spin(self, message: str) -> None:
        for frame in itertools.cycle(_SPINNER_FRAMES):
            self._out.write(f"\r{Fore.MAGENTA}{frame}{Style.RESET_ALL}  {message}")
            self._out.flush()
            await asyncio.sleep(_SPINNER_INTERVAL_S)

    async def _stop(self, task: asyncio.Task[None] | None, line: str) -> None:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            self._out.write("\r\x1b[2K")
        print(line, file=self._out)

    @asynccontextmanager
    async def spinner(self, message: str) -> AsyncIterator[None]:
        task = asyncio.create_task(self._spin(message)) if self._out.isatty() else None
        try:
            yield
        except BaseException:
            await self._stop(task, f"{Fore.RED}■{Style.RESET_ALL}  {message} - failed")
            raise
        await self._stop(task, f"{Fore.GREEN}◇{Style.RESET_ALL}  {message}")


def make_reporter(mode: ReporterMode) -> Reporter:
    if mode == "json":
        return JsonReporter()
    return PrettyReporter()
