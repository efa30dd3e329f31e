"""Audio playback through an external player process.

Two modes: play a finished file, or stream bytes into the player's stdin
while synthesis is still running.
"""

from __future__ import annotations

import asyncio
import shlex
import shutil
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from hume_cli.errors import AudioPlayerError
from hume_cli.logging import get_logger

logger = get_logger("audio.player")

AUDIO_FILE_PLACEHOLDER = "$AUDIO_FILE"


@dataclass(frozen=True)
class PlayerCommand:
    """How to invoke a player for a file path and, if supported, for stdin.

    ``path_args`` may contain ``$AUDIO_FILE``; when it does not, the path is
    appended.  ``stdin_args`` is None for players that cannot read stdin.
    """

    cmd: str
    path_args: tuple[str, ...] = ()
    stdin_args: tuple[str, ...] | None = None

    def args_with_path(self, path: str) -> list[str]:
        if any(AUDIO_FILE_PLACEHOLDER in arg for arg in self.path_args):
            return [arg.replace(AUDIO_FILE_PLACEHOLDER, path) for arg in self.path_args]
        return [*self.path_args, path]


# Ordered by preference
_POSIX_PLAYERS = (
    PlayerCommand("ffplay", ("-nodisp", "-autoexit"), ("-nodisp", "-autoexit", "-i", "-")),
    PlayerCommand("afplay"),
    PlayerCommand("mplayer", (), ("-",)),
    PlayerCommand("mpv", ("--no-video",), ("--no-video", "-")),
    PlayerCommand("aplay", (), ("-",)),
    PlayerCommand("play", (), ("-",)),
)

_WINDOWS_PLAYERS = (
    PlayerCommand(
        "powershell",
        ("-c", f"(New-Object Media.SoundPlayer '{AUDIO_FILE_PLACEHOLDER}').PlaySync()"),
    ),
    PlayerCommand("ffplay", ("-nodisp", "-autoexit"), ("-nodisp", "-autoexit", "-i", "-")),
    PlayerCommand("mpv", ("--no-video",), ("--no-video", "-")),
    PlayerCommand("mplayer", (), ("-",)),
)


def find_default_player() -> PlayerCommand | None:
    candidates = _WINDOWS_PLAYERS if sys.platform == "win32" else _POSIX_PLAYERS
    for player in candidates:
        if shutil.which(player.cmd):
            return player
    return None


def parse_custom_command(command: str) -> PlayerCommand:
    """Parse a ``--play-command`` string such as ``mpv $AUDIO_FILE --no-video``.

    For stdin playback ``$AUDIO_FILE`` becomes ``-``; without the
    placeholder the arguments are used unchanged.
    """
    cmd, *args = shlex.split(command, posix=sys.platform != "win32")
    if any(AUDIO_FILE_PLACEHOLDER in arg for arg in args):
        stdin_args = tuple(arg.replace(AUDIO_FILE_PLACEHOLDER, "-") for arg in args)
    else:
        stdin_args = tuple(args)
    return PlayerCommand(cmd, tuple(args), stdin_args)


def resolve_player(custom_command: str | None) -> PlayerCommand:
    player = parse_custom_command(custom_command) if custom_command else find_default_player()
    if player is None:
        raise AudioPlayerError(
            "No audio player found. Please install ffplay or specify a custom player "
            "with --play-command"
        )
    return player


async def _spawn(cmd: str, args: list[str], stdin: int) -> asyncio.subprocess.Process:
    logger.debug("Spawning audio player", extra={"command": [cmd, *args], "event": "player_spawn"})
    try:
        return await asyncio.create_subprocess_exec(
            cmd,
            *args,
            stdin=stdin,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except FileNotFoundError as exc:
        raise AudioPlayerError(f"Audio player not found: {cmd}") from exc


async def play_audio_file(path: str, custom_command: str | None = None) -> None:
    """Play ``path`` to completion; raise AudioPlayerError on non-zero exit."""
    player = resolve_player(custom_command)
    proc = await _spawn(player.cmd, player.args_with_path(path), asyncio.subprocess.DEVNULL)
    code = await proc.wait()
    if code != 0:
        raise AudioPlayerError(f"Audio player exited with code {code}")


class AudioSink:
    """Writable end of a player process reading audio from stdin."""

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc
        self.bytes_written = 0

    async def write(self, audio: bytes) -> None:
        stdin = self._proc.stdin
        assert stdin is not None
        try:
            stdin.write(audio)
            await stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as exc:
            raise AudioPlayerError("Audio player stopped accepting audio") from exc
        self.bytes_written += len(audio)

    async def close(self) -> int:
        """Close stdin and wait for the player to exit; return its exit code."""
        stdin = self._proc.stdin
        if stdin is not None and not stdin.is_closing():
            stdin.close()
            try:
                await stdin.wait_closed()
            except (BrokenPipeError, ConnectionResetError):
                pass
        return await self._proc.wait()


@asynccontextmanager
async def stdin_audio_player(custom_command: str | None = None) -> AsyncIterator[AudioSink]:
    """Spawn a player reading stdin, yield a sink, then close and await exit.

    The player is closed and awaited on every exit path.  A non-zero exit
    raises AudioPlayerError unless the body is already raising.
    """
    player = resolve_player(custom_command)
    if player.stdin_args is None:
        raise AudioPlayerError(
            "The audio player does not support playing from stdin. Please specify a "
            "custom player with --play-command"
        )
    proc = await _spawn(player.cmd, list(player.stdin_args), asyncio.subprocess.PIPE)
    sink = AudioSink(proc)
    try:
        yield sink
    except BaseException:
        await sink.close()
        raise
    code = await sink.close()
    logger.debug(
        "Audio player exited with code %d after %d bytes", code, sink.bytes_written,
        extra={"event": "player_exit"},
    )
    if code != 0:
        raise AudioPlayerError(f"Audio player exited with code {code}")
