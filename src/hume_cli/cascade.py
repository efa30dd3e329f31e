"""Settings cascade: command line > session config > global config > defaults.

Every lookup returns a ``Prioritized`` value so that fields which override
each other across layers (voice name vs. voice id) can be compared by the
layer they were resolved from rather than by their values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

from hume_cli.config import ConfigData, Settings
from hume_cli.errors import ConfigurationError
from hume_cli.options import Credentials, RawSynthesisOptions, SynthesisOptions

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.hume.ai"

PRIORITY_DEFAULT = 0
PRIORITY_GLOBAL = 1
PRIORITY_SESSION = 2
PRIORITY_CLI = 3

DEFAULTS: Mapping[str, Any] = MappingProxyType(
    {
        "voice_name": None,
        "voice_id": None,
        "description": None,
        "context_generation_id": None,
        "num_generations": 1,
        "output_file_path": None,
        "output_dir": "./tts-audio",
        "prefix": "tts-",
        "play": "all",
        "format": "wav",
        "last": False,
        "last_index": None,
        "play_command": None,
        "preset_voice": False,
        "provider": None,
        "speed": None,
        "trailing_silence": None,
        "streaming": True,
        "instant_mode": False,
    }
)

# Flag names used in error messages
_FLAGS = {
    "voice_name": "--voice-name",
    "voice_id": "--voice-id",
    "output_file_path": "--output-file-path",
    "num_generations": "--num-generations",
    "last": "--last",
    "context_generation_id": "--context-generation-id",
}

_MUTUALLY_EXCLUSIVE = (
    ("voice_name", "voice_id"),
    ("output_file_path", "num_generations"),
    ("last", "context_generation_id"),
)

# Only ever taken from the command line, never inherited from config.
_CLI_ONLY = ("context_generation_id", "output_file_path")


@dataclass(frozen=True, order=True)
class Prioritized(Generic[T]):
    """A value tagged with the priority of the layer it came from.

    Ordering compares priority only.
    """

    priority: int
    value: T = field(compare=False)


def with_priority(priority: int, value: T | None) -> Prioritized[T] | None:
    if value is None:
        return None
    return Prioritized(priority, value)


def first_present(*candidates: Prioritized[Any] | None) -> Prioritized[Any]:
    """Return the first non-absent candidate; the last one must be present."""
    for candidate in candidates:
        if candidate is not None:
            return candidate
    raise ValueError("cascade exhausted without a default")


def _is_set(value: Any) -> bool:
    return value is not None and value is not False


def check_mutually_exclusive(raw: RawSynthesisOptions) -> None:
    """Reject conflicting flags given together on one command line."""
    for a, b in _MUTUALLY_EXCLUSIVE:
        if _is_set(getattr(raw, a)) and _is_set(getattr(raw, b)):
            raise ConfigurationError(f"cannot specify both {_FLAGS[a]} and {_FLAGS[b]}")


def cascade(
    key: str,
    global_config: ConfigData,
    session: ConfigData,
    raw: RawSynthesisOptions,
) -> Prioritized[Any]:
    """Four-layer lookup of ``key``; ``None`` at a layer falls through."""
    if key in _CLI_ONLY:
        return first_present(
            with_priority(PRIORITY_CLI, getattr(raw, key)),
            Prioritized(PRIORITY_DEFAULT, DEFAULTS[key]),
        )
    return first_present(
        with_priority(PRIORITY_CLI, getattr(raw, key)),
        with_priority(PRIORITY_SESSION, getattr(session.tts, key)),
        with_priority(PRIORITY_GLOBAL, getattr(global_config.tts, key)),
        Prioritized(PRIORITY_DEFAULT, DEFAULTS[key]),
    )


def resolve_voice(
    voice_name: Prioritized[str | None],
    voice_id: Prioritized[str | None],
) -> tuple[str | None, str | None]:
    """Keep only the voice reference resolved from the higher-priority layer.

    A tie keeps the voice id.
    """
    if voice_name.value is None or voice_id.value is None:
        return voice_name.value, voice_id.value
    if voice_name > voice_id:
        return voice_name.value, None
    return None, voice_id.value


def resolve_options(
    global_config: ConfigData,
    session: ConfigData,
    raw: RawSynthesisOptions,
) -> SynthesisOptions:
    """Merge the config layers and command-line flags into one options record."""
    check_mutually_exclusive(raw)

    def get(key: str) -> Any:
        return cascade(key, global_config, session, raw).value

    voice_name, voice_id = resolve_voice(
        cascade("voice_name", global_config, session, raw),
        cascade("voice_id", global_config, session, raw),
    )

    return SynthesisOptions(
        text=raw.text,
        voice_name=voice_name,
        voice_id=voice_id,
        description=get("description"),
        context_generation_id=get("context_generation_id"),
        num_generations=get("num_generations"),
        output_file_path=get("output_file_path"),
        output_dir=get("output_dir"),
        prefix=get("prefix"),
        play=get("play"),
        format=get("format"),
        last=get("last"),
        last_index=get("last_index"),
        play_command=get("play_command"),
        preset_voice=get("preset_voice"),
        provider=get("provider"),
        speed=get("speed"),
        trailing_silence=get("trailing_silence"),
        streaming=get("streaming"),
        instant_mode=get("instant_mode"),
    )


def resolve_credentials(
    env: Settings,
    global_config: ConfigData,
    session: ConfigData,
    opts: Any,
) -> Credentials:
    """API key and base URL: command line > environment > session > global."""
    api_key = _first_not_none(
        getattr(opts, "api_key", None),
        env.hume_api_key,
        session.api_key,
        global_config.api_key,
    )
    base_url = _first_not_none(
        getattr(opts, "base_url", None),
        env.hume_base_url,
        session.base_url,
        global_config.base_url,
    )
    return Credentials(api_key=api_key or None, base_url=base_url or DEFAULT_BASE_URL)


def _first_not_none(*values: Any) -> Any:
    return next((v for v in values if v is not None), None)
