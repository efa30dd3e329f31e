"""Centralised configuration: process environment via pydantic-settings,
persisted global/session records via pydantic models."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from hume_cli.errors import ConfigurationError, OutputWriteError
from hume_cli.logging import get_logger

logger = get_logger("config")

CONFIG_FILE = "config.json"

PlayMode = Literal["all", "first", "off"]
AudioFormat = Literal["wav", "mp3", "pcm"]
Provider = Literal["CUSTOM_VOICE", "HUME_AI"]
ConfigKind = Literal["global", "session"]


class Settings(BaseSettings):
    """Environment layer.  Loaded from environment / .env in the working directory."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    hume_api_key: str | None = None
    hume_base_url: str | None = None
    hume_dir: Path = Field(default_factory=lambda: Path.home() / ".hume")
    hume_log_level: str = "WARNING"


def get_settings() -> Settings:
    """Read the environment once; call at CLI start-up."""
    return Settings()


class TtsConfig(BaseModel):
    """The ``tts.*`` section of a persisted config record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    voice_name: str | None = None
    voice_id: str | None = None
    description: str | None = None
    output_dir: str | None = None
    prefix: str | None = None
    play: PlayMode | None = None
    format: AudioFormat | None = None
    num_generations: int | None = Field(default=None, ge=1)
    last: bool | None = None
    last_index: int | None = Field(default=None, ge=1)
    play_command: str | None = None
    preset_voice: bool | None = None
    provider: Provider | None = None
    speed: float | None = Field(default=None, ge=0.25, le=3.0)
    trailing_silence: float | None = Field(default=None, ge=0.0, le=5.0)
    streaming: bool | None = None
    instant_mode: bool | None = None


class ConfigData(BaseModel):
    """One persisted record ("global" or "session")."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    tts: TtsConfig = Field(default_factory=TtsConfig)
    json_output: bool | None = Field(default=None, alias="json")
    pretty: bool | None = None
    api_key: str | None = None
    base_url: str | None = None


CONFIG_KEYS: dict[str, str] = {
    "tts.description": "Description of the desired voice",
    "tts.voiceName": "Name of a previously saved voice",
    "tts.voiceId": "Direct voice ID to use",
    "tts.outputDir": "Output directory for generated audio files",
    "tts.numGenerations": "Number of variations to generate",
    "tts.prefix": "Filename prefix for generated audio",
    "tts.play": "Play audio after generation: all variations, just the first, or none",
    "tts.playCommand": "Command to play audio files (uses $AUDIO_FILE as placeholder for file path)",
    "tts.format": "Output audio format",
    "tts.provider": "Voice provider type (CUSTOM_VOICE or HUME_AI)",
    "tts.presetVoice": "Deprecated: use tts.provider HUME_AI",
    "tts.speed": "Speaking speed multiplier (0.25-3.0, default is 1.0)",
    "tts.trailingSilence": "Seconds of silence to add at the end (0.0-5.0, default is 0.35)",
    "tts.streaming": "Use streaming mode for TTS generation (default: true)",
    "tts.instantMode": "Use low-latency instant mode (requires streaming and a voice)",
    "apiKey": "Override the default API key",
    "baseUrl": "Override the default API base URL",
    "json": "Output in JSON format",
    "pretty": "Output in human-readable format",
}

_VALID_VALUES = {
    "tts.play": 'Valid values: "all", "first", or "off"',
    "tts.format": 'Valid values: "wav", "mp3", or "pcm"',
    "tts.provider": 'Valid values: "CUSTOM_VOICE" or "HUME_AI"',
    "tts.speed": "Valid values: number between 0.25 and 3.0",
    "tts.trailingSilence": "Valid values: number between 0.0 and 5.0",
}


def _field_name(model: type[BaseModel], alias: str) -> str:
    for name, info in model.model_fields.items():
        if info.alias == alias or name == alias:
            return name
    raise ConfigurationError(f"Unknown config key: {alias}")


def parse_config_value(name: str, value: str) -> Any:
    """Validate and coerce a ``config set`` value for the dotted key ``name``."""
    if name not in CONFIG_KEYS:
        raise ConfigurationError(
            f"Unknown config key: {name}\nSupported keys: {', '.join(CONFIG_KEYS)}"
        )
    model: type[BaseModel] = ConfigData
    key = name
    if name.startswith("tts."):
        model = TtsConfig
        key = name[len("tts."):]
    try:
        parsed = model.model_validate({key: value})
    except ValidationError as exc:
        hint = _VALID_VALUES.get(name)
        details = "\n".join(err["msg"] for err in exc.errors())
        message = f'Invalid value for {name}: "{value}"'
        if hint:
            message += f"\n{hint}"
        raise ConfigurationError(f"{message}\n{details}") from exc
    return getattr(parsed, _field_name(model, key))


class ConfigStore:
    """Reads and writes the global and per-shell-session config records.

    Both live as JSON files in the hume directory.  The session record is
    keyed by the parent process id, so each shell gets its own session.
    """

    def __init__(self, root: Path, session_id: str | None = None) -> None:
        self._root = Path(root)
        self._session_id = session_id or str(os.getppid())

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, kind: ConfigKind) -> Path:
        if kind == "global":
            return self._root / CONFIG_FILE
        return self._root / f"session.{self._session_id}.json"

    def read(self, kind: ConfigKind) -> ConfigData:
        path = self.path_for(kind)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return ConfigData()
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{kind} config at {path} is not valid JSON: {exc}") from exc
        try:
            return ConfigData.model_validate(raw)
        except ValidationError as exc:
            raise ConfigurationError(f"{kind} config at {path} is invalid:\n{exc}") from exc

    def write(self, kind: ConfigKind, data: ConfigData) -> None:
        path = self.path_for(kind)
        payload = data.model_dump(by_alias=True, exclude_none=True)
        if not payload.get("tts"):
            payload.pop("tts", None)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise OutputWriteError(
                f"Could not write {kind} config {path}: {exc.strerror or exc}"
            ) from exc
        logger.debug("Config written", extra={"path": str(path), "event": "config_write"})

    def set_value(self, kind: ConfigKind, name: str, value: str) -> Any:
        """Parse ``value`` for ``name`` and persist it; return the coerced value."""
        parsed = parse_config_value(name, value)
        record = self.read(kind).model_dump(by_alias=True, exclude_none=True)
        if name.startswith("tts."):
            record.setdefault("tts", {})[name[len("tts."):]] = parsed
        else:
            record[name] = parsed
        self.write(kind, ConfigData.model_validate(record))
        return parsed

    def clear(self, kind: ConfigKind) -> None:
        self.write(kind, ConfigData())
