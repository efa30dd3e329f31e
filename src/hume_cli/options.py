"""Option records flowing from the command line into the synthesis pipeline."""

from __future__ import annotations

from dataclasses import dataclass

from hume_cli.config import AudioFormat, PlayMode, Provider


@dataclass(kw_only=True)
class CommonOptions:
    """Flags accepted by every command."""

    json: bool | None = None
    pretty: bool | None = None
    api_key: str | None = None
    base_url: str | None = None
    debug: bool | None = None


@dataclass(kw_only=True)
class RawSynthesisOptions(CommonOptions):
    """``hume tts`` flags exactly as given; ``None`` means "not passed"."""

    text: str
    voice_name: str | None = None
    voice_id: str | None = None
    description: str | None = None
    context_generation_id: str | None = None
    num_generations: int | None = None
    output_file_path: str | None = None
    output_dir: str | None = None
    prefix: str | None = None
    play: PlayMode | None = None
    format: AudioFormat | None = None
    last: bool | None = None
    last_index: int | None = None
    play_command: str | None = None
    preset_voice: bool | None = None
    provider: Provider | None = None
    speed: float | None = None
    trailing_silence: float | None = None
    streaming: bool | None = None
    instant_mode: bool | None = None


@dataclass(frozen=True)
class SynthesisOptions:
    """Fully resolved options for one synthesis call."""

    text: str
    voice_name: str | None
    voice_id: str | None
    description: str | None
    context_generation_id: str | None
    num_generations: int
    output_file_path: str | None
    output_dir: str
    prefix: str
    play: PlayMode
    format: AudioFormat
    last: bool
    last_index: int | None
    play_command: str | None
    preset_voice: bool
    provider: Provider | None
    speed: float | None
    trailing_silence: float | None
    streaming: bool
    instant_mode: bool


@dataclass(frozen=True)
class Credentials:
    api_key: str | None
    base_url: str
