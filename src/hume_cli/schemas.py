"""Request / response schemas for the Hume TTS API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hume_cli.config import AudioFormat, Provider


class PostedVoice(BaseModel):
    """Voice reference by name or by id, optionally scoped to a provider."""

    name: str | None = None
    id: str | None = None
    provider: Provider | None = None


class PostedUtterance(BaseModel):
    text: str
    voice: PostedVoice | None = None
    description: str | None = None
    speed: float | None = Field(default=None, ge=0.25, le=3.0)
    trailing_silence: float | None = Field(default=None, ge=0.0, le=5.0)


class PostedContext(BaseModel):
    generation_id: str


class OutputFormat(BaseModel):
    type: AudioFormat


class SynthesisRequest(BaseModel):
    """POST /v0/tts and /v0/tts/stream/json request body."""

    utterances: list[PostedUtterance]
    num_generations: int = Field(default=1, ge=1)
    format: OutputFormat
    context: PostedContext | None = None
    instant_mode: bool | None = None
    strip_headers: bool | None = None

    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class Generation(BaseModel):
    """One complete generation from the buffered endpoint."""

    model_config = ConfigDict(extra="allow")

    generation_id: str
    audio: str
    duration: float | None = None
    file_size: int | None = None


class SynthesisResult(BaseModel):
    """POST /v0/tts response body."""

    model_config = ConfigDict(extra="allow")

    generations: list[Generation]
    request_id: str | None = None


class Snippet(BaseModel):
    """One chunk of the streaming endpoint's NDJSON response."""

    model_config = ConfigDict(extra="allow")

    generation_id: str
    audio: str | None = None
    id: str | None = None
    text: str | None = None
    utterance_index: int | None = None
    is_last_chunk: bool | None = None
    type: str | None = None
