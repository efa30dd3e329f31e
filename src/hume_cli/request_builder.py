"""Turn resolved options and input text into a synthesis request."""

from __future__ import annotations

import asyncio
import os
import sys
from dataclasses import dataclass

from hume_cli.config import AudioFormat
from hume_cli.errors import ConfigurationError, InstantModeError
from hume_cli.logging import get_logger
from hume_cli.options import SynthesisOptions
from hume_cli.schemas import (
    OutputFormat,
    PostedContext,
    PostedUtterance,
    PostedVoice,
    SynthesisRequest,
)

logger = get_logger("request_builder")

STDIN_SENTINEL = "-"


@dataclass(frozen=True)
class PathOutput:
    """Write the single generation to an explicit file path."""

    path: str
    num_generations: int = 1

    def path_for(self, generation_id: str) -> str:
        return self.path


@dataclass(frozen=True)
class DirOutput:
    """Write each generation to ``{dir}/{prefix}{generation_id}.{format}``."""

    dir: str
    prefix: str
    format: AudioFormat
    num_generations: int

    def path_for(self, generation_id: str) -> str:
        return os.path.join(self.dir, f"{self.prefix}{generation_id}.{self.format}")


OutputPlan = PathOutput | DirOutput


def compute_output_plan(opts: SynthesisOptions) -> OutputPlan:
    if opts.output_file_path:
        if opts.num_generations != 1:
            logger.debug(
                "Explicit output path given; num_generations %d reduced to 1",
                opts.num_generations,
            )
        return PathOutput(path=opts.output_file_path)
    if not opts.output_dir:
        raise ConfigurationError("Output directory is not set (use --output-dir)")
    if not opts.prefix:
        raise ConfigurationError("Filename prefix is not set (use --prefix)")
    return DirOutput(
        dir=opts.output_dir,
        prefix=opts.prefix,
        format=opts.format,
        num_generations=opts.num_generations,
    )


async def read_stdin() -> str:
    """Read standard input to EOF without blocking the event loop."""
    content = await asyncio.to_thread(sys.stdin.read)
    return content.strip()


def build_utterance(opts: SynthesisOptions, text: str) -> PostedUtterance:
    # --provider takes precedence over the legacy --preset-voice flag
    provider = opts.provider
    if provider is None and opts.preset_voice:
        provider = "HUME_AI"

    voice = None
    if opts.voice_name:
        voice = PostedVoice(name=opts.voice_name, provider=provider)
    elif opts.voice_id:
        voice = PostedVoice(id=opts.voice_id, provider=provider)

    return PostedUtterance(
        text=text,
        voice=voice,
        description=opts.description,
        speed=opts.speed,
        trailing_silence=opts.trailing_silence,
    )


def validate_instant_mode(
    opts: SynthesisOptions,
    plan: OutputPlan,
    utterance: PostedUtterance,
    context_generation_id: str | None,
) -> None:
    if not opts.streaming:
        raise InstantModeError("Instant mode requires streaming to be enabled")
    if plan.num_generations != 1:
        raise InstantModeError("Instant mode requires num_generations=1")
    if utterance.voice is None and context_generation_id is None:
        raise InstantModeError(
            "Instant mode requires a voice to be specified "
            "(use --voice-name, --voice-id, --last, or --continue)"
        )


def build_request(
    opts: SynthesisOptions,
    plan: OutputPlan,
    utterance: PostedUtterance,
    context_generation_id: str | None,
) -> SynthesisRequest:
    """Assemble the request body, failing fast on unmet instant-mode preconditions."""
    if opts.instant_mode:
        validate_instant_mode(opts, plan, utterance, context_generation_id)

    return SynthesisRequest(
        utterances=[utterance],
        num_generations=plan.num_generations,
        format=OutputFormat(type=opts.format),
        context=PostedContext(generation_id=context_generation_id)
        if context_generation_id
        else None,
        instant_mode=True if opts.instant_mode else None,
    )
