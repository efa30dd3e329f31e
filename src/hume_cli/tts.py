"""Text-to-speech command: buffered and streaming synthesis drivers.

Both drivers share the same preparation (settings cascade, output plan,
utterance, continuation context, instant-mode checks) and differ in how
they consume the service response:

* buffered: one round trip, then write files and play them;
* streaming: pull snippets as they arrive, pipe them to a live player,
  and write one combined file per generation once the stream ends.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import AsyncContextManager, Awaitable, Callable, Sequence

from hume_cli.adapters.tts.base import TTSClient
from hume_cli.adapters.tts.hume_http import HumeTTSClient
from hume_cli.audio.player import AudioSink, play_audio_file, stdin_audio_player
from hume_cli.cascade import resolve_options
from hume_cli.common import ClientFactory, RunContext, load_context
from hume_cli.config import ConfigStore, PlayMode, Settings
from hume_cli.continuation import resolve_context
from hume_cli.errors import OutputWriteError, ResponseProtocolError, StreamProtocolError
from hume_cli.history import GenerationHistory, HistoryStore
from hume_cli.logging import get_logger
from hume_cli.options import RawSynthesisOptions, SynthesisOptions
from hume_cli.reporter import Reporter
from hume_cli.request_builder import (
    STDIN_SENTINEL,
    OutputPlan,
    build_request,
    build_utterance,
    compute_output_plan,
    read_stdin,
)
from hume_cli.schemas import SynthesisRequest

logger = get_logger("tts")


@dataclass(frozen=True)
class WrittenFile:
    generation_id: str
    path: str


def ensure_dir_and_write_file(path: str, data: bytes) -> None:
    target = Path(path)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as exc:
        raise OutputWriteError(f"Could not write audio file {path}: {exc.strerror or exc}") from exc


def decode_audio(
    audio: str,
    generation_id: str,
    error: type[ResponseProtocolError] = ResponseProtocolError,
) -> bytes:
    try:
        return base64.b64decode(audio, validate=True)
    except binascii.Error as exc:
        raise error(f"Invalid base64 audio for generation {generation_id}: {exc}") from exc


class Tts:
    """Runs ``hume tts``.

    Collaborators are attributes so tests can replace them.
    """

    def __init__(
        self,
        *,
        env: Settings,
        store: ConfigStore | None = None,
        history: HistoryStore | None = None,
        reporter: Reporter | None = None,
        client_factory: ClientFactory = HumeTTSClient,
    ) -> None:
        self.env = env
        self.store = store or ConfigStore(env.hume_dir)
        self.history = history or HistoryStore(env.hume_dir)
        self.reporter = reporter
        self.client_factory = client_factory
        self.write_file: Callable[[str, bytes], None] = ensure_dir_and_write_file
        self.play_audio_file: Callable[[str, str | None], Awaitable[None]] = play_audio_file
        self.stdin_audio_player: Callable[[str | None], AsyncContextManager[AudioSink]] = (
            stdin_audio_player
        )
        self.read_stdin: Callable[[], Awaitable[str]] = read_stdin

    def _load_context(self, raw: RawSynthesisOptions) -> RunContext:
        return load_context(
            raw,
            env=self.env,
            store=self.store,
            reporter=self.reporter,
            client_factory=self.client_factory,
        )

    async def synthesize(self, raw: RawSynthesisOptions) -> list[WrittenFile]:
        ctx = self._load_context(raw)
        reporter = ctx.reporter
        opts = resolve_options(ctx.global_config, ctx.session, raw)
        plan = compute_output_plan(opts)
        if opts.preset_voice:
            reporter.warn(
                "Please use --provider HUME_AI instead of --preset-voice. "
                "--preset-voice will be removed in a future version"
            )

        text = opts.text
        if text == STDIN_SENTINEL:
            text = await self.read_stdin()

        utterance = build_utterance(opts, text)
        context_generation_id = resolve_context(opts, self.history)
        request = build_request(opts, plan, utterance, context_generation_id)

        client = ctx.make_client()
        async with client:
            if opts.streaming:
                return await self.synthesize_streaming(reporter, client, request, opts, plan)
            return await self.synthesize_buffered(reporter, client, request, opts, plan)

    # ── Streaming ─────────────────────────────────────────

    async def synthesize_streaming(
        self,
        reporter: Reporter,
        client: TTSClient,
        request: SynthesisRequest,
        opts: SynthesisOptions,
        plan: OutputPlan,
    ) -> list[WrittenFile]:
        request = request.model_copy(update={"strip_headers": True})
        reporter.info("Using streaming mode")

        # generation id -> audio chunks in arrival order; every observed id is a key
        generation_audio: dict[str, list[bytes]] = {}

        if opts.play != "off":
            async with self.stdin_audio_player(opts.play_command) as sink:
                await self._consume_stream(reporter, client, request, opts.play, generation_audio, sink)
        else:
            await self._consume_stream(reporter, client, request, opts.play, generation_audio, None)

        written_files: list[WrittenFile] = []
        for generation_id, chunks in generation_audio.items():
            if not chunks:
                logger.warning(
                    "Generation produced no audio", extra={"generation_id": generation_id}
                )
                continue
            path = plan.path_for(generation_id)
            self.write_file(path, b"".join(chunks))
            written_files.append(WrittenFile(generation_id, path))

        generation_ids = list(generation_audio)
        self.history.save(GenerationHistory.now(generation_ids))

        self._report_written(reporter, written_files)
        reporter.json(
            {
                "written_files": [asdict(f) for f in written_files],
                "generation_ids": generation_ids,
            }
        )
        return written_files

    async def _consume_stream(
        self,
        reporter: Reporter,
        client: TTSClient,
        request: SynthesisRequest,
        play: PlayMode,
        generation_audio: dict[str, list[bytes]],
        sink: AudioSink | None,
    ) -> None:
        async with reporter.spinner("Synthesizing..."):
            first_generation_id: str | None = None
            async for snippet in client.synthesize_json_streaming(request):
                generation_id = snippet.generation_id
                if first_generation_id is None:
                    first_generation_id = generation_id
                chunks = generation_audio.setdefault(generation_id, [])

                if not snippet.audio:
                    logger.debug("Skipping empty audio snippet", extra={"generation_id": generation_id})
                    continue

                audio = decode_audio(snippet.audio, generation_id, StreamProtocolError)
                chunks.append(audio)

                if sink is None:
                    continue
                if play == "first" and generation_id != first_generation_id:
                    logger.debug(
                        "Skipping audio playback for non-first generation",
                        extra={"generation_id": generation_id},
                    )
                    continue
                await sink.write(audio)

    # ── Buffered ──────────────────────────────────────────

    async def synthesize_buffered(
        self,
        reporter: Reporter,
        client: TTSClient,
        request: SynthesisRequest,
        opts: SynthesisOptions,
        plan: OutputPlan,
    ) -> list[WrittenFile]:
        async with reporter.spinner("Synthesizing..."):
            result = await client.synthesize_json(request)

        written_files: list[WrittenFile] = []
        for generation in result.generations:
            path = plan.path_for(generation.generation_id)
            self.write_file(path, decode_audio(generation.audio, generation.generation_id))
            written_files.append(WrittenFile(generation.generation_id, path))

        for generation in result.generations:
            reporter.info(f"Generation ID: {generation.generation_id}")
        self.history.save(GenerationHistory.now([g.generation_id for g in result.generations]))

        self._report_written(reporter, written_files)
        reporter.json(
            {"result": result.model_dump(), "written_files": [asdict(f) for f in written_files]}
        )

        await self.play_audios(opts.play, written_files, reporter, opts.play_command)
        return written_files

    async def play_audios(
        self,
        play: PlayMode,
        files: Sequence[WrittenFile],
        reporter: Reporter,
        play_command: str | None,
    ) -> None:
        if play == "off" or not files:
            return
        if play == "first":
            file = files[0]
            async with reporter.spinner(f"Playing audio {file.path}"):
                await self.play_audio_file(file.path, play_command)
            return
        n = len(files)
        for i, file in enumerate(files, start=1):
            async with reporter.spinner(f"Playing audio {file.path} ({i} of {n})"):
                await self.play_audio_file(file.path, play_command)

    @staticmethod
    def _report_written(reporter: Reporter, written_files: Sequence[WrittenFile]) -> None:
        if len(written_files) == 1:
            reporter.info(f"Wrote {written_files[0].path}")
        elif written_files:
            reporter.info("Wrote " + "\n  ".join(["", *(f.path for f in written_files)]))
