"""Shared fixtures: isolated hume directory, fake client, fake reporter and player."""

from __future__ import annotations

import base64
import json
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from hume_cli.config import ConfigStore, Settings
from hume_cli.history import HistoryStore
from hume_cli.options import RawSynthesisOptions
from hume_cli.schemas import Snippet, SynthesisRequest, SynthesisResult
from hume_cli.tts import Tts


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def snippet(generation_id: str, audio: bytes | None) -> Snippet:
    return Snippet(generation_id=generation_id, audio=b64(audio) if audio is not None else "")


class FakeReporter:
    mode = "json"

    def __init__(self) -> None:
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.payloads: list[Any] = []
        self.spinners: list[str] = []

    def json(self, data: Any) -> None:
        self.payloads.append(data)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    @asynccontextmanager
    async def spinner(self, message: str) -> AsyncIterator[None]:
        self.spinners.append(message)
        yield


class FakeClient:
    """In-memory TTSClient: records requests and replays canned responses."""

    def __init__(
        self,
        *,
        snippets: list[Snippet | Exception] | None = None,
        result: SynthesisResult | None = None,
        voices: Any = None,
    ) -> None:
        self.snippets = snippets or []
        self.result = result
        self.voices = voices if voices is not None else {"voices_page": []}
        self.requests: list[SynthesisRequest] = []
        self.created: list[tuple[str, str]] = []
        self.listed: list[str] = []
        self.deleted: list[str] = []
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> FakeClient:
        self.entered = True
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def close(self) -> None:
        self.closed = True

    async def synthesize_json(self, request: SynthesisRequest) -> SynthesisResult:
        self.requests.append(request)
        assert self.result is not None
        return self.result

    async def synthesize_json_streaming(self, request: SynthesisRequest) -> AsyncIterator[Snippet]:
        self.requests.append(request)
        for item in self.snippets:
            if isinstance(item, Exception):
                raise item
            yield item

    async def create_voice(self, name: str, generation_id: str) -> dict[str, Any]:
        self.created.append((name, generation_id))
        return {"name": name, "id": "voice-123"}

    async def list_voices(self, provider: str) -> Any:
        self.listed.append(provider)
        return self.voices

    async def delete_voice(self, name: str) -> None:
        self.deleted.append(name)


class FakeSink:
    def __init__(self, error: Exception | None = None) -> None:
        self.chunks: list[bytes] = []
        self.closed = False
        self.error = error

    async def write(self, audio: bytes) -> None:
        if self.error is not None:
            raise self.error
        self.chunks.append(audio)


class FakePlayer:
    """Stands in for the audio player module functions used by Tts."""

    def __init__(self) -> None:
        self.sinks: list[FakeSink] = []
        self.played: list[str] = []
        self.commands: list[str | None] = []
        self.write_error: Exception | None = None

    @asynccontextmanager
    async def stdin(self, custom_command: str | None = None) -> AsyncIterator[FakeSink]:
        sink = FakeSink(self.write_error)
        self.sinks.append(sink)
        self.commands.append(custom_command)
        try:
            yield sink
        finally:
            sink.closed = True

    async def play_file(self, path: str, custom_command: str | None = None) -> None:
        self.played.append(path)
        self.commands.append(custom_command)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the real environment and home directory out of every test."""
    for var in ("HUME_API_KEY", "HUME_BASE_URL", "HUME_DIR", "HUME_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def hume_dir(tmp_path: Path) -> Path:
    return tmp_path / ".hume"


@pytest.fixture
def env(hume_dir: Path) -> Settings:
    return Settings(_env_file=None, hume_api_key="test-key", hume_dir=hume_dir)


@pytest.fixture
def store(hume_dir: Path) -> ConfigStore:
    return ConfigStore(hume_dir, session_id="test")


@pytest.fixture
def history(hume_dir: Path) -> HistoryStore:
    return HistoryStore(hume_dir)


@pytest.fixture
def reporter() -> FakeReporter:
    return FakeReporter()


@pytest.fixture
def player() -> FakePlayer:
    return FakePlayer()


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture
def raw(out_dir: Path):
    """Build RawSynthesisOptions with test-friendly defaults."""

    def factory(text: str = "Hello world", **overrides: Any) -> RawSynthesisOptions:
        overrides.setdefault("output_dir", str(out_dir))
        overrides.setdefault("play", "off")
        return RawSynthesisOptions(text=text, **overrides)

    return factory


@pytest.fixture
def make_tts(env, store, history, reporter, player):
    """Build a Tts wired to the fakes, using ``client`` for every API call."""

    def factory(client: FakeClient) -> Tts:
        tts = Tts(
            env=env,
            store=store,
            history=history,
            reporter=reporter,
            client_factory=lambda api_key, base_url: client,
        )
        tts.stdin_audio_player = player.stdin
        tts.play_audio_file = player.play_file
        return tts

    return factory


class FakeHumeApi:
    """aiohttp application mimicking the Hume TTS endpoints."""

    def __init__(self) -> None:
        self.requests: list[dict[str, Any]] = []
        self.generations: list[dict[str, Any]] = []
        self.stream_lines: list[bytes] = []
        self.voices: dict[str, Any] = {"voices_page": [{"name": "narrator", "id": "v1"}]}
        self.error: tuple[int, str] | None = None
        self.html_body: str | None = None
        self.base_url = ""

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/v0/tts", self._tts)
        app.router.add_post("/v0/tts/stream/json", self._stream)
        app.router.add_post("/v0/tts/voices", self._create_voice)
        app.router.add_get("/v0/tts/voices", self._list_voices)
        app.router.add_delete("/v0/tts/voices", self._delete_voice)
        return app

    async def _record(self, request: web.Request) -> None:
        body = await request.json() if request.can_read_body else None
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "query": dict(request.query),
                "api_key": request.headers.get("X-Hume-Api-Key"),
                "body": body,
            }
        )

    def _error_response(self) -> web.Response | None:
        if self.html_body is not None:
            return web.Response(text=self.html_body, content_type="text/html")
        if self.error is None:
            return None
        status, text = self.error
        return web.Response(status=status, text=text)

    async def _tts(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        if (error := self._error_response()) is not None:
            return error
        return web.json_response({"generations": self.generations, "request_id": "req-1"})

    async def _stream(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        if (error := self._error_response()) is not None:
            return error
        resp = web.StreamResponse(headers={"Content-Type": "application/x-ndjson"})
        await resp.prepare(request)
        for line in self.stream_lines:
            await resp.write(line)
        await resp.write_eof()
        return resp

    async def _create_voice(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        if (error := self._error_response()) is not None:
            return error
        body = self.requests[-1]["body"]
        return web.json_response({"name": body["name"], "id": "voice-123"})

    async def _list_voices(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        if (error := self._error_response()) is not None:
            return error
        return web.json_response(self.voices)

    async def _delete_voice(self, request: web.Request) -> web.StreamResponse:
        await self._record(request)
        if (error := self._error_response()) is not None:
            return error
        return web.Response(status=204)


def ndjson_line(generation_id: str, audio: bytes | None, **extra: Any) -> bytes:
    chunk = {"generation_id": generation_id, "audio": b64(audio) if audio else "", **extra}
    return json.dumps(chunk).encode() + b"\n"


@pytest.fixture
async def hume_api():
    """Fake Hume API served in-process on the test's event loop."""
    api = FakeHumeApi()
    server = TestServer(api.app())
    await server.start_server()
    api.base_url = str(server.make_url("")).rstrip("/")
    yield api
    await server.close()
