"""Tests for the Hume TTS HTTP client against an in-process fake API."""

from __future__ import annotations

import json
import logging

import pytest

from conftest import b64, ndjson_line
from hume_cli.adapters.tts.base import TTSClient
from hume_cli.adapters.tts.hume_http import HumeTTSClient
from hume_cli.errors import HumeAPIError, ResponseProtocolError, StreamProtocolError
from hume_cli.schemas import OutputFormat, PostedUtterance, PostedVoice, SynthesisRequest


def _request(**kwargs) -> SynthesisRequest:
    return SynthesisRequest(
        utterances=[PostedUtterance(text="hello", voice=PostedVoice(name="narrator"))],
        format=OutputFormat(type="wav"),
        **kwargs,
    )


async def _collect(client: HumeTTSClient, request: SynthesisRequest):
    return [s async for s in client.synthesize_json_streaming(request)]


class TestHumeTTSClient:
    def test_implements_protocol(self):
        assert isinstance(HumeTTSClient("key"), TTSClient)

    async def test_buffered_synthesis(self, hume_api):
        hume_api.generations = [
            {"generation_id": "g1", "audio": b64(b"one"), "duration": 1.2, "file_size": 3}
        ]
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            result = await client.synthesize_json(_request(num_generations=1))

        assert [g.generation_id for g in result.generations] == ["g1"]
        sent = hume_api.requests[0]
        assert sent["path"] == "/v0/tts"
        assert sent["api_key"] == "secret"
        assert sent["body"] == {
            "utterances": [{"text": "hello", "voice": {"name": "narrator"}}],
            "num_generations": 1,
            "format": {"type": "wav"},
        }

    async def test_streaming_yields_snippets_in_order(self, hume_api):
        hume_api.stream_lines = [
            ndjson_line("g1", b"a", utterance_index=0),
            ndjson_line("g1", None),
            ndjson_line("g2", b"b", is_last_chunk=True),
        ]
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            snippets = await _collect(client, _request(strip_headers=True))

        assert [(s.generation_id, s.audio) for s in snippets] == [
            ("g1", b64(b"a")),
            ("g1", ""),
            ("g2", b64(b"b")),
        ]
        assert snippets[2].is_last_chunk is True
        assert hume_api.requests[0]["path"] == "/v0/tts/stream/json"
        assert hume_api.requests[0]["body"]["strip_headers"] is True

    async def test_streaming_reassembles_split_lines(self, hume_api):
        line = ndjson_line("g1", b"x" * 1000)
        tail = json.dumps({"generation_id": "g1", "audio": b64(b"end")}).encode()
        hume_api.stream_lines = [line[:7], line[7:] + b"\n", tail]
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            snippets = await _collect(client, _request())

        assert [s.audio for s in snippets] == [b64(b"x" * 1000), b64(b"end")]

    async def test_malformed_line_is_fatal(self, hume_api):
        hume_api.stream_lines = [ndjson_line("g1", b"a"), b"{not json}\n"]
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(StreamProtocolError, match="Malformed chunk"):
                await _collect(client, _request())

    async def test_missing_generation_id_is_fatal(self, hume_api):
        hume_api.stream_lines = [b'{"audio": ""}\n']
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(StreamProtocolError):
                await _collect(client, _request())

    async def test_api_error(self, hume_api):
        hume_api.error = (401, "Invalid API key")
        async with HumeTTSClient("bad", hume_api.base_url) as client:
            with pytest.raises(HumeAPIError) as excinfo:
                await client.synthesize_json(_request())
        assert excinfo.value.status == 401
        assert "Invalid API key" in str(excinfo.value)

    async def test_api_error_logged_below_warning(self, hume_api, caplog):
        hume_api.error = (401, "Invalid API key")
        caplog.set_level(logging.DEBUG, logger="hume_cli")
        async with HumeTTSClient("bad", hume_api.base_url) as client:
            with pytest.raises(HumeAPIError):
                await client.synthesize_json(_request())

        records = [r for r in caplog.records if getattr(r, "error_code", None) == "api_error"]
        assert [r.levelno for r in records] == [logging.DEBUG]

    async def test_streaming_api_error(self, hume_api):
        hume_api.error = (500, "boom")
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(HumeAPIError):
                await _collect(client, _request())

    async def test_unexpected_buffered_body(self, hume_api):
        hume_api.generations = [{"audio": "AAAA"}]
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(ResponseProtocolError) as excinfo:
                await client.synthesize_json(_request())
        assert not isinstance(excinfo.value, StreamProtocolError)
        assert "/v0/tts" in str(excinfo.value)

    async def test_html_success_body_on_buffered_endpoint(self, hume_api):
        hume_api.html_body = "<html>bad gateway</html>"
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(ResponseProtocolError, match="not valid JSON") as excinfo:
                await client.synthesize_json(_request())
        assert "/v0/tts (status 200)" in str(excinfo.value)

    async def test_html_success_body_on_voices_endpoint(self, hume_api):
        hume_api.html_body = "<html>bad gateway</html>"
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            with pytest.raises(ResponseProtocolError, match="/v0/tts/voices"):
                await client.list_voices("CUSTOM_VOICE")
            with pytest.raises(ResponseProtocolError, match="not valid JSON"):
                await client.create_voice("narrator", "g1")

    async def test_voices_endpoints(self, hume_api):
        async with HumeTTSClient("secret", hume_api.base_url) as client:
            created = await client.create_voice("narrator", "g1")
            listed = await client.list_voices("CUSTOM_VOICE")
            await client.delete_voice("narrator")

        assert created == {"name": "narrator", "id": "voice-123"}
        assert listed["voices_page"][0]["name"] == "narrator"
        methods = [(r["method"], r["query"]) for r in hume_api.requests]
        assert methods == [
            ("POST", {}),
            ("GET", {"provider": "CUSTOM_VOICE"}),
            ("DELETE", {"name": "narrator"}),
        ]
        assert hume_api.requests[0]["body"] == {"name": "narrator", "generation_id": "g1"}

    async def test_close_releases_session(self, hume_api):
        client = HumeTTSClient("secret", hume_api.base_url)
        async with client:
            assert client._session is not None
        assert client._session is None
