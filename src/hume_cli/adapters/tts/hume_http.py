"""Hume TTS client: HTTP transport.

Buffered synthesis posts to ``/v0/tts`` and receives every generation in
one JSON body.  Streaming synthesis posts to ``/v0/tts/stream/json`` and
reads newline-delimited JSON snippets as they arrive.
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator

import aiohttp
from pydantic import ValidationError

from hume_cli.errors import HumeAPIError, ResponseProtocolError, StreamProtocolError
from hume_cli.logging import get_logger
from hume_cli.reporter import redact_audio
from hume_cli.schemas import Snippet, SynthesisRequest, SynthesisResult

logger = get_logger("tts.hume_http")

TTS_PATH = "/v0/tts"
TTS_STREAM_JSON_PATH = "/v0/tts/stream/json"
VOICES_PATH = "/v0/tts/voices"

# Snippets carry base64 audio, so a single line can be large; read raw
# chunks and split on newlines ourselves.
_READ_CHUNK_BYTES = 64 * 1024


class HumeTTSClient:
    """HTTP client for the Hume TTS API.

    Implements the TTSClient protocol.  No total timeout is applied:
    synthesis may take as long as the service needs.
    """

    def __init__(self, api_key: str, base_url: str = "https://api.hume.ai") -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> HumeTTSClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"X-Hume-Api-Key": self._api_key},
                timeout=aiohttp.ClientTimeout(total=None),
            )
        return self._session

    @staticmethod
    async def _raise_for_status(resp: aiohttp.ClientResponse) -> None:
        if resp.status >= 400:
            body = await resp.text()
            logger.debug(
                "Hume API error %d: %s", resp.status, body,
                extra={"status": resp.status, "error_code": "api_error"},
            )
            raise HumeAPIError(resp.status, body)

    @staticmethod
    async def _read_json(resp: aiohttp.ClientResponse, path: str) -> Any:
        try:
            return await resp.json(content_type=None)
        except ValueError as exc:
            raise ResponseProtocolError(
                f"Response from {path} (status {resp.status}) is not valid JSON: {exc}"
            ) from exc

    async def synthesize_json(self, request: SynthesisRequest) -> SynthesisResult:
        session = await self._ensure_session()
        payload = request.payload()
        logger.debug("Request payload: %s", json.dumps(payload), extra={"event": "tts_request"})

        async with session.post(self._url(TTS_PATH), json=payload) as resp:
            await self._raise_for_status(resp)
            data = await self._read_json(resp, TTS_PATH)

        logger.debug("Response: %s", json.dumps(redact_audio(data)), extra={"event": "tts_response"})
        try:
            return SynthesisResult.model_validate(data)
        except ValidationError as exc:
            raise ResponseProtocolError(f"Unexpected response from {TTS_PATH}: {exc}") from exc

    async def synthesize_json_streaming(self, request: SynthesisRequest) -> AsyncIterator[Snippet]:
        """Yield one Snippet per NDJSON line of the streaming response."""
        session = await self._ensure_session()
        payload = request.payload()
        logger.debug("Request payload: %s", json.dumps(payload), extra={"event": "tts_stream_request"})

        async with session.post(
            self._url(TTS_STREAM_JSON_PATH),
            json=payload,
            headers={"Accept": "application/x-ndjson"},
        ) as resp:
            await self._raise_for_status(resp)

            buffer = bytearray()
            async for chunk in resp.content.iter_chunked(_READ_CHUNK_BYTES):
                buffer.extend(chunk)
                while (newline := buffer.find(b"\n")) != -1:
                    line = bytes(buffer[:newline])
                    del buffer[: newline + 1]
                    if line.strip():
                        yield self._parse_snippet(line)
            if buffer.strip():
                yield self._parse_snippet(bytes(buffer))

    @staticmethod
    def _parse_snippet(line: bytes) -> Snippet:
        try:
            return Snippet.model_validate_json(line)
        except ValidationError as exc:
            raise StreamProtocolError(f"Malformed chunk in synthesis stream: {exc}") from exc

    async def create_voice(self, name: str, generation_id: str) -> dict[str, Any]:
        session = await self._ensure_session()
        body = {"name": name, "generation_id": generation_id}
        logger.debug("Save voice request: %s", body, extra={"generation_id": generation_id})
        async with session.post(self._url(VOICES_PATH), json=body) as resp:
            await self._raise_for_status(resp)
            return await self._read_json(resp, VOICES_PATH)

    async def list_voices(self, provider: str) -> dict[str, Any]:
        session = await self._ensure_session()
        async with session.get(self._url(VOICES_PATH), params={"provider": provider}) as resp:
            await self._raise_for_status(resp)
            return await self._read_json(resp, VOICES_PATH)

    async def delete_voice(self, name: str) -> None:
        session = await self._ensure_session()
        async with session.delete(self._url(VOICES_PATH), params={"name": name}) as resp:
            await self._raise_for_status(resp)

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None
        logger.debug("HumeTTSClient closed")
