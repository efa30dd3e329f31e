"""TTS client protocol: the interface the synthesis drivers depend on."""

from __future__ import annotations

from typing import Any, AsyncIterator, Protocol, runtime_checkable

from hume_cli.schemas import Snippet, SynthesisRequest, SynthesisResult


@runtime_checkable
class TTSClient(Protocol):
    """Protocol for Hume TTS transports.

    Implementations are async context managers; leaving the context
    releases the underlying connection pool.
    """

    async def synthesize_json(self, request: SynthesisRequest) -> SynthesisResult:
        """Synthesize all generations in one round trip."""
        ...

    def synthesize_json_streaming(self, request: SynthesisRequest) -> AsyncIterator[Snippet]:
        """Yield audio snippets as the service produces them.

        The iterator is finite and cannot be restarted.
        """
        ...

    async def create_voice(self, name: str, generation_id: str) -> dict[str, Any]:
        ...

    async def list_voices(self, provider: str) -> dict[str, Any]:
        ...

    async def delete_voice(self, name: str) -> None:
        ...

    async def close(self) -> None:
        """Close the connection and release resources."""
        ...

    async def __aenter__(self) -> TTSClient:
        ...

    async def __aexit__(self, *exc_info: object) -> None:
        ...
