"""Voice library commands: save a generation as a voice, list, delete."""

from __future__ import annotations

from typing import Any

from hume_cli.adapters.tts.hume_http import HumeTTSClient
from hume_cli.common import ClientFactory, RunContext, load_context
from hume_cli.config import ConfigStore, Provider, Settings
from hume_cli.continuation import select_generation
from hume_cli.errors import ConfigurationError, ContinuationError
from hume_cli.history import HistoryStore
from hume_cli.logging import get_logger
from hume_cli.options import CommonOptions
from hume_cli.reporter import Reporter

logger = get_logger("voices")

PLAYGROUND_URL = "https://api.hume.ai/tts/playground"


def count_voices(result: Any) -> int:
    """Count voices in a list response, which may be a bare list or a page object."""
    if isinstance(result, list):
        return len(result)
    if isinstance(result, dict):
        for key in ("voices_page", "data", "voices"):
            page = result.get(key)
            if isinstance(page, list):
                return len(page)
    return 0


class Voices:
    def __init__(
        self,
        *,
        env: Settings,
        store: ConfigStore | None = None,
        history: HistoryStore | None = None,
        client_factory: ClientFactory = HumeTTSClient,
        reporter: Reporter | None = None,
    ) -> None:
        self.env = env
        self.store = store or ConfigStore(env.hume_dir)
        self.history = history or HistoryStore(env.hume_dir)
        self.client_factory = client_factory
        self.reporter = reporter

    def _load_context(self, opts: CommonOptions) -> RunContext:
        return load_context(
            opts,
            env=self.env,
            store=self.store,
            reporter=self.reporter,
            client_factory=self.client_factory,
        )

    def _generation_to_save(
        self,
        generation_id: str | None,
        last: bool,
        last_index: int | None,
    ) -> str:
        if last:
            history = self.history.get()
            if history is None or not history.ids:
                raise ContinuationError("No previous generation found to save as voice")
            return select_generation(history, last_index)
        if not generation_id:
            raise ConfigurationError("Must specify either --generation-id or --last")
        return generation_id

    async def save(
        self,
        opts: CommonOptions,
        *,
        name: str,
        generation_id: str | None = None,
        last: bool = False,
        last_index: int | None = None,
    ) -> dict[str, Any]:
        ctx = self._load_context(opts)
        client = ctx.make_client()
        generation_id = self._generation_to_save(generation_id, last, last_index)

        async with client:
            async with ctx.reporter.spinner("Saving voice..."):
                result = await client.create_voice(name, generation_id)

        ctx.reporter.info(f"Voice name: {result.get('name', name)}")
        if result.get("id"):
            ctx.reporter.info(f"Test your voice on the web at {PLAYGROUND_URL}?voiceId={result['id']}")
        ctx.reporter.json(result)
        return result

    async def list(self, opts: CommonOptions, *, provider: Provider | None = None) -> Any:
        ctx = self._load_context(opts)
        client = ctx.make_client()
        # Default to the user's own saved voices
        provider = provider or "CUSTOM_VOICE"
        label = "Hume Voice Library" if provider == "HUME_AI" else "your custom"

        async with client:
            async with ctx.reporter.spinner(f"Listing {label} voices..."):
                result = await client.list_voices(provider)

        ctx.reporter.info(f"Found {count_voices(result)} voices")
        ctx.reporter.json(result)
        return result

    async def delete(self, opts: CommonOptions, *, name: str) -> None:
        ctx = self._load_context(opts)
        client = ctx.make_client()

        async with client:
            async with ctx.reporter.spinner(f'Deleting voice "{name}"...'):
                await client.delete_voice(name)

        ctx.reporter.info(f'Voice "{name}" deleted successfully')
        ctx.reporter.json({"name": name, "deleted": True})
