"""Per-invocation context shared by every command."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from hume_cli.adapters.tts.base import TTSClient
from hume_cli.adapters.tts.hume_http import HumeTTSClient
from hume_cli.cascade import resolve_credentials
from hume_cli.config import ConfigData, ConfigStore, Settings
from hume_cli.errors import ApiKeyNotSetError
from hume_cli.logging import get_logger
from hume_cli.options import CommonOptions
from hume_cli.reporter import Reporter, ReporterMode, make_reporter

logger = get_logger("common")

ClientFactory = Callable[[str, str], TTSClient]


@dataclass
class RunContext:
    env: Settings
    global_config: ConfigData
    session: ConfigData
    reporter: Reporter
    client_factory: ClientFactory
    opts: CommonOptions

    def make_client(self) -> TTSClient:
        """Build a client from the resolved credentials, or raise ApiKeyNotSetError."""
        credentials = resolve_credentials(self.env, self.global_config, self.session, self.opts)
        if not credentials.api_key:
            raise ApiKeyNotSetError()
        logger.debug("Creating client for %s", credentials.base_url)
        return self.client_factory(credentials.api_key, credentials.base_url)


def reporter_mode(opts: CommonOptions, global_config: ConfigData, session: ConfigData) -> ReporterMode:
    """JSON when requested on the command line or in either config layer."""
    if opts.json or session.json_output or global_config.json_output:
        return "json"
    return "pretty"


def load_context(
    opts: CommonOptions,
    *,
    env: Settings,
    store: ConfigStore,
    reporter: Reporter | None = None,
    client_factory: ClientFactory = HumeTTSClient,
) -> RunContext:
    global_config = store.read("global")
    session = store.read("session")
    mode = reporter_mode(opts, global_config, session)
    logger.debug("Reporter mode: %s", mode)
    return RunContext(
        env=env,
        global_config=global_config,
        session=session,
        reporter=reporter or make_reporter(mode),
        client_factory=client_factory,
        opts=opts,
    )
