"""hume command-line entrypoint.

Parses arguments, loads the environment layer, sets up logging, and
dispatches to the command implementations.  Every HumeCliError becomes a
one-line message on stderr and exit code 1.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
import webbrowser
from dataclasses import fields
from typing import Any, Awaitable, Callable

import aiohttp

from hume_cli.common import load_context
from hume_cli.config import CONFIG_KEYS, ConfigKind, ConfigStore, Settings, get_settings
from hume_cli.errors import ConfigurationError, HumeCliError
from hume_cli.logging import get_logger, setup_logging
from hume_cli.options import CommonOptions, RawSynthesisOptions
from hume_cli.reporter import JsonReporter
from hume_cli.request_builder import STDIN_SENTINEL
from hume_cli.tts import Tts
from hume_cli.voices import Voices

logger = get_logger("main")

API_KEYS_URL = "https://platform.hume.ai/settings/keys"

Handler = Callable[[argparse.Namespace, Settings, ConfigStore], Awaitable[None]]

TTS_EPILOG = f"""\
examples:
  hume tts 'Make sure to like and subscribe!' --description "The speaker is a charismatic, enthusiastic YouTuber"
  hume voices create --name influencer_1 --last
  hume tts 'Thanks for the likes!' -v influencer_1
  echo "I wouldn't be here without you" | hume tts {STDIN_SENTINEL} -v influencer_1
  hume tts "Take a bow, too" -v influencer_1 --last
  hume tts "Hello world" -v narrator --play-command "mpv $AUDIO_FILE --no-video"
  hume tts "I am speaking very slowly" -v narrator --speed 0.75
  hume tts "Wait for it..." -v narrator --trailing-silence 3.5
"""


# ── Argument types ───────────────────────────────────────


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from None
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a number >= 1, got {n}")
    return n


def _ranged_float(lo: float, hi: float) -> Callable[[str], float]:
    def parse(value: str) -> float:
        try:
            x = float(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"expected a number, got {value!r}") from None
        if not lo <= x <= hi:
            raise argparse.ArgumentTypeError(f"expected a number between {lo} and {hi}, got {x}")
        return x

    return parse


# ── Parser ───────────────────────────────────────────────


def _common_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", default=None, help=CONFIG_KEYS["json"])
    common.add_argument("--pretty", action="store_true", default=None, help=CONFIG_KEYS["pretty"])
    common.add_argument("--api-key", help=CONFIG_KEYS["apiKey"])
    common.add_argument(
        "--base-url", help="Override the default API base URL (for testing purposes)"
    )
    common.add_argument("--debug", action="store_true", default=None, help="Enable debug logging")
    return common


def _add_tts_parser(sub: Any, common: argparse.ArgumentParser) -> None:
    p = sub.add_parser(
        "tts",
        parents=[common],
        help="Text to speech",
        description="Convert text to speech with Hume's expressive TTS. "
        "Describe the voice you want or use a saved voice.",
        epilog=TTS_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("text", help=f"Text to synthesize, or {STDIN_SENTINEL} to read standard input")
    p.add_argument("-d", "--description", help=CONFIG_KEYS["tts.description"])
    p.add_argument("-v", "--voice-name", help=CONFIG_KEYS["tts.voiceName"])
    p.add_argument("--voice-id", help=CONFIG_KEYS["tts.voiceId"])
    p.add_argument(
        "--provider", choices=["CUSTOM_VOICE", "HUME_AI"], help=CONFIG_KEYS["tts.provider"]
    )
    # Legacy flag, superseded by --provider HUME_AI
    p.add_argument("--preset-voice", action="store_true", default=None, help=argparse.SUPPRESS)
    p.add_argument(
        "-l",
        "--last",
        "--continue-from-last",
        dest="last",
        action="store_true",
        default=None,
        help="Continue from a generation of the last synthesis. If it produced more than "
        "one generation, also pass --last-index",
    )
    p.add_argument(
        "--last-index",
        type=_positive_int,
        help="Index of the generation to use from the previous synthesis",
    )
    p.add_argument(
        "-c",
        "--continue",
        "--context-generation-id",
        dest="context_generation_id",
        help="Continue from a specific generation with the specified ID",
    )
    p.add_argument(
        "-n", "--num-generations", type=_positive_int, help=CONFIG_KEYS["tts.numGenerations"]
    )
    p.add_argument("-o", "--output-dir", help=CONFIG_KEYS["tts.outputDir"])
    p.add_argument("-p", "--prefix", help=CONFIG_KEYS["tts.prefix"])
    p.add_argument("--output-file-path", help="Write the generated audio to this exact file")
    p.add_argument("--play", choices=["all", "first", "off"], help=CONFIG_KEYS["tts.play"])
    p.add_argument("--play-command", help=CONFIG_KEYS["tts.playCommand"])
    p.add_argument("--format", choices=["wav", "mp3", "pcm"], help=CONFIG_KEYS["tts.format"])
    p.add_argument("--speed", type=_ranged_float(0.25, 3.0), help=CONFIG_KEYS["tts.speed"])
    p.add_argument(
        "--trailing-silence",
        type=_ranged_float(0.0, 5.0),
        help=CONFIG_KEYS["tts.trailingSilence"],
    )
    p.add_argument(
        "--streaming",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=CONFIG_KEYS["tts.streaming"],
    )
    p.add_argument(
        "--instant-mode",
        action=argparse.BooleanOptionalAction,
        default=None,
        help=CONFIG_KEYS["tts.instantMode"],
    )
    p.set_defaults(handler=_run_tts)


def _add_voices_parser(sub: Any, common: argparse.ArgumentParser) -> None:
    voices = sub.add_parser("voices", help="Manage saved voices")
    vsub = voices.add_subparsers(dest="voices_command", required=True)

    create = vsub.add_parser(
        "create",
        parents=[common],
        help="Save a voice from a previous generation",
        epilog="examples:\n  hume voices create --name my_voice --last\n"
        "  hume voices create --name narrator --generation-id abc123",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    create.add_argument("-n", "--name", required=True, help="Name for the new voice")
    create.add_argument("--generation-id", help="Generation to save as a voice")
    create.add_argument(
        "-l", "--last", action="store_true", help="Use a generation from the previous synthesis"
    )
    create.add_argument(
        "--last-index",
        type=_positive_int,
        help="Index of the generation to use from the previous synthesis",
    )
    create.set_defaults(handler=_run_voices_create)

    list_ = vsub.add_parser("list", parents=[common], help="List available voices")
    list_.add_argument(
        "--provider", choices=["CUSTOM_VOICE", "HUME_AI"], help=CONFIG_KEYS["tts.provider"]
    )
    list_.set_defaults(handler=_run_voices_list)

    delete = vsub.add_parser("delete", parents=[common], help="Delete a saved voice")
    delete.add_argument("-n", "--name", required=True, help="Name of the voice to delete")
    delete.set_defaults(handler=_run_voices_delete)


def _add_config_parser(sub: Any, common: argparse.ArgumentParser, kind: ConfigKind) -> None:
    name = "config" if kind == "global" else "session"
    keys_help = "\n".join(f"  {key:<22} {desc}" for key, desc in CONFIG_KEYS.items())
    parser = sub.add_parser(
        name,
        help="Save settings permanently" if kind == "global" else "Save settings for this shell",
    )
    csub = parser.add_subparsers(dest=f"{name}_command", required=True)

    set_ = csub.add_parser(
        "set",
        parents=[common],
        help=f"Configure {kind} settings",
        epilog=f"supported options:\n{keys_help}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    set_.add_argument("name", choices=list(CONFIG_KEYS), metavar="NAME")
    set_.add_argument("value")
    set_.set_defaults(handler=_config_set, kind=kind)

    show = csub.add_parser("show", parents=[common], help=f"Show current {kind} settings")
    show.set_defaults(handler=_config_show, kind=kind)

    clear_name = "reset" if kind == "global" else "end"
    clear = csub.add_parser(
        clear_name,
        parents=[common],
        help="Clear all global settings" if kind == "global" else "End the current session",
    )
    clear.set_defaults(handler=_config_clear, kind=kind)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hume",
        description="CLI for Hume's expressive text-to-speech API",
    )
    common = _common_parser()
    sub = parser.add_subparsers(dest="command")
    _add_tts_parser(sub, common)
    _add_voices_parser(sub, common)
    _add_config_parser(sub, common, "global")
    _add_config_parser(sub, common, "session")
    login = sub.add_parser("login", parents=[common], help="Save your API key for future use")
    login.set_defaults(handler=_login)
    return parser


# ── Handlers ─────────────────────────────────────────────


def common_options(args: argparse.Namespace) -> CommonOptions:
    return CommonOptions(
        json=args.json,
        pretty=args.pretty,
        api_key=args.api_key,
        base_url=args.base_url,
        debug=args.debug,
    )


def synthesis_options(args: argparse.Namespace) -> RawSynthesisOptions:
    return RawSynthesisOptions(**{f.name: getattr(args, f.name) for f in fields(RawSynthesisOptions)})


async def _run_tts(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    await Tts(env=env, store=store).synthesize(synthesis_options(args))


async def _run_voices_create(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    await Voices(env=env, store=store).save(
        common_options(args),
        name=args.name,
        generation_id=args.generation_id,
        last=args.last,
        last_index=args.last_index,
    )


async def _run_voices_list(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    await Voices(env=env, store=store).list(common_options(args), provider=args.provider)


async def _run_voices_delete(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    await Voices(env=env, store=store).delete(common_options(args), name=args.name)


async def _config_set(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    ctx = load_context(common_options(args), env=env, store=store)
    value = store.set_value(args.kind, args.name, args.value)
    ctx.reporter.info(f"{args.kind} config updated")
    ctx.reporter.json({args.name: value})


async def _config_show(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    # Always JSON, whatever the configured output mode
    record = store.read(args.kind)
    JsonReporter().json(record.model_dump(by_alias=True, exclude_none=True))


async def _config_clear(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    ctx = load_context(common_options(args), env=env, store=store)
    store.clear(args.kind)
    ctx.reporter.info(f"{args.kind} config cleared")


async def _login(args: argparse.Namespace, env: Settings, store: ConfigStore) -> None:
    ctx = load_context(common_options(args), env=env, store=store)
    answer = await asyncio.to_thread(
        input, "Would you like to open the Hume API key settings page in your browser? [y/N] "
    )
    if answer.strip().lower() in ("y", "yes"):
        ctx.reporter.info(f"Opening {API_KEYS_URL} in your browser...")
        webbrowser.open(API_KEYS_URL)

    api_key = (await asyncio.to_thread(getpass.getpass, "Enter your Hume API key: ")).strip()
    if not api_key:
        raise ConfigurationError("Please enter an API key")
    store.set_value("global", "apiKey", api_key)
    ctx.reporter.info("Successfully logged in!")


# ── Entrypoint ───────────────────────────────────────────


def main(argv: list[str] | None = None, env: Settings | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    env = env or get_settings()
    setup_logging("DEBUG" if args.debug else env.hume_log_level, structured=bool(args.json))
    store = ConfigStore(env.hume_dir)
    handler: Handler = args.handler

    try:
        asyncio.run(handler(args, env, store))
    except (HumeCliError, aiohttp.ClientError) as exc:
        logger.debug("Command failed", exc_info=True, extra={"event": "command_failed"})
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130
    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
