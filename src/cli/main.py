# SPDX-License-Identifier: MIT
"""Command-line interface for the sketch diary."""

from __future__ import annotations

import argparse
import asyncio
import base64
import mimetypes
import signal
from pathlib import Path
from typing import Any, Awaitable, Callable, Coroutine

import logfire
from pydantic import TypeAdapter

from diary import DiaryService, GeminiGateway
from io_utils.loader import load_entries, prepend_entry
from observability import QueueStatusReporter
from observability.monitoring import init_logfire
from runtime.environment import RuntimeEnv
from runtime.settings import Settings, load_settings

LOG_LEVELS = ["fatal", "error", "warn", "notice", "info", "debug", "trace"]

Command = Callable[[argparse.Namespace, DiaryService], Awaitable[Any]]


def _configure_logging(args: argparse.Namespace, settings: Settings) -> None:
    """Configure Logfire based on verbosity flags."""
    index = 2 + args.verbose - args.quiet
    index = max(0, min(len(LOG_LEVELS) - 1, index))
    init_logfire(settings.logfire_token, LOG_LEVELS[index])  # type: ignore[arg-type]


def _print_json(payload: Any) -> None:
    print(TypeAdapter(Any).dump_json(payload, indent=2).decode("utf-8"))


async def _cmd_places(args: argparse.Namespace, service: DiaryService) -> None:
    _print_json(await service.search_places(args.query))


async def _cmd_write(args: argparse.Namespace, service: DiaryService) -> None:
    photo = Path(args.photo)
    mime_type = args.mime_type or mimetypes.guess_type(photo.name)[0] or ""
    entry = await service.create_entry(
        photo.read_bytes(), mime_type, args.transcript, args.place
    )
    if args.entries:
        prepend_entry(args.entries, entry)
    _print_json(entry)


async def _cmd_sketch(args: argparse.Namespace, service: DiaryService) -> None:
    photo = Path(args.photo)
    mime_type = args.mime_type or mimetypes.guess_type(photo.name)[0] or ""
    encoded = base64.b64encode(photo.read_bytes()).decode("ascii")
    sketch = await service.generate_sketch(encoded, mime_type, args.transcript)
    Path(args.output).write_bytes(base64.b64decode(sketch))
    print(args.output)


async def _cmd_summarize(args: argparse.Namespace, service: DiaryService) -> None:
    entries = load_entries(args.entries)
    if args.all:
        summary = await service.summarize_day(entries)
    else:
        summary = await service.summarize_today(entries)
    _print_json(summary)


def _positive_int(text: str) -> int:
    """argparse type accepting integers >= 1."""
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def _non_negative_float(text: str) -> float:
    """argparse type accepting numbers >= 0."""
    value = float(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return value


def _add_common_args(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.add_argument("--config", help="Path to the YAML configuration file.")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Increase log output."
    )
    parser.add_argument(
        "-q", "--quiet", action="count", default=0, help="Decrease log output."
    )
    parser.add_argument(
        "--max-concurrency",
        type=_positive_int,
        help="Maximum concurrent remote calls.",
    )
    parser.add_argument(
        "--request-delay",
        type=_non_negative_float,
        help="Seconds between a finished call and the next dispatch.",
    )
    parser.add_argument(
        "--retries",
        type=_positive_int,
        help="Attempts per remote call, including the first.",
    )
    return parser


def _build_parser() -> argparse.ArgumentParser:
    """Return an argument parser configured with subcommands."""
    parser = argparse.ArgumentParser(
        description="Turn photos and voice notes into sketch diary entries.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    common = _add_common_args(argparse.ArgumentParser(add_help=False))
    subparsers = parser.add_subparsers(dest="command")

    places = subparsers.add_parser(
        "places", parents=[common], help="Search places by name."
    )
    places.add_argument("query", help="Literal search term.")
    places.set_defaults(func=_cmd_places)

    write = subparsers.add_parser(
        "write", parents=[common], help="Create a diary entry with a sketch."
    )
    write.add_argument("photo", help="Path to the photo.")
    write.add_argument("--transcript", required=True, help="Voice note text.")
    write.add_argument("--place", help="Optional place name.")
    write.add_argument("--mime-type", help="Override the detected photo type.")
    write.add_argument("--entries", help="JSON file to store the new entry in.")
    write.set_defaults(func=_cmd_write)

    sketch = subparsers.add_parser(
        "sketch", parents=[common], help="Draw a sketch from a photo."
    )
    sketch.add_argument("photo", help="Path to the photo.")
    sketch.add_argument("--transcript", required=True, help="Voice note text.")
    sketch.add_argument("--mime-type", help="Override the detected photo type.")
    sketch.add_argument("--output", required=True, help="Where to write the image.")
    sketch.set_defaults(func=_cmd_sketch)

    summarize = subparsers.add_parser(
        "summarize", parents=[common], help="Summarise today's entries."
    )
    summarize.add_argument("entries", help="JSON file containing diary entries.")
    summarize.add_argument(
        "--all", action="store_true", help="Summarise every entry, not only today's."
    )
    summarize.set_defaults(func=_cmd_summarize)
    return parser


def _apply_args_to_settings(args: argparse.Namespace, settings: Settings) -> None:
    """Override settings fields based on CLI arguments.

    Assignments are validated, so out-of-range values raise
    :class:`pydantic.ValidationError`.
    """
    arg_mapping = {
        "max_concurrency": "max_concurrency",
        "request_delay": "request_delay",
        "retries": "max_retry_attempts",
    }
    for arg_name, attr in arg_mapping.items():
        value = getattr(args, arg_name, None)
        if value is not None:
            setattr(settings, attr, value)


def _run_async_with_signals(coro: Coroutine[Any, Any, Any]) -> Any:
    """Execute ``coro`` and cancel on SIGINT or SIGTERM."""

    async def _runner() -> Any:
        loop = asyncio.get_running_loop()
        task = asyncio.create_task(coro)
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, task.cancel)
        try:
            return await task
        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)

    return asyncio.run(_runner())


def build_service(env: RuntimeEnv) -> DiaryService:
    """Wire a :class:`DiaryService` to the runtime queue and settings."""
    settings = env.settings
    return DiaryService(
        GeminiGateway(settings.api_key),
        env.task_queue,
        policy=env.retry_policy,
        models=settings.models,
    )


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the requested subcommand."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        raise SystemExit(1)
    settings = load_settings(args.config)
    _apply_args_to_settings(args, settings)
    _configure_logging(args, settings)
    reporter = QueueStatusReporter()
    env = RuntimeEnv.initialize(settings, observer=reporter)
    service = build_service(env)
    command: Command = args.func
    try:
        _run_async_with_signals(command(args, service))
    finally:
        logfire.info(
            "Run finished",
            command=args.command,
            peak_active=reporter.peak_active,
            queue_updates=reporter.updates,
        )
        logfire.force_flush()


if __name__ == "__main__":
    main()
