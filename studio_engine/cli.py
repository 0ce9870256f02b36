"""Image studio CLI entrypoints."""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from .assets import Flow, OrchestratorState
from .cli_progress import ProgressTicker
from .config import StudioSettings
from .engine import ImageStudio
from .errors import ConcurrentRequestError, InvalidInputError, PlatformError
from .export import export_name


GENERATE_PROGRESS_LABEL = "Generating your image..."
EDIT_PROGRESS_LABEL = "Applying AI magic..."


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image-studio", description="Generate and edit images with AI")
    sub = parser.add_subparsers(dest="command")

    generate = sub.add_parser("generate", help="Generate an image from a prompt")
    generate.add_argument("--prompt", required=True)
    _add_run_options(generate)

    edit = sub.add_parser("edit", help="Edit an image with a prompt")
    edit.add_argument("--image", required=True, help="Path to the source image")
    edit.add_argument("--prompt", required=True)
    edit.add_argument("--media-type", dest="media_type", help="Override the source media type")
    _add_run_options(edit)

    name = sub.add_parser("name", help="Print the download filename for a result")
    name.add_argument("--flow", choices=[flow.value for flow in Flow], required=True)
    name.add_argument("--prompt")
    name.add_argument("--media-type", dest="media_type")

    return parser


def _add_run_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--out", help="Directory the result is saved into")
    parser.add_argument("--provider", help="Image client to use (gemini or dryrun)")
    parser.add_argument("--events", help="Path to events.jsonl")


def _settings_from_args(args: argparse.Namespace) -> StudioSettings:
    settings = StudioSettings.from_env()
    overrides: dict[str, object] = {}
    if args.out:
        overrides["download_dir"] = Path(args.out).expanduser()
    if args.provider:
        overrides["provider"] = args.provider.strip().lower()
    if args.events:
        overrides["events_path"] = Path(args.events).expanduser()
    return replace(settings, **overrides) if overrides else settings


async def _await_with_progress(future: "asyncio.Future[OrchestratorState]", label: str) -> OrchestratorState:
    if future.done():
        return future.result()
    ticker = ProgressTicker(label)
    ticker.start_ticking()
    try:
        return await future
    finally:
        ticker.stop()


def _finish(studio: ImageStudio, flow: Flow, state: OrchestratorState) -> int:
    if not state.succeeded:
        print(state.message or "Request failed.", file=sys.stderr)
        return 1
    try:
        path = studio.request_download(flow)
    except PlatformError as exc:
        print(f"Could not save the image: {exc.message}", file=sys.stderr)
        return 2
    print(f"Saved to {path}")
    return 0


def _handle_generate(args: argparse.Namespace) -> int:
    studio = ImageStudio(settings=_settings_from_args(args))

    async def _run() -> OrchestratorState:
        return await _await_with_progress(studio.submit_generate(args.prompt), GENERATE_PROGRESS_LABEL)

    return _finish(studio, Flow.GENERATE, asyncio.run(_run()))


def _handle_edit(args: argparse.Namespace) -> int:
    studio = ImageStudio(settings=_settings_from_args(args))

    async def _run() -> OrchestratorState:
        future = studio.submit_edit(args.prompt, Path(args.image).expanduser(), args.media_type)
        return await _await_with_progress(future, EDIT_PROGRESS_LABEL)

    return _finish(studio, Flow.EDIT, asyncio.run(_run()))


def _handle_name(args: argparse.Namespace) -> int:
    print(export_name(Flow(args.flow), prompt=args.prompt, media_type=args.media_type))
    return 0


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    try:
        if args.command == "generate":
            raise SystemExit(_handle_generate(args))
        if args.command == "edit":
            raise SystemExit(_handle_edit(args))
        if args.command == "name":
            raise SystemExit(_handle_name(args))
    except (InvalidInputError, ConcurrentRequestError) as exc:
        print(exc.message, file=sys.stderr)
        raise SystemExit(1) from exc
    parser.print_help()
    raise SystemExit(1)


if __name__ == "__main__":
    main()
