"""CLI entrypoint that recompiles the affected stylesheets whenever a folder changes."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

from sasspipe.automation.rebuild import IncrementalBuilder
from sasspipe.automation.watcher import StylesheetWatcher
from sasspipe.cli.compile_sass import CompileSummary, add_compile_arguments, build_module
from sasspipe.sass.config import SassSettings


load_dotenv()

LOGGER = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch a folder and recompile Sass on change")
    parser.add_argument("--watch-dir", required=True, help="Directory containing stylesheets")
    add_compile_arguments(parser)
    parser.add_argument(
        "--settle",
        type=float,
        default=0.5,
        help="Seconds without file events before a batch of changes is rebuilt",
    )
    return parser.parse_args(argv)


def _report(summary: CompileSummary, output_dir: Path) -> None:
    if summary.failed:
        LOGGER.error("Failed to compile: %s", ", ".join(summary.failed))
    LOGGER.info("Wrote %d files to %s", len(summary.outputs), output_dir)


async def _run_watcher(args: argparse.Namespace, builder: IncrementalBuilder) -> int:
    watch_dir = Path(args.watch_dir)
    output_dir = Path(args.output)

    _report(await asyncio.to_thread(builder.build_all), output_dir)

    async with StylesheetWatcher(watch_dir, settle_seconds=float(args.settle)) as watcher:
        LOGGER.info("Watching %s (settle %.1fs)", watch_dir, float(args.settle))
        async for changed in watcher.batches():
            LOGGER.info("Detected %d changed file(s)", len(changed))
            summary = await asyncio.to_thread(builder.rebuild, changed)
            if summary is None:
                LOGGER.info("No entry stylesheet imports the changed files")
                continue
            _report(summary, output_dir)

    LOGGER.info("Watcher stopped cleanly")
    return 0


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = _parse_args(argv)

    watch_dir = Path(args.watch_dir)
    if not watch_dir.exists() or not watch_dir.is_dir():
        LOGGER.error("watch-dir must exist and be a directory: %s", watch_dir)
        return 2

    try:
        settings = SassSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2

    builder = IncrementalBuilder(build_module(args, settings), watch_dir, Path(args.output))
    try:
        return asyncio.run(_run_watcher(args, builder))
    except KeyboardInterrupt:
        LOGGER.info("Shutdown requested")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
