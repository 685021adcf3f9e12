from __future__ import annotations

import asyncio
from pathlib import Path

from watchdog.events import FileCreatedEvent, FileDeletedEvent, FileModifiedEvent, FileMovedEvent

from sasspipe.automation.watcher import StylesheetChangeCollector, StylesheetWatcher


def test_collector_publishes_one_batch_once_events_settle() -> None:
    async def _scenario() -> None:
        queue: asyncio.Queue[frozenset[Path]] = asyncio.Queue()
        collector = StylesheetChangeCollector(
            loop=asyncio.get_running_loop(),
            queue=queue,
            settle_seconds=0.2,
        )

        collector.on_created(FileCreatedEvent("styles/site.scss"))
        for name in ("_vars.scss", "_mixins.scss", "_vars.scss"):
            await asyncio.sleep(0.05)
            collector.on_modified(FileModifiedEvent(f"styles/{name}"))

        batch = await asyncio.wait_for(queue.get(), timeout=1.0)
        await asyncio.sleep(0.3)

        assert {path.name for path in batch} == {"site.scss", "_vars.scss", "_mixins.scss"}
        assert queue.empty()
        collector.close()

    asyncio.run(_scenario())


def test_collector_counts_deletions_and_both_ends_of_moves() -> None:
    async def _scenario() -> None:
        queue: asyncio.Queue[frozenset[Path]] = asyncio.Queue()
        collector = StylesheetChangeCollector(
            loop=asyncio.get_running_loop(),
            queue=queue,
            settle_seconds=0.05,
        )

        collector.on_deleted(FileDeletedEvent("styles/_old.scss"))
        collector.on_moved(FileMovedEvent("styles/_a.scss", "styles/_b.scss"))

        batch = await asyncio.wait_for(queue.get(), timeout=1.0)

        assert {path.name for path in batch} == {"_old.scss", "_a.scss", "_b.scss"}
        collector.close()

    asyncio.run(_scenario())


def test_collector_pattern_filtering() -> None:
    async def _scenario() -> None:
        queue: asyncio.Queue[frozenset[Path]] = asyncio.Queue()
        collector = StylesheetChangeCollector(
            loop=asyncio.get_running_loop(),
            queue=queue,
            settle_seconds=0.05,
        )

        collector.dispatch(FileCreatedEvent("styles/_vars.scss"))
        collector.dispatch(FileCreatedEvent("styles/site.css"))
        collector.dispatch(FileCreatedEvent("styles/site.scss.tmp"))

        batch = await asyncio.wait_for(queue.get(), timeout=1.0)
        await asyncio.sleep(0.1)

        assert {path.name for path in batch} == {"_vars.scss"}
        assert queue.empty()
        collector.close()

    asyncio.run(_scenario())


def test_watcher_context_starts_and_stops_observer(tmp_path: Path) -> None:
    async def _scenario() -> None:
        watcher = StylesheetWatcher(tmp_path, settle_seconds=0.05)
        async with watcher:
            assert watcher.running
        assert not watcher.running

    asyncio.run(_scenario())


def test_watcher_yields_batch_for_file_written_on_disk(tmp_path: Path) -> None:
    async def _scenario() -> Path:
        async with StylesheetWatcher(tmp_path, settle_seconds=0.1) as watcher:
            await asyncio.sleep(0.2)
            (tmp_path / "_vars.scss").write_text("$c: red;\n", encoding="utf-8")
            batches = watcher.batches()
            batch = await asyncio.wait_for(batches.__anext__(), timeout=5.0)
            await batches.aclose()
        return next(iter(batch))

    assert asyncio.run(_scenario()).name == "_vars.scss"


def test_watcher_rejects_missing_directory(tmp_path: Path) -> None:
    async def _scenario() -> None:
        try:
            async with StylesheetWatcher(tmp_path / "missing"):
                pass
        except ValueError as exc:
            assert "does not exist" in str(exc)
        else:
            raise AssertionError("expected ValueError")

    asyncio.run(_scenario())
