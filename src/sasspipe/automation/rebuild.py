"""Recompile only the entry stylesheets a batch of changed files can affect."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from sasspipe.cli.compile_sass import (
    CompileSummary,
    collect_documents,
    compile_documents,
    find_output_collisions,
)
from sasspipe.documents.file_store import to_store_path
from sasspipe.documents.models import Keys
from sasspipe.sass.module import Sass


LOGGER = logging.getLogger(__name__)


class IncrementalBuilder:
    """Track which partials each entry stylesheet imports and rebuild on demand.

    After a compile every entry remembers the store paths its imports resolved
    to. A later change to one of those paths, or to the entry itself, queues
    the entry for recompilation. Entries that have never compiled successfully
    have no known imports and are rebuilt on every change.
    """

    def __init__(self, module: Sass, source_dir: str | Path, output_dir: str | Path) -> None:
        self._module = module
        self._source_dir = Path(source_dir)
        self._output_dir = Path(output_dir)
        self._dependencies: dict[str, frozenset[str]] = {}

    @property
    def dependencies(self) -> dict[str, frozenset[str]]:
        return dict(self._dependencies)

    def _store_paths(self, changed: Iterable[str | Path]) -> set[str]:
        root = self._source_dir.resolve()
        store_paths: set[str] = set()
        for raw in changed:
            try:
                relative = Path(raw).resolve().relative_to(root)
            except ValueError:
                LOGGER.debug("Ignoring change outside %s: %s", root, raw)
                continue
            store_paths.add(str(to_store_path(relative.as_posix())))
        return store_paths

    def affected_entries(self, changed: Iterable[str | Path], entries: Iterable[str]) -> list[str]:
        touched = self._store_paths(changed)
        affected: list[str] = []
        for entry in entries:
            known = self._dependencies.get(entry)
            if known is None or str(to_store_path(entry)) in touched or known & touched:
                affected.append(entry)
        return affected

    def _record(self, summary: CompileSummary, compiled: Iterable[str]) -> None:
        for entry in compiled:
            imports = summary.dependencies.get(entry)
            if imports is None:
                self._dependencies.pop(entry, None)
            else:
                self._dependencies[entry] = frozenset(imports)

    def build_all(self) -> CompileSummary:
        documents = collect_documents(self._source_dir)
        summary = compile_documents(self._module, documents, self._source_dir, self._output_dir)
        self._dependencies.clear()
        self._record(summary, summary.inputs)
        return summary

    def rebuild(self, changed: Iterable[str | Path]) -> CompileSummary | None:
        """Recompile entries touched by ``changed``; None when nothing is affected."""

        documents = collect_documents(self._source_dir)
        present = {str(document.get(Keys.RELATIVE_FILE_PATH)) for document in documents}
        for removed in set(self._dependencies) - present:
            del self._dependencies[removed]

        affected = set(self.affected_entries(changed, sorted(present)))
        for sharing in find_output_collisions(sorted(present)).values():
            if affected.intersection(sharing):
                affected.update(sharing)
        if not affected:
            return None

        selected = [document for document in documents if str(document.get(Keys.RELATIVE_FILE_PATH)) in affected]
        LOGGER.info("Rebuilding %d of %d entry stylesheets", len(selected), len(documents))
        summary = compile_documents(self._module, selected, self._source_dir, self._output_dir)
        self._record(summary, summary.inputs)
        return summary
