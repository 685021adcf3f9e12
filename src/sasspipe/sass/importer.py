"""Resolve Sass ``@import`` requests against a file store instead of the disk."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from pathlib import PurePosixPath
from typing import Iterable, Iterator

from sasspipe.documents.encoding import decode_content
from sasspipe.documents.file_store import FileStore, local_path_for, to_store_path

LOGGER = logging.getLogger(__name__)

# libsass reports string input as coming from this pseudo file
STDIN_SENTINEL = "stdin"

_SASS_EXTENSIONS = (".scss", ".sass")
_PLAIN_CSS_PREFIXES = ("http://", "https://", "//", "url(")


@dataclass(frozen=True, slots=True)
class ImportResult:
    """A resolved import: absolute store path plus decoded source."""

    path: PurePosixPath
    content: str


def is_plain_css_import(specifier: str) -> bool:
    """Return True for imports Sass passes through to CSS untouched."""

    lowered = specifier.strip().lower()
    return lowered.endswith(".css") or lowered.startswith(_PLAIN_CSS_PREFIXES)


def _partial(path: PurePosixPath) -> PurePosixPath:
    if path.name.startswith("_"):
        return path
    return path.with_name("_" + path.name)


def candidate_paths(specifier: str, roots: Iterable[PurePosixPath]) -> Iterator[PurePosixPath]:
    """Yield candidate store paths for ``specifier`` in resolution order.

    For each root: the path as given, its partial, and when the specifier has
    no extension both of those with ``.scss`` and then with ``.sass``.
    """

    for root in roots:
        base = to_store_path(root / specifier)
        if not base.name:
            continue
        variants = [base, _partial(base)]
        if not base.suffix:
            for extension in _SASS_EXTENSIONS:
                with_extension = base.with_name(base.name + extension)
                variants.extend([with_extension, _partial(with_extension)])

        seen: set[PurePosixPath] = set()
        for variant in variants:
            if variant in seen:
                continue
            seen.add(variant)
            yield variant


class ImportResolver:
    """Per-document import callback bound to one input path.

    Instances are never shared between compilations, so they carry no locking.
    Every store path handed to libsass is remembered in ``resolved_paths``.
    """

    def __init__(
        self,
        file_store: FileStore,
        input_path: str | PurePosixPath,
        include_paths: Iterable[str] = (),
    ) -> None:
        self._file_store = file_store
        self._input_path = to_store_path(input_path)
        self._include_roots = tuple(to_store_path(path) for path in include_paths)
        self._resolved: list[PurePosixPath] = []
        # disk paths handed to libsass for indented-syntax files, keyed back to store paths
        self._local_to_store: dict[str, PurePosixPath] = {}

    @property
    def input_path(self) -> PurePosixPath:
        return self._input_path

    @property
    def resolved_paths(self) -> tuple[PurePosixPath, ...]:
        return tuple(self._resolved)

    def _requesting_path(self, requesting_path: str | None) -> PurePosixPath:
        if not requesting_path or requesting_path == STDIN_SENTINEL:
            return self._input_path
        mapped = self._local_to_store.get(os.path.normpath(requesting_path))
        if mapped is not None:
            return mapped
        return to_store_path(requesting_path)

    def search_roots(self, requesting_path: str | None = None) -> list[PurePosixPath]:
        roots = [self._requesting_path(requesting_path).parent]
        for root in self._include_roots:
            if root not in roots:
                roots.append(root)
        return roots

    def resolve(self, specifier: str, requesting_path: str | None = None) -> ImportResult | None:
        """Return the first existing candidate, or None to defer to libsass."""

        if not specifier or is_plain_css_import(specifier):
            return None

        for candidate in candidate_paths(specifier, self.search_roots(requesting_path)):
            if not self._file_store.exists(candidate):
                continue
            try:
                raw = self._file_store.read_bytes(candidate)
            except OSError as exc:
                LOGGER.warning("Could not read import candidate %s: %s", candidate, exc)
                continue
            LOGGER.debug("Resolved @import %r from %s to %s", specifier, requesting_path, candidate)
            return ImportResult(path=candidate, content=decode_content(raw))

        LOGGER.debug("No store match for @import %r from %s, deferring", specifier, requesting_path)
        return None

    def _indented_entry(self, result: ImportResult) -> tuple[str] | None:
        # importer-supplied source is always parsed as SCSS; indented files are read by libsass from disk
        local = local_path_for(self._file_store, result.path)
        if local is None:
            LOGGER.warning("Cannot hand indented import %s to libsass: no local file, deferring", result.path)
            return None
        key = os.path.normpath(str(local))
        self._local_to_store[key] = result.path
        return (key,)

    def __call__(self, path: str, prev: str | None = None) -> list[tuple[str, ...]] | None:
        """libsass importer signature: ``(path, prev)`` to ``[(filename, source)]``.

        Indented ``.sass`` hits are returned as ``(filename,)`` so libsass reads
        and converts them.
        """

        result = self.resolve(path, prev)
        if result is None:
            return None
        if result.path.suffix == ".sass":
            entry = self._indented_entry(result)
            if entry is None:
                return None
            self._resolved.append(result.path)
            return [entry]
        self._resolved.append(result.path)
        return [(str(result.path), result.content)]
