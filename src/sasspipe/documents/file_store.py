"""Read-only file store contract and a disk-backed implementation."""

from __future__ import annotations

from pathlib import Path, PurePosixPath
import posixpath
from typing import Protocol, runtime_checkable


def to_store_path(path: str | PurePosixPath) -> PurePosixPath:
    """Normalize ``path`` into an absolute POSIX path rooted at the store root."""

    raw = str(path).replace("\\", "/")
    return PurePosixPath(posixpath.normpath("/" + raw.lstrip("/")))


@runtime_checkable
class FileStore(Protocol):
    """Path-based read access used while resolving imports."""

    def exists(self, path: PurePosixPath) -> bool:
        """Return True when ``path`` names a readable file."""

    def read_bytes(self, path: PurePosixPath) -> bytes:
        """Return the full content of ``path``; raise OSError on failure."""


class LocalFileStore:
    """Serve store paths from one or more directories, first match wins."""

    def __init__(self, *roots: str | Path) -> None:
        if not roots:
            raise ValueError("LocalFileStore needs at least one root directory")
        self._roots = tuple(Path(root) for root in roots)

    @property
    def roots(self) -> tuple[Path, ...]:
        return self._roots

    def _locate(self, path: PurePosixPath) -> Path | None:
        relative = to_store_path(path).relative_to("/")
        for root in self._roots:
            candidate = root.joinpath(*relative.parts)
            if candidate.is_file():
                return candidate
        return None

    def exists(self, path: PurePosixPath) -> bool:
        return self._locate(path) is not None

    def local_path(self, path: PurePosixPath) -> Path | None:
        """Return the absolute disk file backing ``path``, if any."""

        located = self._locate(path)
        return located.resolve() if located is not None else None

    def read_bytes(self, path: PurePosixPath) -> bytes:
        located = self._locate(path)
        if located is None:
            raise FileNotFoundError(f"No such file in store: {path}")
        return located.read_bytes()


def local_path_for(store: FileStore, path: PurePosixPath) -> Path | None:
    """Disk location of ``path`` for stores that expose one (``local_path``), else None."""

    local_path = getattr(store, "local_path", None)
    if local_path is None:
        return None
    return local_path(path)
