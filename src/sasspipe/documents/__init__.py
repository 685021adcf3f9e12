"""Pipeline document collaborators consumed by the Sass module."""

from .context import ExecutionContext
from .file_store import FileStore, LocalFileStore
from .models import Document, Keys

__all__ = ["Document", "ExecutionContext", "FileStore", "Keys", "LocalFileStore"]
