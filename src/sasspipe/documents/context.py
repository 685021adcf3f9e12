"""Execution context handed to pipeline modules."""

from __future__ import annotations

from typing import Any, Mapping

from sasspipe.documents.file_store import FileStore
from sasspipe.documents.models import Document


class ExecutionContext:
    """Document factory plus the file store that modules read includes from."""

    def __init__(self, file_store: FileStore) -> None:
        self._file_store = file_store

    @property
    def file_store(self) -> FileStore:
        return self._file_store

    def get_document(
        self,
        parent: Document,
        content: bytes | str,
        metadata: Mapping[str, Any] | None = None,
    ) -> Document:
        """Derive a new document from ``parent`` with replaced content and overlaid metadata."""

        if isinstance(content, str):
            content = content.encode("utf-8")
        merged = dict(parent.metadata)
        if metadata:
            merged.update(metadata)
        return Document(content=content, metadata=merged, parent_id=parent.id)
