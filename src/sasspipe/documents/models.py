"""Document structures shared by pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
import io
from types import MappingProxyType
from typing import Any, BinaryIO, Mapping
import uuid


class Keys:
    """Well-known metadata keys."""

    RELATIVE_FILE_PATH = "relative_file_path"
    WRITE_PATH = "write_path"
    SOURCE = "source"
    DEPENDENCIES = "dependencies"


def _new_document_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Document:
    """An immutable unit of pipeline content with its metadata."""

    content: bytes = b""
    metadata: Mapping[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=_new_document_id)
    parent_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def source(self) -> str:
        """Human readable origin used in diagnostics."""

        value = self.metadata.get(Keys.SOURCE) or self.metadata.get(Keys.RELATIVE_FILE_PATH)
        return str(value) if value is not None else f"document {self.id}"

    def get(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def open_content(self) -> BinaryIO:
        return io.BytesIO(self.content)
