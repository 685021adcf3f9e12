"""Runtime configuration for Sass compilation."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Mapping

from sasspipe.sass.compiler import OutputStyle


DEFAULT_OUTPUT_STYLE = OutputStyle.COMPACT
DEFAULT_SOURCE_COMMENTS = True
DEFAULT_SOURCE_MAP = False

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(*, name: str, raw_value: str) -> bool:
    value = raw_value.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {raw_value!r})")


def _parse_positive_int(*, name: str, raw_value: str, minimum: int = 1) -> int:
    try:
        value = int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer (got {raw_value!r})") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


@dataclass(frozen=True, slots=True)
class SassSettings:
    """Validated compilation settings shared by the CLIs."""

    output_style: OutputStyle = DEFAULT_OUTPUT_STYLE
    include_paths: tuple[str, ...] = ()
    source_comments: bool = DEFAULT_SOURCE_COMMENTS
    source_map: bool = DEFAULT_SOURCE_MAP
    max_workers: int | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "SassSettings":
        source: Mapping[str, str] = os.environ if environ is None else environ

        style_raw = source.get("SASS_OUTPUT_STYLE", DEFAULT_OUTPUT_STYLE.value).strip()
        if not style_raw:
            raise ValueError("SASS_OUTPUT_STYLE cannot be empty")
        try:
            output_style = OutputStyle.parse(style_raw)
        except ValueError as exc:
            raise ValueError(f"SASS_OUTPUT_STYLE: {exc}") from exc

        include_raw = source.get("SASS_INCLUDE_PATHS", "")
        include_paths = tuple(part.strip() for part in include_raw.split(os.pathsep) if part.strip())

        source_comments = _parse_bool(
            name="SASS_SOURCE_COMMENTS",
            raw_value=source.get("SASS_SOURCE_COMMENTS", str(DEFAULT_SOURCE_COMMENTS)),
        )
        source_map = _parse_bool(
            name="SASS_SOURCE_MAP",
            raw_value=source.get("SASS_SOURCE_MAP", str(DEFAULT_SOURCE_MAP)),
        )

        max_workers: int | None = None
        workers_raw = source.get("SASS_MAX_WORKERS", "").strip()
        if workers_raw:
            max_workers = _parse_positive_int(name="SASS_MAX_WORKERS", raw_value=workers_raw)

        return cls(
            output_style=output_style,
            include_paths=include_paths,
            source_comments=source_comments,
            source_map=source_map,
            max_workers=max_workers,
        )
