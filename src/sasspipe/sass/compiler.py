"""Compile options, results, and the libsass-backed compiler."""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import Enum
import json
import logging
from pathlib import PurePosixPath
import re
from typing import Callable, Protocol, runtime_checkable

import sass

LOGGER = logging.getLogger(__name__)

# name libsass gives to string input in diagnostics and source maps
STDIN_SOURCE = "stdin"

Importer = Callable[[str, str], "list[tuple[str, ...]] | None"]

_EMBEDDED_MAP_RE = re.compile(
    r"/\*# sourceMappingURL=data:application/json;(?:charset=utf-8;)?base64,(?P<payload>[A-Za-z0-9+/=]+) \*/"
)


class OutputStyle(str, Enum):
    """CSS formatting modes understood by libsass."""

    COMPACT = "compact"
    EXPANDED = "expanded"
    COMPRESSED = "compressed"
    NESTED = "nested"

    @classmethod
    def parse(cls, raw: str) -> "OutputStyle":
        value = raw.strip().lower()
        for style in cls:
            if style.value == value:
                return style
        allowed = ", ".join(style.value for style in cls)
        raise ValueError(f"Unknown output style {raw!r}; expected one of: {allowed}")


@dataclass(frozen=True, slots=True)
class CompileOptions:
    """Everything one compilation needs; built fresh for every document."""

    input_file: str
    importer: Importer | None = None
    output_style: OutputStyle = OutputStyle.COMPACT
    source_comments: bool = True
    generate_source_map: bool = False
    include_paths: tuple[str, ...] = ()
    indented: bool = False


@dataclass(frozen=True, slots=True)
class CompileResult:
    """Compiler output. ``css`` is None when compilation failed."""

    css: str | None = None
    source_map: str | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.css is not None


@runtime_checkable
class SassCompiler(Protocol):
    """Contract for anything that turns Sass source into CSS."""

    def compile(self, source: str, options: CompileOptions) -> CompileResult:
        """Compile ``source``; report failures through ``CompileResult.error``."""


def split_embedded_source_map(css: str, map_name: str) -> tuple[str, str | None]:
    """Replace an inline data-URI source map with a link to ``map_name``.

    Returns the rewritten CSS and the decoded map, or the CSS unchanged and
    None when no embedded map is present.
    """

    match = _EMBEDDED_MAP_RE.search(css)
    if match is None:
        return css, None
    try:
        source_map = base64.b64decode(match.group("payload"), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        LOGGER.warning("Discarding undecodable embedded source map")
        return css, None

    rewritten = css[: match.start()] + f"/*# sourceMappingURL={map_name} */" + css[match.end() :]
    return rewritten, source_map


def relabel_source_map(source_map: str, css_name: str, source_name: str) -> str:
    """Name the real stylesheet in a map libsass produced from string input.

    libsass calls string input ``stdin``; ``file`` becomes ``css_name`` and the
    ``stdin`` source becomes ``source_name``.
    """

    try:
        payload = json.loads(source_map)
    except json.JSONDecodeError:
        LOGGER.warning("Leaving unparsable source map untouched")
        return source_map
    if not isinstance(payload, dict):
        return source_map

    payload["file"] = css_name
    payload["sources"] = [
        source_name if source == STDIN_SOURCE else source for source in payload.get("sources", [])
    ]
    return json.dumps(payload)


class LibsassCompiler:
    """Compile Sass strings with libsass, routing imports through the options' importer."""

    def compile(self, source: str, options: CompileOptions) -> CompileResult:
        kwargs: dict[str, object] = {
            "string": source,
            "output_style": options.output_style.value,
            "source_comments": options.source_comments,
            "include_paths": list(options.include_paths),
        }
        if options.importer is not None:
            kwargs["importers"] = [(0, options.importer)]
        if options.indented:
            kwargs["indented"] = True
        if options.generate_source_map:
            kwargs["source_map_embed"] = True
            kwargs["source_map_contents"] = True

        try:
            css = sass.compile(**kwargs)
        except sass.CompileError as exc:
            message = str(exc).strip()
            LOGGER.warning("Sass compilation failed for %s: %s", options.input_file, message)
            return CompileResult(error=message)

        source_map: str | None = None
        if options.generate_source_map:
            input_file = PurePosixPath(options.input_file)
            css, source_map = split_embedded_source_map(css, input_file.with_suffix(".map").name)
            if source_map is not None:
                source_map = relabel_source_map(source_map, input_file.with_suffix(".css").name, input_file.name)
        return CompileResult(css=css, source_map=source_map)
