"""Pipeline module that compiles Sass/SCSS documents to CSS documents."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import os
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence
import uuid

from sasspipe.documents.context import ExecutionContext
from sasspipe.documents.encoding import decode_content
from sasspipe.documents.file_store import to_store_path
from sasspipe.documents.models import Document, Keys
from sasspipe.sass.compiler import CompileOptions, LibsassCompiler, OutputStyle, SassCompiler
from sasspipe.sass.importer import ImportResolver

if TYPE_CHECKING:
    from sasspipe.sass.config import SassSettings

LOGGER = logging.getLogger(__name__)

InputPathSelector = Callable[[Document, ExecutionContext], Any]


def relative_file_path(document: Document, context: ExecutionContext) -> Any:
    """Default input path selector: the document's relative file path metadata."""

    return document.get(Keys.RELATIVE_FILE_PATH)


def placeholder_input_path() -> PurePosixPath:
    return PurePosixPath(f"{uuid.uuid4().hex[:12]}.scss")


@dataclass(frozen=True, slots=True)
class _RunConfig:
    """Immutable snapshot of the module configuration for one batch."""

    input_path: InputPathSelector
    include_paths: tuple[str, ...]
    source_comments: bool
    output_style: OutputStyle
    source_map: bool
    compiler: SassCompiler


class Sass:
    """Compile Sass/SCSS document content to CSS stylesheets.

    Each input produces a CSS document whose ``relative_file_path`` and
    ``write_path`` are the input path with a ``.css`` extension, plus a
    ``.map`` document when source maps are enabled. Documents that fail to
    compile produce nothing and do not affect the rest of the batch.
    Output order is not guaranteed to follow input order. CSS documents also
    carry ``dependencies``: the store paths their imports resolved to.
    Inputs whose path ends in ``.sass`` are compiled as indented syntax.

    Example::

        css_documents = (
            Sass()
            .with_include_paths(["vendor/bootstrap/scss"])
            .with_compressed_output_style()
            .execute(documents, context)
        )
    """

    def __init__(self) -> None:
        self._input_path: InputPathSelector = relative_file_path
        self._include_paths: list[str] = []
        self._include_source_comments = True
        self._output_style = OutputStyle.COMPACT
        self._generate_source_map = False
        self._compiler: SassCompiler = LibsassCompiler()
        self._max_workers: int | None = None

    @classmethod
    def from_settings(cls, settings: "SassSettings") -> "Sass":
        module = (
            cls()
            .with_include_paths(settings.include_paths)
            .include_source_comments(settings.source_comments)
            .with_output_style(settings.output_style)
            .generate_source_map(settings.source_map)
        )
        if settings.max_workers is not None:
            module.with_max_workers(settings.max_workers)
        return module

    def with_input_path(self, input_path: InputPathSelector) -> "Sass":
        """Use ``input_path(document, context)`` to find each document's path.

        The path anchors relative import resolution and names the outputs.
        """

        if input_path is None:
            raise ValueError("input_path selector cannot be None")
        self._input_path = input_path
        return self

    def with_include_paths(self, paths: Iterable[str]) -> "Sass":
        """Add search roots used while resolving imports."""

        self._include_paths.extend(str(path) for path in paths)
        return self

    def include_source_comments(self, include_source_comments: bool = True) -> "Sass":
        self._include_source_comments = include_source_comments
        return self

    def with_output_style(self, output_style: OutputStyle | str) -> "Sass":
        if isinstance(output_style, str):
            output_style = OutputStyle.parse(output_style)
        self._output_style = output_style
        return self

    def with_compact_output_style(self) -> "Sass":
        return self.with_output_style(OutputStyle.COMPACT)

    def with_expanded_output_style(self) -> "Sass":
        return self.with_output_style(OutputStyle.EXPANDED)

    def with_compressed_output_style(self) -> "Sass":
        return self.with_output_style(OutputStyle.COMPRESSED)

    def with_nested_output_style(self) -> "Sass":
        return self.with_output_style(OutputStyle.NESTED)

    def generate_source_map(self, generate_source_map: bool = True) -> "Sass":
        self._generate_source_map = generate_source_map
        return self

    def with_compiler(self, compiler: SassCompiler) -> "Sass":
        if compiler is None:
            raise ValueError("compiler cannot be None")
        self._compiler = compiler
        return self

    def with_max_workers(self, max_workers: int) -> "Sass":
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self._max_workers = max_workers
        return self

    def _snapshot(self) -> _RunConfig:
        return _RunConfig(
            input_path=self._input_path,
            include_paths=tuple(self._include_paths),
            source_comments=self._include_source_comments,
            output_style=self._output_style,
            source_map=self._generate_source_map,
            compiler=self._compiler,
        )

    def execute(self, inputs: Sequence[Document], context: ExecutionContext) -> list[Document]:
        """Compile every input in parallel and return the produced documents."""

        if not inputs:
            return []

        config = self._snapshot()
        max_workers = self._max_workers or os.cpu_count() or 1
        outputs: list[Document] = []
        compiled = 0
        with ThreadPoolExecutor(max_workers=min(max_workers, len(inputs))) as executor:
            futures = [executor.submit(_compile_document, document, context, config) for document in inputs]
            for future in as_completed(futures):
                produced = future.result()
                if produced:
                    compiled += 1
                outputs.extend(produced)

        LOGGER.info("Compiled %d of %d Sass documents", compiled, len(inputs))
        return outputs


def _resolve_input_path(document: Document, context: ExecutionContext, config: _RunConfig) -> PurePosixPath | None:
    try:
        selected = config.input_path(document, context)
    except Exception:
        LOGGER.exception("Input path selector failed for %s, skipping document", document.source)
        return None
    if selected is not None:
        path = PurePosixPath(str(selected).replace("\\", "/"))
        if path.name:
            return path

    placeholder = placeholder_input_path()
    LOGGER.warning("No input path found for %s, using %s", document.source, placeholder)
    return placeholder


def _compile_document(document: Document, context: ExecutionContext, config: _RunConfig) -> list[Document]:
    input_path = _resolve_input_path(document, context, config)
    if input_path is None:
        return []
    LOGGER.debug("Processing Sass for %s", document.source)

    with document.open_content() as stream:
        content = decode_content(stream.read())

    resolver = ImportResolver(context.file_store, input_path, config.include_paths)
    options = CompileOptions(
        input_file=str(to_store_path(input_path)),
        importer=resolver,
        output_style=config.output_style,
        source_comments=config.source_comments,
        generate_source_map=config.source_map,
        include_paths=config.include_paths,
        indented=input_path.suffix.lower() == ".sass",
    )
    result = config.compiler.compile(content, options)
    if result.css is None:
        LOGGER.debug("Dropping %s: no CSS produced", document.source)
        return []

    css_path = input_path.with_suffix(".css")
    produced = [
        context.get_document(
            document,
            result.css,
            {
                Keys.RELATIVE_FILE_PATH: css_path,
                Keys.WRITE_PATH: css_path,
                Keys.DEPENDENCIES: resolver.resolved_paths,
            },
        )
    ]
    if config.source_map and result.source_map is not None:
        map_path = input_path.with_suffix(".map")
        produced.append(
            context.get_document(
                document,
                result.source_map,
                {Keys.RELATIVE_FILE_PATH: map_path, Keys.WRITE_PATH: map_path},
            )
        )
    return produced
