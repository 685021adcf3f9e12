"""CLI command that compiles a folder of Sass/SCSS files into CSS."""

from __future__ import annotations

import argparse
from collections import defaultdict
from dataclasses import dataclass, field
import json
import logging
from pathlib import Path, PurePosixPath
from typing import Sequence

from dotenv import load_dotenv

from sasspipe.documents.context import ExecutionContext
from sasspipe.documents.file_store import LocalFileStore
from sasspipe.documents.models import Document, Keys
from sasspipe.sass.compiler import OutputStyle
from sasspipe.sass.config import SassSettings
from sasspipe.sass.module import Sass


LOGGER = logging.getLogger(__name__)

_STYLESHEET_SUFFIXES = {".scss", ".sass"}


@dataclass(frozen=True, slots=True)
class CompileSummary:
    inputs: list[str]
    outputs: list[str]
    failed: list[str]
    # output path -> inputs that would all be written there
    collisions: dict[str, list[str]] = field(default_factory=dict)
    # input path -> store paths its imports resolved to
    dependencies: dict[str, tuple[str, ...]] = field(default_factory=dict)


def _is_entry_stylesheet(path: Path) -> bool:
    return path.suffix.lower() in _STYLESHEET_SUFFIXES and not path.name.startswith("_")


def css_path_for(relative_path: str) -> str:
    return PurePosixPath(relative_path).with_suffix(".css").as_posix()


def collect_documents(source_dir: Path) -> list[Document]:
    """Load every non-partial stylesheet below ``source_dir`` as a document."""

    documents: list[Document] = []
    for path in sorted(source_dir.rglob("*")):
        if not path.is_file() or not _is_entry_stylesheet(path):
            continue
        relative = path.relative_to(source_dir).as_posix()
        documents.append(
            Document(
                content=path.read_bytes(),
                metadata={Keys.RELATIVE_FILE_PATH: relative, Keys.SOURCE: str(path)},
            )
        )
    return documents


def find_output_collisions(inputs: Sequence[str]) -> dict[str, list[str]]:
    """Group inputs by the CSS path they compile to, keeping only shared targets."""

    targets: dict[str, list[str]] = defaultdict(list)
    for relative in inputs:
        targets[css_path_for(relative)].append(relative)
    return {output: sorted(paths) for output, paths in targets.items() if len(paths) > 1}


def write_outputs(documents: list[Document], output_dir: Path) -> list[str]:
    written: list[str] = []
    for document in documents:
        write_path = document.get(Keys.WRITE_PATH)
        if write_path is None:
            continue
        target = output_dir / str(write_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(document.content)
        written.append(Path(str(write_path)).as_posix())
    return sorted(written)


def compile_documents(
    module: Sass,
    documents: Sequence[Document],
    source_dir: Path,
    output_dir: Path,
) -> CompileSummary:
    """Compile ``documents`` read from ``source_dir`` and write results to ``output_dir``.

    Inputs that would overwrite each other's CSS (``a.scss`` next to
    ``a.sass``) are not compiled and are reported as failed.
    """

    inputs = [str(document.get(Keys.RELATIVE_FILE_PATH)) for document in documents]
    collisions = find_output_collisions(inputs)
    colliding = {path for paths in collisions.values() for path in paths}
    for output, paths in sorted(collisions.items()):
        LOGGER.error("Skipping %s: all would be written to %s", ", ".join(paths), output)

    compilable = [
        document for document in documents if str(document.get(Keys.RELATIVE_FILE_PATH)) not in colliding
    ]
    context = ExecutionContext(LocalFileStore(source_dir))
    produced = module.execute(compilable, context)
    written = write_outputs(produced, output_dir)

    input_for_css = {
        css_path_for(str(document.get(Keys.RELATIVE_FILE_PATH))): str(document.get(Keys.RELATIVE_FILE_PATH))
        for document in compilable
    }
    dependencies: dict[str, tuple[str, ...]] = {}
    for document in produced:
        write_path = document.get(Keys.WRITE_PATH)
        if write_path is None:
            continue
        relative = input_for_css.get(PurePosixPath(str(write_path)).as_posix())
        if relative is not None:
            dependencies[relative] = tuple(str(path) for path in document.get(Keys.DEPENDENCIES, ()))

    failed = [path for path in inputs if path not in dependencies]
    return CompileSummary(
        inputs=inputs,
        outputs=written,
        failed=failed,
        collisions=collisions,
        dependencies=dependencies,
    )


def compile_directory(module: Sass, source_dir: Path, output_dir: Path) -> CompileSummary:
    return compile_documents(module, collect_documents(source_dir), source_dir, output_dir)


def build_module(args: argparse.Namespace, settings: SassSettings) -> Sass:
    module = Sass.from_settings(settings)
    module.with_include_paths(args.include_path or [])
    if args.style:
        module.with_output_style(args.style)
    if args.source_map:
        module.generate_source_map()
    if args.no_source_comments:
        module.include_source_comments(False)
    return module


def add_compile_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--output", required=True, help="Directory receiving compiled CSS")
    parser.add_argument(
        "--include-path",
        action="append",
        help="Extra import search root, relative to the source directory (repeatable)",
    )
    parser.add_argument(
        "--style",
        choices=[style.value for style in OutputStyle],
        help="Output style (default: SASS_OUTPUT_STYLE or compact)",
    )
    parser.add_argument("--source-map", action="store_true", help="Also write .map files")
    parser.add_argument(
        "--no-source-comments",
        action="store_true",
        help="Omit source line comments from the CSS",
    )


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    load_dotenv()

    parser = argparse.ArgumentParser(description="Compile Sass/SCSS files to CSS")
    parser.add_argument("--path", required=True, help="Directory containing stylesheets")
    add_compile_arguments(parser)
    args = parser.parse_args(argv)

    source_dir = Path(args.path)
    if not source_dir.is_dir():
        LOGGER.error("path must exist and be a directory: %s", source_dir)
        return 2

    try:
        settings = SassSettings.from_env()
    except ValueError as exc:
        LOGGER.error("Configuration error: %s", exc)
        return 2

    module = build_module(args, settings)
    summary = compile_directory(module, source_dir, Path(args.output))

    payload = {
        "path": str(source_dir),
        "processed": len(summary.inputs),
        "outputs": summary.outputs,
        "failed": summary.failed,
        "collisions": summary.collisions,
    }
    print(json.dumps(payload, ensure_ascii=True, indent=2))
    return 0 if not summary.failed else 1


if __name__ == "__main__":
    raise SystemExit(main())
