"""Sass/SCSS compilation module and its import resolution bridge."""

from .compiler import CompileOptions, CompileResult, LibsassCompiler, OutputStyle, SassCompiler
from .config import SassSettings
from .importer import ImportResolver, ImportResult
from .module import Sass

__all__ = [
    "CompileOptions",
    "CompileResult",
    "ImportResolver",
    "ImportResult",
    "LibsassCompiler",
    "OutputStyle",
    "Sass",
    "SassCompiler",
    "SassSettings",
]
