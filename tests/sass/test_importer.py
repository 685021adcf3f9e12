from __future__ import annotations

from pathlib import Path, PurePosixPath

from sasspipe.documents.file_store import to_store_path
from sasspipe.sass.importer import ImportResolver, candidate_paths, is_plain_css_import


class _MemoryStore:
    def __init__(self, files: dict[str, str], unreadable: set[str] | None = None) -> None:
        self._files = {to_store_path(path): content for path, content in files.items()}
        self._unreadable = {to_store_path(path) for path in unreadable or set()}
        self.reads: list[PurePosixPath] = []

    def exists(self, path: PurePosixPath) -> bool:
        return path in self._files

    def read_bytes(self, path: PurePosixPath) -> bytes:
        self.reads.append(path)
        if path in self._unreadable:
            raise PermissionError(f"denied: {path}")
        return self._files[path].encode("utf-8")


def test_candidate_order_for_extensionless_specifier() -> None:
    candidates = list(candidate_paths("foo", [PurePosixPath("/a")]))

    assert [str(path) for path in candidates] == [
        "/a/foo",
        "/a/_foo",
        "/a/foo.scss",
        "/a/_foo.scss",
        "/a/foo.sass",
        "/a/_foo.sass",
    ]


def test_candidate_order_keeps_given_extension_and_nested_dirs() -> None:
    candidates = list(candidate_paths("mixins/grid.scss", [PurePosixPath("/lib")]))

    assert [str(path) for path in candidates] == ["/lib/mixins/grid.scss", "/lib/mixins/_grid.scss"]


def test_resolves_plain_then_partial_in_requesting_directory() -> None:
    plain = ImportResolver(_MemoryStore({"a/foo.scss": "$x: 1;"}), "a/b.scss")
    partial = ImportResolver(_MemoryStore({"a/_foo.scss": "$x: 2;"}), "a/b.scss")

    plain_result = plain.resolve("foo", "a/b.scss")
    partial_result = partial.resolve("foo", "a/b.scss")

    assert plain_result is not None
    assert plain_result.path == PurePosixPath("/a/foo.scss")
    assert plain_result.content == "$x: 1;"
    assert partial_result is not None
    assert partial_result.path == PurePosixPath("/a/_foo.scss")


def test_defers_when_nothing_matches_without_include_paths() -> None:
    store = _MemoryStore({"other/foo.scss": ""})
    resolver = ImportResolver(store, "a/b.scss")

    assert resolver.resolve("foo", "a/b.scss") is None
    assert resolver("foo", "a/b.scss") is None
    assert store.reads == []


def test_requesting_directory_wins_over_include_path() -> None:
    store = _MemoryStore({"a/_foo.scss": "local", "vendor/foo.scss": "vendor"})
    resolver = ImportResolver(store, "a/b.scss", include_paths=["vendor"])

    result = resolver.resolve("foo", "a/b.scss")

    assert result is not None
    assert result.content == "local"


def test_include_paths_are_searched_in_configured_order() -> None:
    store = _MemoryStore({"second/_grid.sass": "second", "third/grid.scss": "third"})
    resolver = ImportResolver(store, "site/main.scss", include_paths=["first", "second", "third"])

    result = resolver.resolve("grid", "site/main.scss")

    assert result is not None
    assert result.path == PurePosixPath("/second/_grid.sass")


def test_sass_extension_used_only_when_scss_missing() -> None:
    store = _MemoryStore({"a/_foo.sass": "indented", "a/foo.scss": "scss"})
    resolver = ImportResolver(store, "a/b.scss")

    result = resolver.resolve("foo")

    assert result is not None
    assert result.content == "scss"


def test_stdin_sentinel_means_the_entry_document() -> None:
    store = _MemoryStore({"styles/_vars.scss": "$c: red;"})
    resolver = ImportResolver(store, "styles/site.scss")

    assert resolver("vars", "stdin") == [("/styles/_vars.scss", "$c: red;")]
    assert resolver("vars", "") == [("/styles/_vars.scss", "$c: red;")]


def test_nested_imports_resolve_relative_to_importing_file() -> None:
    store = _MemoryStore({"styles/lib/_b.scss": "nested", "styles/_b.scss": "top"})
    resolver = ImportResolver(store, "styles/site.scss")

    result = resolver.resolve("b", "/styles/lib/_a.scss")

    assert result is not None
    assert result.content == "nested"


def test_parent_relative_specifier_is_normalized() -> None:
    store = _MemoryStore({"shared/_colors.scss": "colors"})
    resolver = ImportResolver(store, "site/css/main.scss")

    result = resolver.resolve("../../shared/colors", "site/css/main.scss")

    assert result is not None
    assert result.path == PurePosixPath("/shared/_colors.scss")


def test_read_errors_are_soft_misses() -> None:
    store = _MemoryStore(
        {"a/foo.scss": "locked", "vendor/foo.scss": "vendor"},
        unreadable={"a/foo.scss"},
    )
    resolver = ImportResolver(store, "a/b.scss", include_paths=["vendor"])

    result = resolver.resolve("foo", "a/b.scss")

    assert result is not None
    assert result.content == "vendor"
    assert PurePosixPath("/a/foo.scss") in store.reads


def test_read_error_without_alternative_defers() -> None:
    store = _MemoryStore({"a/foo.scss": "locked"}, unreadable={"a/foo.scss"})
    resolver = ImportResolver(store, "a/b.scss")

    assert resolver.resolve("foo", "a/b.scss") is None


def test_plain_css_imports_are_deferred() -> None:
    store = _MemoryStore({"a/reset.css": "html{}"})
    resolver = ImportResolver(store, "a/b.scss")

    assert is_plain_css_import("reset.css")
    assert is_plain_css_import("https://fonts.example.com/css")
    assert is_plain_css_import("url(foo.css)")
    assert not is_plain_css_import("reset")
    assert resolver.resolve("reset.css", "a/b.scss") is None
    assert store.reads == []


class _DiskBackedStore(_MemoryStore):
    def __init__(self, files: dict[str, str], disk_root: str) -> None:
        super().__init__(files)
        self._disk_root = disk_root

    def local_path(self, path: PurePosixPath) -> Path:
        return Path(self._disk_root + str(path))


def test_indented_hit_is_handed_to_libsass_by_disk_path() -> None:
    store = _DiskBackedStore({"styles/_ind.sass": "$c: red\n"}, "/srv/site")
    resolver = ImportResolver(store, "styles/site.scss")

    assert resolver("ind", "stdin") == [("/srv/site/styles/_ind.sass",)]
    assert resolver.resolved_paths == (PurePosixPath("/styles/_ind.sass"),)


def test_imports_from_an_indented_file_resolve_beside_its_store_path() -> None:
    store = _DiskBackedStore({"styles/lib/_ind.sass": "@import b\n", "styles/lib/_b.scss": "inner"}, "/srv/site")
    resolver = ImportResolver(store, "styles/site.scss")
    resolver("lib/ind", "stdin")

    assert resolver("b", "/srv/site/styles/lib/_ind.sass") == [("/styles/lib/_b.scss", "inner")]


def test_indented_hit_defers_when_store_has_no_local_files() -> None:
    store = _MemoryStore({"styles/_ind.sass": "$c: red\n"})
    resolver = ImportResolver(store, "styles/site.scss")

    assert resolver("ind", "stdin") is None
    assert resolver.resolved_paths == ()


def test_resolved_paths_record_every_import_in_order() -> None:
    store = _MemoryStore({"a/_one.scss": "1", "a/_two.scss": "2"})
    resolver = ImportResolver(store, "a/b.scss")

    resolver("two", "stdin")
    resolver("missing", "stdin")
    resolver("one", "stdin")

    assert resolver.resolved_paths == (PurePosixPath("/a/_two.scss"), PurePosixPath("/a/_one.scss"))
