# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Tests for header resolvers."""

from pathlib import Path

from include_audit.resolvers import MappingResolver, SearchPathResolver, first_of, read_source_text


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestSearchPathResolver:
    """Tests for SearchPathResolver."""

    def test_first_directory_wins(self, tmp_path):
        _write(tmp_path / "first" / "config.h", "int first();\n")
        _write(tmp_path / "second" / "config.h", "int second();\n")

        resolver = SearchPathResolver([tmp_path / "first", tmp_path / "second"])

        assert resolver("config.h") == "int first();\n"

    def test_falls_through_to_later_directory(self, tmp_path):
        (tmp_path / "first").mkdir()
        _write(tmp_path / "second" / "net" / "socket.h", "int open_socket();\n")

        resolver = SearchPathResolver([tmp_path / "first", tmp_path / "second"])

        assert resolver.find("net/socket.h") == (tmp_path / "second" / "net" / "socket.h").resolve()

    def test_missing_header_declines(self, tmp_path):
        resolver = SearchPathResolver([tmp_path])

        assert resolver("missing.h") is None

    def test_directory_is_not_a_header(self, tmp_path):
        (tmp_path / "sub.h").mkdir()

        assert SearchPathResolver([tmp_path])("sub.h") is None

    def test_escaping_path_declines(self, tmp_path):
        _write(tmp_path / "secret.h", "int secret();\n")
        (tmp_path / "include").mkdir()

        resolver = SearchPathResolver([tmp_path / "include"])

        assert resolver("../secret.h") is None

    def test_absolute_path_declines(self, tmp_path):
        header = _write(tmp_path / "abs.h", "int a();\n")

        assert SearchPathResolver([tmp_path])(str(header)) is None

    def test_oversized_header_declines(self, tmp_path):
        _write(tmp_path / "big.h", "int x;\n" * 10)

        resolver = SearchPathResolver([tmp_path], max_size=8)

        assert resolver.find("big.h") is not None
        assert resolver("big.h") is None

    def test_latin1_fallback(self, tmp_path):
        (tmp_path / "legacy.h").write_bytes(b"/* caf\xe9 */\nint legacy();\n")

        text = SearchPathResolver([tmp_path])("legacy.h")

        assert text == "/* café */\nint legacy();\n"

    def test_repr(self, tmp_path):
        assert str(tmp_path.resolve()) in repr(SearchPathResolver([tmp_path]))


def test_read_source_text_utf8(tmp_path):
    path = _write(tmp_path / "main.cpp", "// über\nint main() {}\n")

    assert read_source_text(path) == "// über\nint main() {}\n"


def test_mapping_resolver():
    resolver = MappingResolver({"a.h": "int a();\n"})
    resolver.add("b.h", "int b();\n")

    assert resolver("a.h") == "int a();\n"
    assert resolver("b.h") == "int b();\n"
    assert resolver("c.h") is None


def test_mapping_resolver_copies_its_input():
    headers = {"a.h": "int a();\n"}
    resolver = MappingResolver(headers)
    headers["b.h"] = "int b();\n"

    assert resolver("b.h") is None


class TestFirstOf:
    """Tests for resolver chaining."""

    def test_first_text_wins(self):
        resolve = first_of(
            MappingResolver({"a.h": "first"}), MappingResolver({"a.h": "second", "b.h": "b"})
        )

        assert resolve("a.h") == "first"
        assert resolve("b.h") == "b"
        assert resolve("c.h") is None

    def test_none_entries_are_skipped(self):
        resolve = first_of(None, MappingResolver({"a.h": "text"}), None)

        assert resolve("a.h") == "text"

    def test_oserror_counts_as_declining(self):
        def broken(header):
            raise FileNotFoundError(header)

        resolve = first_of(broken, MappingResolver({"a.h": "text"}))

        assert resolve("a.h") == "text"

    def test_empty_chain_declines(self):
        assert first_of()("a.h") is None
