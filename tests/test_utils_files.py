"""Tests for file utility functions."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

from protobuild.utils.files import (
    compute_digest,
    iter_schema_paths,
    list_generated_files,
    modification_time,
    set_modification_time,
)


class TestIterSchemaPaths:
    """Test iter_schema_paths function."""

    def test_nested_directories(self, tmp_path: Path) -> None:
        """Should find schemas in nested directories, sorted and absolute."""
        (tmp_path / "pkg").mkdir()
        (tmp_path / "b.proto").write_text("b")
        (tmp_path / "pkg" / "a.proto").write_text("a")
        (tmp_path / "notes.txt").write_text("text")

        paths = list(iter_schema_paths(tmp_path))

        assert [p.name for p in paths] == ["b.proto", "a.proto"]
        assert all(p.is_absolute() for p in paths)

    def test_custom_suffix(self, tmp_path: Path) -> None:
        (tmp_path / "service.thrift").write_text("x")
        (tmp_path / "message.proto").write_text("y")

        paths = list(iter_schema_paths(tmp_path, ".thrift"))

        assert [p.name for p in paths] == ["service.thrift"]

    def test_skips_directories_named_like_schemas(self, tmp_path: Path) -> None:
        (tmp_path / "odd.proto").mkdir()
        assert list(iter_schema_paths(tmp_path)) == []

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list(iter_schema_paths(tmp_path / "missing")) == []


class TestListGeneratedFiles:
    """Test list_generated_files function."""

    def test_matches_suffixes(self, tmp_path: Path) -> None:
        (tmp_path / "com").mkdir()
        (tmp_path / "com" / "Foo.java").write_text("class Foo {}")
        (tmp_path / "foo.cc").write_text("")
        (tmp_path / "foo.h").write_text("")
        (tmp_path / "README").write_text("")

        assert list_generated_files(tmp_path, [".java"]) == [tmp_path / "com" / "Foo.java"]
        assert list_generated_files(tmp_path, (".cc", ".h")) == [tmp_path / "foo.cc", tmp_path / "foo.h"]

    def test_missing_directory(self, tmp_path: Path) -> None:
        assert list_generated_files(tmp_path / "missing", [".java"]) == []

    def test_no_suffixes(self, tmp_path: Path) -> None:
        (tmp_path / "Foo.java").write_text("")
        assert list_generated_files(tmp_path, []) == []


class TestModificationTime:
    """Test modification time helpers."""

    def test_round_trip_is_exact(self, tmp_path: Path) -> None:
        """Nanosecond timestamps survive a set/get round trip."""
        target = tmp_path / "file.proto"
        target.write_text("")

        set_modification_time(target, 1_700_000_000_123_456_000)

        assert modification_time(target) == 1_700_000_000_123_456_000

    def test_directories(self, tmp_path: Path) -> None:
        os.utime(tmp_path, (150, 150))
        assert modification_time(tmp_path) == 150 * 10**9

    def test_missing_path_is_zero(self, tmp_path: Path) -> None:
        assert modification_time(tmp_path / "missing") == 0


class TestComputeDigest:
    """Test compute_digest function."""

    def test_sha1_default(self, tmp_path: Path) -> None:
        target = tmp_path / "archive.jar"
        target.write_bytes(b"Hello, World!")

        assert compute_digest(target) == hashlib.sha1(b"Hello, World!").hexdigest()

    def test_other_algorithm(self, tmp_path: Path) -> None:
        target = tmp_path / "empty.bin"
        target.write_bytes(b"")

        expected = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
        assert compute_digest(target, "sha256") == expected
