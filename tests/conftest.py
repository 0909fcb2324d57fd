"""Shared fixtures for protobuild tests."""

from __future__ import annotations

import stat
import sys
import zipfile
from pathlib import Path
from typing import Callable, Dict

import pytest

ENTRY_TIME = (2020, 1, 2, 3, 4, 6)

FAKE_PROTOC = """#!/bin/sh
out=""
for arg in "$@"; do
  case "$arg" in
    --*_out=*) out="${arg#*=}" ;;
  esac
done
echo "$@" >> "$out/../protoc-calls.txt"
for arg in "$@"; do
  case "$arg" in
    *.proto)
      name=$(basename "$arg" .proto)
      echo "// generated from $arg" > "$out/$name.java"
      ;;
  esac
done
echo "compiled"
exit ${FAKE_PROTOC_EXIT:-0}
"""


@pytest.fixture
def make_archive(tmp_path: Path) -> Callable[[str, Dict[str, str]], Path]:
    """Return a factory writing a zip archive with the given entries."""

    def _make(name: str, entries: Dict[str, str]) -> Path:
        archive = tmp_path / "archives" / name
        archive.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive, "w") as zf:
            for entry_name, content in entries.items():
                zf.writestr(zipfile.ZipInfo(entry_name, date_time=ENTRY_TIME), content)
        return archive

    return _make


@pytest.fixture
def fake_protoc(tmp_path: Path) -> Path:
    """Executable shell script standing in for protoc."""
    if sys.platform == "win32":
        pytest.skip("fake protoc is a POSIX shell script")
    script = tmp_path / "bin" / "protoc"
    script.parent.mkdir(parents=True)
    script.write_text(FAKE_PROTOC)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script

