"""Utility helpers for working with files."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Iterable, Iterator, List


def iter_schema_paths(root: Path, suffix: str = ".proto") -> Iterator[Path]:
    """Yield absolute schema paths under ``root`` in a stable order."""
    root = Path(root)
    if not root.is_dir():
        return
    for child in sorted(root.rglob(f"*{suffix}")):
        if child.is_file():
            yield child.resolve()


def list_generated_files(output_dir: Path, suffixes: Iterable[str]) -> List[Path]:
    """Return files under ``output_dir`` ending in any of ``suffixes``."""
    output_dir = Path(output_dir)
    wanted = tuple(suffixes)
    if not output_dir.is_dir() or not wanted:
        return []
    return sorted(
        path for path in output_dir.rglob("*") if path.is_file() and path.name.endswith(wanted)
    )


def modification_time(path: Path) -> int:
    """Modification time of ``path`` in nanoseconds, or 0 when it does not exist."""
    try:
        return Path(path).stat().st_mtime_ns
    except FileNotFoundError:
        return 0


def set_modification_time(path: Path, timestamp_ns: int) -> None:
    """Set both access and modification time of ``path``, in nanoseconds."""
    os.utime(path, ns=(timestamp_ns, timestamp_ns))


def compute_digest(path: Path, algorithm: str = "sha1") -> str:
    """Compute a hex digest for a file."""
    digest = hashlib.new(algorithm)
    with Path(path).open("rb") as handle:
        for chunk in iter(lambda: handle.read(1 << 20), b""):
            digest.update(chunk)
    return digest.hexdigest()
