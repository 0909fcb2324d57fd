"""Extraction of schema files bundled inside dependency archives."""

from __future__ import annotations

import logging
import shutil
import time
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Sequence

from protobuild.deps.cache import ArtifactCache
from protobuild.errors import ExtractionFailure
from protobuild.models import DependencyRef
from protobuild.utils.files import iter_schema_paths, set_modification_time

LOGGER = logging.getLogger(__name__)


def _safe_target(target_dir: Path, entry_name: str) -> Path | None:
    """Map an archive entry to a path under ``target_dir``, or None if it escapes."""
    entry = PurePosixPath(entry_name.replace("\\", "/"))
    if entry.is_absolute() or ".." in entry.parts:
        return None
    return target_dir.joinpath(*entry.parts)


def unzip_schemas(archive: Path, target_dir: Path, suffix: str = ".proto") -> List[Path]:
    """Unpack the entries of ``archive`` whose name ends in ``suffix``.

    Directory structure inside the archive is kept and each extracted file
    gets the modification time recorded for its entry.
    """
    extracted: List[Path] = []
    with zipfile.ZipFile(archive) as zf:
        for info in zf.infolist():
            if info.is_dir() or not info.filename.endswith(suffix):
                continue
            destination = _safe_target(target_dir, info.filename)
            if destination is None:
                raise zipfile.BadZipFile(f"entry {info.filename!r} escapes the target directory")

            destination.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as source, destination.open("wb") as sink:
                shutil.copyfileobj(source, sink)
            entry_time = int(time.mktime(info.date_time + (0, 0, -1)))
            set_modification_time(destination, entry_time * 1_000_000_000)
            extracted.append(destination)
    return extracted


class Extractor:
    """Unpacks schema files from packaged dependencies into one include directory."""

    def __init__(self, cache: ArtifactCache, *, suffix: str = ".proto") -> None:
        self.cache = cache
        self.suffix = suffix

    def extract(self, deps: Sequence[DependencyRef], target_dir: Path) -> List[Path]:
        target_dir = Path(target_dir)
        target_dir.mkdir(parents=True, exist_ok=True)

        extracted: List[Path] = []
        for dep in deps:
            archive = self.cache.resolve(dep)
            try:
                files = unzip_schemas(archive, target_dir, self.suffix)
            except (OSError, zipfile.BadZipFile) as exc:
                raise ExtractionFailure(dep, str(exc)) from exc
            LOGGER.info("Extracted %s", ",".join(str(path) for path in files))
            extracted.extend(files)
        return extracted

    def prune(self, target_dir: Path, keep: Sequence[Path]) -> List[Path]:
        """Delete schema files in ``target_dir`` that are not in ``keep``."""
        target_dir = Path(target_dir)
        kept = {Path(path).resolve() for path in keep}
        removed = [path for path in iter_schema_paths(target_dir, self.suffix) if path not in kept]
        for path in removed:
            path.unlink()
            LOGGER.info("Removed stale external schema %s", path)

        # Deepest directories first so emptied parents can go too.
        root = target_dir.resolve()
        for directory in sorted(
            (p for p in root.rglob("*") if p.is_dir()),
            key=lambda p: len(p.parts),
            reverse=True,
        ):
            if not any(directory.iterdir()):
                directory.rmdir()
        return removed
