"""Whole-directory freshness check for schema sources."""

from __future__ import annotations

import logging
from pathlib import Path

from protobuild.models import StalenessReport
from protobuild.utils.files import iter_schema_paths, modification_time

LOGGER = logging.getLogger(__name__)


def is_stale(source_dir: Path, output_dir: Path, *, suffix: str = ".proto") -> StalenessReport:
    """Compare the newest schema under ``source_dir`` with ``output_dir``'s mtime.

    The output directory's own modification time acts as the freshness
    marker. Equal timestamps count as fresh.
    """
    source_files = list(iter_schema_paths(source_dir, suffix))
    if not source_files:
        return StalenessReport(stale=False, most_recent_source_time=None, source_files=[])

    most_recent = max(modification_time(path) for path in source_files)
    marker = modification_time(output_dir)
    LOGGER.debug(
        "Newest schema mtime %d ns, output marker %d ns (%s)", most_recent, marker, output_dir
    )
    return StalenessReport(
        stale=most_recent > marker,
        most_recent_source_time=most_recent,
        source_files=source_files,
    )
