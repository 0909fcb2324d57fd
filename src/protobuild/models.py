"""Core protobuild data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


@dataclass(slots=True, frozen=True)
class DependencyRef:
    """Packaged artifact that bundles schema files."""

    organization: str
    name: str
    version: str
    path: Optional[Path] = None

    @classmethod
    def parse(cls, value: str) -> "DependencyRef":
        """Build a reference from ``org:name:version`` or an archive path."""
        parts = value.split(":")
        if len(parts) == 3 and all(parts):
            return cls(organization=parts[0], name=parts[1], version=parts[2])

        candidate = Path(value)
        if candidate.suffix.lower() in {".jar", ".zip"}:
            return cls(
                organization="",
                name=candidate.stem,
                version="",
                path=candidate,
            )
        raise ValueError(
            f"Invalid dependency {value!r}: expected 'organization:name:version' "
            "or a path to a .jar/.zip archive"
        )

    @property
    def coordinate(self) -> str:
        if self.path is not None:
            return str(self.path)
        return f"{self.organization}:{self.name}:{self.version}"

    def __str__(self) -> str:
        return self.coordinate


@dataclass(slots=True)
class StalenessReport:
    """Outcome of comparing the schema sources with the output marker."""

    stale: bool
    most_recent_source_time: Optional[int]
    source_files: List[Path] = field(default_factory=list)


@dataclass(slots=True)
class CompilationOutcome:
    """Result of a single compiler invocation."""

    generated_files: List[Path]
    exit_code: int

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class PipelineState(str, Enum):
    SKIPPED = "skipped"
    COMPILED_OK = "compiled"
    COMPILED_FAILED = "failed"


@dataclass(slots=True)
class PipelineResult:
    """Everything a pipeline run produced."""

    state: PipelineState
    generated_files: List[Path]
    extracted_files: List[Path] = field(default_factory=list)
    report: Optional[StalenessReport] = None
    outcome: Optional[CompilationOutcome] = None
