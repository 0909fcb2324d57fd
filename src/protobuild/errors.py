"""Exceptions raised by the protobuild pipeline."""

from __future__ import annotations

from typing import Optional

from protobuild.models import DependencyRef


class ProtobuildError(Exception):
    """Base class for all fatal pipeline errors."""


class ConfigError(ProtobuildError):
    """Raised when a configuration file or value is invalid."""


class ExtractionFailure(ProtobuildError):
    """Raised when a dependency archive cannot be fetched or unpacked."""

    def __init__(self, dependency: DependencyRef, reason: str) -> None:
        super().__init__(f"failed to extract schemas from {dependency}: {reason}")
        self.dependency = dependency
        self.reason = reason


class ArtifactNotFound(ExtractionFailure):
    """Raised when no cache root or repository provides the archive."""


class CompilerInvocationFailure(ProtobuildError):
    """Raised when the schema compiler could not be run to completion."""

    def __init__(self, reason: str, command: Optional[list[str]] = None) -> None:
        super().__init__(f"error occurred while compiling schema files: {reason}")
        self.command = command or []


class CompilerExitFailure(ProtobuildError):
    """Raised when the schema compiler exits with a non-zero status."""

    def __init__(self, exit_code: int, protoc: str = "protoc") -> None:
        super().__init__(f"{protoc} returned exit code: {exit_code}")
        self.exit_code = exit_code
