"""Build configuration defaults and loading."""

from __future__ import annotations

import dataclasses
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from protobuild.errors import ConfigError
from protobuild.models import DependencyRef

DEFAULT_PROTOC = "protoc"
DEFAULT_LANGUAGE = "java"
DEFAULT_SCHEMA_SUFFIX = ".proto"

# Files each protoc output plugin writes, keyed by the ``--<language>_out`` name.
GENERATED_SUFFIXES: Dict[str, tuple[str, ...]] = {
    "java": (".java",),
    "kotlin": (".kt",),
    "python": (".py",),
    "pyi": (".pyi",),
    "cpp": (".cc", ".h"),
    "csharp": (".cs",),
    "objc": (".m", ".h"),
    "php": (".php",),
    "ruby": (".rb",),
}


def _get_default_cache_roots() -> List[Path]:
    """Local artifact caches searched before any remote repository."""
    return [Path.home() / ".m2" / "repository"]


@dataclass(slots=True)
class BuildConfig:
    source_dir: Path = Path("src/main/protobuf")
    output_dir: Path = Path("target/src_managed/main/compiled_protobuf")
    external_include_dir: Path = Path("target/protobuf_external")
    include_paths: List[Path] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    protoc: str = DEFAULT_PROTOC
    language: str = DEFAULT_LANGUAGE
    schema_suffix: str = DEFAULT_SCHEMA_SUFFIX
    generated_suffixes: tuple[str, ...] | None = None
    timeout: float | None = None
    prune_external: bool = False
    cache_roots: List[Path] = field(default_factory=_get_default_cache_roots)
    repository_url: str | None = None
    offline: bool = False

    def __post_init__(self) -> None:
        if not self.language:
            raise ConfigError("language must not be empty")
        if not self.schema_suffix.startswith("."):
            self.schema_suffix = f".{self.schema_suffix}"
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.generated_suffixes is None:
            self.generated_suffixes = GENERATED_SUFFIXES.get(self.language, ())

    def include_path_set(self) -> tuple[Path, ...]:
        """Configured includes followed by the external-include directory."""
        return (*self.include_paths, self.external_include_dir)

    def dependency_refs(self) -> List[DependencyRef]:
        try:
            return [DependencyRef.parse(value) for value in self.dependencies]
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc

    def resolve(self, base_dir: Path | None = None) -> "BuildConfig":
        """Return a copy whose relative paths are anchored at ``base_dir``."""
        if base_dir is None:
            return dataclasses.replace(self)

        def _anchor(path: Path) -> Path:
            path = Path(path).expanduser()
            return path if path.is_absolute() else base_dir / path

        return dataclasses.replace(
            self,
            source_dir=_anchor(self.source_dir),
            output_dir=_anchor(self.output_dir),
            external_include_dir=_anchor(self.external_include_dir),
            include_paths=[_anchor(path) for path in self.include_paths],
            cache_roots=[_anchor(path) for path in self.cache_roots],
            dependencies=[
                str(_anchor(Path(value))) if ":" not in value else value
                for value in self.dependencies
            ],
        )


_PATH_KEYS = {"source_dir", "output_dir", "external_include_dir"}
_PATH_LIST_KEYS = {"include_paths", "cache_roots"}


def _coerce(key: str, value: Any) -> Any:
    if key in _PATH_KEYS:
        return Path(value)
    if key in _PATH_LIST_KEYS:
        if not isinstance(value, list):
            raise ConfigError(f"{key} must be a list of paths")
        return [Path(item) for item in value]
    if key == "generated_suffixes":
        return tuple(value)
    return value


def config_from_mapping(data: Dict[str, Any]) -> BuildConfig:
    """Build a configuration from a mapping using dashed or underscored keys."""
    known = {f.name for f in dataclasses.fields(BuildConfig)}
    values: Dict[str, Any] = {}
    for raw_key, value in data.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            raise ConfigError(f"Unknown configuration key: {raw_key}")
        values[key] = _coerce(key, value)
    return BuildConfig(**values)


def load_config(path: Path) -> BuildConfig:
    """Load configuration from a TOML file.

    A ``pyproject.toml`` is read from its ``[tool.protobuild]`` table, any
    other file from its top level.
    """
    try:
        with Path(path).open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if Path(path).name == "pyproject.toml":
        data = data.get("tool", {}).get("protobuild", {})
    return config_from_mapping(data)
