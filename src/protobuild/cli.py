"""Command line interface for protobuild."""

from __future__ import annotations

import dataclasses
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from protobuild.build.pipeline import Pipeline
from protobuild.config import GENERATED_SUFFIXES, BuildConfig, load_config
from protobuild.errors import ProtobuildError
from protobuild.models import PipelineState
from protobuild.utils.files import modification_time


console = Console()
app = typer.Typer(help="protobuild - incremental protoc runs with packaged schema dependencies")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _format_mtime(timestamp_ns: int | None) -> str:
    if not timestamp_ns:
        return "-"
    return datetime.fromtimestamp(timestamp_ns / 1e9).isoformat(sep=" ", timespec="seconds")


def _build_config(
    config_file: Optional[Path],
    *,
    source: Optional[Path] = None,
    output: Optional[Path] = None,
    external: Optional[Path] = None,
    include: Optional[List[Path]] = None,
    dependency: Optional[List[str]] = None,
    protoc: Optional[str] = None,
    language: Optional[str] = None,
    timeout: Optional[float] = None,
    prune_external: Optional[bool] = None,
    repository: Optional[str] = None,
    offline: Optional[bool] = None,
) -> BuildConfig:
    """Merge command line overrides over the configuration file."""
    base = load_config(config_file) if config_file is not None else BuildConfig()
    base_dir = config_file.parent if config_file is not None else Path.cwd()

    overrides = {
        "source_dir": source,
        "output_dir": output,
        "external_include_dir": external,
        "include_paths": list(include) if include else None,
        "dependencies": list(dependency) if dependency else None,
        "protoc": protoc,
        "timeout": timeout,
        "prune_external": prune_external,
        "repository_url": repository,
        "offline": offline,
        "language": language,
    }
    config = dataclasses.replace(
        base, **{key: value for key, value in overrides.items() if value is not None}
    )
    # Suffixes follow a new language unless the file pinned them.
    if language is not None and base.generated_suffixes == GENERATED_SUFFIXES.get(base.language, ()):
        config = dataclasses.replace(config, generated_suffixes=GENERATED_SUFFIXES.get(language, ()))
    return config.resolve(base_dir)


ConfigOption = typer.Option(None, "--config", "-c", help="TOML configuration file", exists=True, dir_okay=False, resolve_path=True)
SourceOption = typer.Option(None, "--source", help="Directory containing the schema sources")
OutputOption = typer.Option(None, "--output", help="Directory receiving generated code")
ExternalOption = typer.Option(None, "--external", help="Directory receiving extracted dependency schemas")
IncludeOption = typer.Option(None, "--include", "-I", help="Additional include directory (repeatable)")
DependencyOption = typer.Option(None, "--dependency", "-d", help="org:name:version or archive path (repeatable)")
RepositoryOption = typer.Option(None, "--repository", help="Maven-layout repository URL for missing archives")
OfflineOption = typer.Option(None, "--offline/--online", help="Never download missing archives")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose logging")


@app.command()
def generate(
    config_file: Optional[Path] = ConfigOption,
    source: Optional[Path] = SourceOption,
    output: Optional[Path] = OutputOption,
    external: Optional[Path] = ExternalOption,
    include: Optional[List[Path]] = IncludeOption,
    dependency: Optional[List[str]] = DependencyOption,
    protoc: Optional[str] = typer.Option(None, "--protoc", help="Schema compiler executable"),
    language: Optional[str] = typer.Option(None, "--language", help="Output plugin, rendered as --<language>_out"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds before the compiler is killed"),
    prune_external: Optional[bool] = typer.Option(
        None, "--prune-external/--keep-external", help="Remove extracted schemas of dropped dependencies"
    ),
    repository: Optional[str] = RepositoryOption,
    offline: Optional[bool] = OfflineOption,
    verbose: bool = VerboseOption,
) -> None:
    """Extract dependency schemas and recompile when sources changed."""
    _setup_logging(verbose)
    try:
        config = _build_config(
            config_file,
            source=source,
            output=output,
            external=external,
            include=include,
            dependency=dependency,
            protoc=protoc,
            language=language,
            timeout=timeout,
            prune_external=prune_external,
            repository=repository,
            offline=offline,
        )
        result = Pipeline(config).execute()
    except ProtobuildError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    if result.report is None or not result.report.source_files:
        console.print(f"[yellow]No schema files found in {config.source_dir}.[/yellow]")
    elif result.state is PipelineState.SKIPPED:
        console.print(f"Up to date: {len(result.generated_files)} generated files in [bold]{config.output_dir}[/bold]")
    else:
        console.print(
            f"Compiled {len(result.report.source_files)} schemas into "
            f"{len(result.generated_files)} files in [bold]{config.output_dir}[/bold]"
        )


@app.command()
def unpack(
    config_file: Optional[Path] = ConfigOption,
    external: Optional[Path] = ExternalOption,
    dependency: Optional[List[str]] = DependencyOption,
    prune_external: Optional[bool] = typer.Option(
        None, "--prune-external/--keep-external", help="Remove extracted schemas of dropped dependencies"
    ),
    repository: Optional[str] = RepositoryOption,
    offline: Optional[bool] = OfflineOption,
    verbose: bool = VerboseOption,
) -> None:
    """Extract schema files from packaged dependencies only."""
    _setup_logging(verbose)
    try:
        config = _build_config(
            config_file,
            external=external,
            dependency=dependency,
            prune_external=prune_external,
            repository=repository,
            offline=offline,
        )
        extracted = Pipeline(config).unpack(config.dependency_refs(), config.external_include_dir)
    except ProtobuildError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    if not extracted:
        console.print("[yellow]No schema files extracted.[/yellow]")
        return
    console.print(f"Extracted {len(extracted)} files into [bold]{config.external_include_dir}[/bold]")
    for path in extracted:
        console.print(f"  {path}")


@app.command()
def status(
    config_file: Optional[Path] = ConfigOption,
    source: Optional[Path] = SourceOption,
    output: Optional[Path] = OutputOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show whether the generated code is out of date."""
    _setup_logging(verbose)
    try:
        config = _build_config(config_file, source=source, output=output)
    except ProtobuildError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    report = Pipeline(config).check(config.source_dir, config.output_dir)
    if not report.source_files:
        console.print(f"[yellow]No schema files found in {config.source_dir}.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Schema")
    table.add_column("Modified")
    source_root = config.source_dir.resolve()
    for path in report.source_files:
        table.add_row(str(path.relative_to(source_root)), _format_mtime(modification_time(path)))
    console.print(table)

    marker = _format_mtime(modification_time(config.output_dir))
    if report.stale:
        console.print(f"[bold yellow]Stale[/bold yellow]: output marker {marker}")
    else:
        console.print(f"[green]Up to date[/green]: output marker {marker}")


@app.command()
def clean(
    config_file: Optional[Path] = ConfigOption,
    output: Optional[Path] = OutputOption,
    external: Optional[Path] = ExternalOption,
) -> None:
    """Remove generated code and extracted dependency schemas."""
    try:
        config = _build_config(config_file, output=output, external=external)
    except ProtobuildError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1) from exc

    for directory in (config.output_dir, config.external_include_dir):
        if directory.exists():
            shutil.rmtree(directory)
            console.print(f"Removed {directory}")
        else:
            console.print(f"[yellow]Nothing to remove at {directory}.[/yellow]")
