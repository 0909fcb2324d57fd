"""Extraction-then-compile pipeline."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from protobuild.build.compiler import CompilerInvoker
from protobuild.build.staleness import is_stale
from protobuild.config import BuildConfig
from protobuild.deps.cache import ArtifactCache
from protobuild.deps.extractor import Extractor
from protobuild.errors import CompilerExitFailure
from protobuild.models import (
    CompilationOutcome,
    DependencyRef,
    PipelineResult,
    PipelineState,
    StalenessReport,
)
from protobuild.utils.files import list_generated_files, set_modification_time

LOGGER = logging.getLogger(__name__)


class Pipeline:
    """Coordinates dependency extraction, the freshness check and compilation."""

    def __init__(
        self,
        config: BuildConfig,
        *,
        extractor: Optional[Extractor] = None,
        invoker: Optional[CompilerInvoker] = None,
    ) -> None:
        self.config = config
        self.extractor = extractor or Extractor(
            ArtifactCache(
                config.cache_roots,
                repository_url=config.repository_url,
                offline=config.offline,
            ),
            suffix=config.schema_suffix,
        )
        self.invoker = invoker or CompilerInvoker(
            config.protoc, language=config.language, timeout=config.timeout
        )

    def unpack(
        self, deps: Sequence[DependencyRef], external_include_dir: Path
    ) -> List[Path]:
        extracted = self.extractor.extract(deps, external_include_dir)
        if self.config.prune_external:
            self.extractor.prune(external_include_dir, extracted)
        return extracted

    def check(self, source_dir: Path, output_dir: Path) -> StalenessReport:
        return is_stale(source_dir, output_dir, suffix=self.config.schema_suffix)

    def generated_files(self, output_dir: Path) -> List[Path]:
        return list_generated_files(output_dir, self.config.generated_suffixes or ())

    def run(
        self,
        source_dir: Path,
        output_dir: Path,
        include_paths: Sequence[Path],
        deps: Sequence[DependencyRef],
        external_include_dir: Path,
    ) -> List[Path]:
        """Run the pipeline and return the generated files."""
        includes = (*include_paths, external_include_dir)
        return self._run(source_dir, output_dir, includes, deps, external_include_dir).generated_files

    def execute(self) -> PipelineResult:
        """Run the pipeline with the paths held by the configuration."""
        config = self.config
        return self._run(
            config.source_dir,
            config.output_dir,
            config.include_path_set(),
            config.dependency_refs(),
            config.external_include_dir,
        )

    def _run(
        self,
        source_dir: Path,
        output_dir: Path,
        includes: Sequence[Path],
        deps: Sequence[DependencyRef],
        external_include_dir: Path,
    ) -> PipelineResult:
        extracted = self.unpack(deps, external_include_dir)

        report = self.check(source_dir, output_dir)
        if not report.stale:
            if report.source_files:
                LOGGER.debug("No schema files to compile")
                generated = self.generated_files(output_dir)
            else:
                generated = []
            return PipelineResult(
                state=PipelineState.SKIPPED,
                generated_files=generated,
                extracted_files=extracted,
                report=report,
            )

        exit_code = self.invoker.compile(source_dir, output_dir, includes, report.source_files)
        if exit_code != 0:
            LOGGER.debug("Pipeline finished in state %s", PipelineState.COMPILED_FAILED.value)
            raise CompilerExitFailure(exit_code, self.invoker.protoc)

        set_modification_time(output_dir, report.most_recent_source_time)
        outcome = CompilationOutcome(generated_files=self.generated_files(output_dir), exit_code=exit_code)
        return PipelineResult(
            state=PipelineState.COMPILED_OK,
            generated_files=outcome.generated_files,
            extracted_files=extracted,
            report=report,
            outcome=outcome,
        )
