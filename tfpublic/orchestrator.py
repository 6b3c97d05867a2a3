"""Multi-project orchestration with per-project failure isolation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .config import ProjectConfig, TfPublicConfig
from .errors import TfPublicError
from .generator import CodeGenerator
from .logging import get_logger, log_diagnostics
from .pipeline import PipelineResult, PublicInterfacePipeline, remove_artifacts, write_artifacts
from .schema import ProviderSchemaSnapshot
from .state import StateSnapshot
from .terraform import TerraformCLI, load_json_file

GENERATED = "generated"
NO_OUTPUTS = "no_outputs"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class ProjectOutcome:
    """Result of publishing one project."""

    project: Path
    status: str
    written: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)
    warnings: int = 0
    error: Optional[str] = None
    result: Optional[PipelineResult] = None

    @property
    def failed(self) -> bool:
        return self.status == FAILED


class Orchestrator:
    """Runs the publishing pipeline for every configured project."""

    def __init__(
        self,
        config: TfPublicConfig,
        *,
        terraform: TerraformCLI | None = None,
        state_file: Path | None = None,
        schema_file: Path | None = None,
    ) -> None:
        self.config = config
        self.terraform = terraform or TerraformCLI(
            config.shell, config.command, extra_path=config.extra_path
        )
        self.state_file = state_file
        self.schema_file = schema_file
        self.generator = CodeGenerator(config.templates_dir)
        self.logger = get_logger("orchestrator")

    def run(self, projects: Iterable[ProjectConfig] | None = None) -> List[ProjectOutcome]:
        """Publish each project; one project's failure never stops the others."""
        selected = list(projects) if projects is not None else list(self.config.projects)
        self.logger.debug("Using shell %s with command %s", self.config.shell, self.config.command)
        outcomes = [self.run_project(project) for project in selected]
        failed = sum(1 for outcome in outcomes if outcome.failed)
        if failed:
            self.logger.warning("%d of %d projects failed", failed, len(outcomes))
        return outcomes

    def run_project(self, project: ProjectConfig) -> ProjectOutcome:
        project_dir = self.config.project_dir(project)
        self.logger.info("Processing Terraform project %s", project_dir)
        try:
            return self._run_project(project, project_dir)
        except (TfPublicError, OSError) as exc:
            self.logger.error("Project %s failed: %s", project_dir, exc)
            return ProjectOutcome(project=project_dir, status=FAILED, error=str(exc))

    def _run_project(self, project: ProjectConfig, project_dir: Path) -> ProjectOutcome:
        output_dir = self.config.output_dir_for(project)
        pipeline = PublicInterfacePipeline(
            marker=self.config.marker,
            exclude_dirs=[output_dir],
            generator=self.generator,
        )

        declarations = pipeline.scanner.scan(project_dir)
        if not declarations:
            self.logger.info("No annotated outputs in %s", project_dir)
            removed = self._remove_stale(project_dir / output_dir)
            return ProjectOutcome(project=project_dir, status=NO_OUTPUTS, removed=removed)
        for declaration in declarations:
            self.logger.debug(
                "Annotated output %s -> %s (%s:%d)",
                declaration.name,
                declaration.reference_expression,
                declaration.file,
                declaration.line,
            )

        state = self._load_state(project_dir)
        if state.is_empty:
            self.logger.warning("Terraform project at %s is not applied. Skipping.", project_dir)
            return ProjectOutcome(project=project_dir, status=SKIPPED)
        schema = self._load_schema(project_dir)

        result = pipeline.process(declarations, schema, state)
        warnings = log_diagnostics(self.logger, result.diagnostics)

        if result.artifacts is None:
            self.logger.info("No annotated outputs in %s have a data source counterpart", project_dir)
            removed = self._remove_stale(project_dir / output_dir)
            return ProjectOutcome(
                project=project_dir,
                status=NO_OUTPUTS,
                removed=removed,
                warnings=warnings,
                result=result,
            )

        written = write_artifacts(result.artifacts, project_dir / output_dir)
        self.logger.info(
            "Generated %d data sources and %d outputs in %s",
            len(result.matched),
            len(result.outputs),
            project_dir / output_dir,
        )
        return ProjectOutcome(
            project=project_dir,
            status=GENERATED,
            written=written,
            warnings=warnings,
            result=result,
        )

    def _remove_stale(self, directory: Path) -> List[Path]:
        removed = remove_artifacts(directory)
        for path in removed:
            self.logger.warning("Removed stale generated file %s", path)
        return removed

    def _load_state(self, project_dir: Path) -> StateSnapshot:
        if self.state_file is not None:
            return StateSnapshot.from_json(load_json_file(self.state_file, "state"))
        return self.terraform.show_state(project_dir)

    def _load_schema(self, project_dir: Path) -> ProviderSchemaSnapshot:
        if self.schema_file is not None:
            return ProviderSchemaSnapshot.from_json(load_json_file(self.schema_file, "schema"))
        return self.terraform.provider_schemas(project_dir)


__all__ = ["FAILED", "GENERATED", "NO_OUTPUTS", "Orchestrator", "ProjectOutcome", "SKIPPED"]
