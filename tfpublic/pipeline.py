"""Single-project pipeline: scan, resolve, match, extract, generate."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .atomic_io import remove_files, write_files_atomic
from .diagnostics import DiagnosticKind, DiagnosticReport
from .errors import MalformedReference
from .generator import CodeGenerator
from .logging import get_logger
from .models import (
    ABSENT,
    AnnotatedDeclaration,
    GENERATED_FILENAMES,
    GeneratedArtifactSet,
    MatchedResource,
    PublishedOutput,
)
from .resolver import parse_reference
from .scanner import DEFAULT_KEYWORD, DEFAULT_MARKER, AnnotationScanner
from .schema import ProviderSchemaSnapshot, SchemaMatcher
from .state import StateExtractor, StateSnapshot


@dataclass
class PipelineResult:
    """Everything one pipeline run produced for a project."""

    declarations: List[AnnotatedDeclaration] = field(default_factory=list)
    matched: List[MatchedResource] = field(default_factory=list)
    outputs: List[PublishedOutput] = field(default_factory=list)
    artifacts: Optional[GeneratedArtifactSet] = None
    diagnostics: DiagnosticReport = field(default_factory=DiagnosticReport)


class PublicInterfacePipeline:
    """Builds the read-only companion module for one Terraform project."""

    def __init__(
        self,
        *,
        marker: str = DEFAULT_MARKER,
        keyword: str = DEFAULT_KEYWORD,
        exclude_dirs: Iterable[str] = (),
        scanner: AnnotationScanner | None = None,
        generator: CodeGenerator | None = None,
    ) -> None:
        self.scanner = scanner or AnnotationScanner(
            marker, keyword=keyword, exclude_dirs=exclude_dirs
        )
        self.generator = generator or CodeGenerator()
        self.logger = get_logger("pipeline")

    def run(
        self,
        project_root: str | Path,
        schema: ProviderSchemaSnapshot,
        state: StateSnapshot,
    ) -> PipelineResult:
        """Scan ``project_root`` and render artifacts from the given snapshots.

        UnreadableFile propagates; per-declaration problems become diagnostics.
        """
        declarations = self.scanner.scan(project_root)
        self.logger.debug("Found %d annotated declarations", len(declarations))
        return self.process(declarations, schema, state)

    def process(
        self,
        declarations: Sequence[AnnotatedDeclaration],
        schema: ProviderSchemaSnapshot,
        state: StateSnapshot,
    ) -> PipelineResult:
        result = PipelineResult(declarations=list(declarations))
        report = result.diagnostics
        matcher = SchemaMatcher(schema)
        extractor = StateExtractor(state)

        matched: Dict[Tuple[str, str], MatchedResource] = {}
        output_names: Set[str] = set()

        for declaration in declarations:
            try:
                reference = parse_reference(declaration.reference_expression)
            except MalformedReference as exc:
                report.warn(
                    DiagnosticKind.MALFORMED_REFERENCE,
                    f"Annotated output {declaration.name} at line {declaration.line} "
                    f"in {declaration.file} has an unsupported value: {exc.reason}",
                    file=declaration.file,
                    line=declaration.line,
                )
                continue

            match = matcher.match(reference.resource_type)
            if not match.found:
                report.warn(
                    DiagnosticKind.NO_MATCHING_DATA_SOURCE,
                    f"Annotated resource {reference.address} at line {declaration.line} "
                    f"in {declaration.file} does not have a matching data resource!",
                    file=declaration.file,
                    line=declaration.line,
                )
                continue

            if reference.key not in matched:
                matched[reference.key] = self._extract(
                    reference.resource_type,
                    reference.resource_name,
                    match.required_attributes,
                    extractor,
                    report,
                    declaration,
                )

            if declaration.name in output_names:
                report.warn(
                    DiagnosticKind.DUPLICATE_OUTPUT,
                    f"Output {declaration.name} at line {declaration.line} in "
                    f"{declaration.file} is already published; skipping duplicate",
                    file=declaration.file,
                    line=declaration.line,
                )
                continue
            output_names.add(declaration.name)
            result.outputs.append(
                PublishedOutput(name=declaration.name, reference=reference, declaration=declaration)
            )

        result.matched = list(matched.values())
        if result.matched:
            result.artifacts = self.generator.render(result.matched, result.outputs, matcher)
        return result

    @staticmethod
    def _extract(
        resource_type: str,
        resource_name: str,
        required: Sequence[str],
        extractor: StateExtractor,
        report: DiagnosticReport,
        declaration: AnnotatedDeclaration,
    ) -> MatchedResource:
        resource = MatchedResource(
            resource_type=resource_type,
            resource_name=resource_name,
            required_attributes=list(required),
        )
        for attribute in required:
            value = extractor.extract(resource.address, attribute)
            if value is ABSENT:
                report.info(
                    DiagnosticKind.ATTRIBUTE_ABSENT_FROM_STATE,
                    f"Attribute {attribute} of {resource.address} is not in state; using empty value",
                    file=declaration.file,
                    line=declaration.line,
                )
            resource.extracted_values[attribute] = value
        return resource


def write_artifacts(artifacts: GeneratedArtifactSet, directory: Path) -> List[Path]:
    """Write the three generated files into ``directory``, replacing earlier runs."""
    return write_files_atomic(directory, artifacts.files())


def remove_artifacts(directory: Path) -> List[Path]:
    """Delete previously generated files from ``directory``; other files are kept."""
    return remove_files(directory, GENERATED_FILENAMES)


__all__ = ["PipelineResult", "PublicInterfacePipeline", "remove_artifacts", "write_artifacts"]
