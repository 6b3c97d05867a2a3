"""Structured diagnostics emitted by pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional


class DiagnosticKind(str, Enum):
    MALFORMED_REFERENCE = "malformed_reference"
    NO_MATCHING_DATA_SOURCE = "no_matching_data_source"
    ATTRIBUTE_ABSENT_FROM_STATE = "attribute_absent_from_state"
    DUPLICATE_OUTPUT = "duplicate_output"


WARNING = "warning"
INFO = "info"


@dataclass(frozen=True)
class Diagnostic:
    """A single resource-level or declaration-level finding."""

    kind: DiagnosticKind
    severity: str
    message: str
    file: Optional[Path] = None
    line: Optional[int] = None

    @property
    def location(self) -> str:
        if self.file is None:
            return ""
        if self.line is None:
            return str(self.file)
        return f"{self.file}:{self.line}"


@dataclass
class DiagnosticReport:
    """Ordered collection of diagnostics produced during one pipeline run."""

    items: List[Diagnostic] = field(default_factory=list)

    def warn(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        file: Optional[Path] = None,
        line: Optional[int] = None,
    ) -> Diagnostic:
        return self._add(Diagnostic(kind, WARNING, message, file, line))

    def info(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        file: Optional[Path] = None,
        line: Optional[int] = None,
    ) -> Diagnostic:
        return self._add(Diagnostic(kind, INFO, message, file, line))

    def of_kind(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [item for item in self.items if item.kind is kind]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [item for item in self.items if item.severity == WARNING]

    def _add(self, diagnostic: Diagnostic) -> Diagnostic:
        self.items.append(diagnostic)
        return diagnostic

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


__all__ = ["Diagnostic", "DiagnosticKind", "DiagnosticReport", "INFO", "WARNING"]
