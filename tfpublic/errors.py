"""Exception hierarchy shared by tfpublic components."""

from __future__ import annotations

from pathlib import Path


class TfPublicError(RuntimeError):
    """Base class for failures that abort a tfpublic run."""


class ConfigError(TfPublicError):
    """Raised when the configuration file cannot be parsed."""


class UnreadableFile(TfPublicError):
    """Raised when a declaration file cannot be read or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Unable to read {path}: {reason}")
        self.path = path
        self.reason = reason


class SnapshotUnavailable(TfPublicError):
    """Raised when the state or provider schema snapshot cannot be obtained."""

    def __init__(self, snapshot: str, detail: str) -> None:
        super().__init__(f"{snapshot} snapshot unavailable: {detail}")
        self.snapshot = snapshot
        self.detail = detail


class MalformedReference(ValueError):
    """Raised when a value expression is not a `type.name[.attribute]` path."""

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Malformed reference {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


__all__ = [
    "ConfigError",
    "MalformedReference",
    "SnapshotUnavailable",
    "TfPublicError",
    "UnreadableFile",
]
