"""Parsing of output value expressions into resource references."""

from __future__ import annotations

import re

from .errors import MalformedReference
from .models import ResourceReference

_IDENTIFIER = r"[A-Za-z_][A-Za-z0-9_-]*"

# reference = type "." name ( "." attribute-path )?
_REFERENCE = re.compile(
    rf"^(?P<type>{_IDENTIFIER})\.(?P<name>{_IDENTIFIER})"
    rf"(?:\.(?P<path>{_IDENTIFIER}(?:\.{_IDENTIFIER})*))?$"
)


def parse_reference(expression: str) -> ResourceReference:
    """Decompose ``type.name[.attribute.path]`` into a ResourceReference.

    Raises MalformedReference for anything that is not a plain dotted path.
    """
    candidate = expression.strip()
    if not candidate:
        raise MalformedReference(expression, "expression is empty")

    match = _REFERENCE.match(candidate)
    if match is not None:
        return ResourceReference(
            resource_type=match.group("type"),
            resource_name=match.group("name"),
            attribute_path=match.group("path") or "",
        )

    components = candidate.split(".")
    if len(components) < 2:
        reason = "expected at least two dotted components"
    elif any(not component for component in components):
        reason = "empty path component"
    else:
        reason = "only plain dotted attribute paths are supported"
    raise MalformedReference(expression, reason)


__all__ = ["parse_reference"]
