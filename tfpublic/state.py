"""State snapshot model and attribute extraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .errors import SnapshotUnavailable
from .models import ABSENT


@dataclass(frozen=True)
class StateResource:
    """One resource instance recorded in the applied state."""

    address: str
    values: Dict[str, Any] = field(default_factory=dict)


@dataclass
class StateSnapshot:
    """Root-module resources from ``terraform show -json``."""

    resources: List[StateResource] = field(default_factory=list)

    @classmethod
    def from_json(cls, payload: Any) -> "StateSnapshot":
        if not isinstance(payload, Mapping):
            raise SnapshotUnavailable("state", "expected a JSON object at the root")
        values = payload.get("values")
        root_module = values.get("root_module") if isinstance(values, Mapping) else None
        raw_resources = root_module.get("resources") if isinstance(root_module, Mapping) else None
        if not isinstance(raw_resources, list):
            return cls()

        resources: List[StateResource] = []
        for entry in raw_resources:
            if not isinstance(entry, Mapping):
                continue
            address = entry.get("address")
            if not isinstance(address, str):
                continue
            attributes = entry.get("values")
            resources.append(
                StateResource(
                    address=address,
                    values=dict(attributes) if isinstance(attributes, Mapping) else {},
                )
            )
        return cls(resources=resources)

    @property
    def is_empty(self) -> bool:
        return not self.resources


class StateExtractor:
    """Looks up attribute values by exact resource address."""

    def __init__(self, snapshot: StateSnapshot) -> None:
        self.snapshot = snapshot

    def find(self, address: str) -> StateResource | None:
        for resource in self.snapshot.resources:
            if resource.address == address:
                return resource
        return None

    def extract(self, address: str, attribute: str) -> Any:
        """Return the attribute value, or ABSENT when the resource or attribute is missing."""
        resource = self.find(address)
        if resource is None:
            return ABSENT
        return resource.values.get(attribute, ABSENT)


__all__ = ["StateExtractor", "StateResource", "StateSnapshot"]
