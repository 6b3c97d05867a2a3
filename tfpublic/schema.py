"""Provider schema snapshot model and data-source matching."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import SnapshotUnavailable

AttributeSet = Dict[str, "AttributeSchema"]


@dataclass(frozen=True)
class AttributeSchema:
    """Flags describing one attribute of a resource or data source."""

    required: bool = False
    optional: bool = False
    computed: bool = False
    type: Any = None


@dataclass
class ProviderSchema:
    """Resource and data-source schemas published by one provider."""

    resource_schemas: Dict[str, AttributeSet] = field(default_factory=dict)
    data_source_schemas: Dict[str, AttributeSet] = field(default_factory=dict)


@dataclass
class ProviderSchemaSnapshot:
    """Parsed output of ``terraform providers schema -json``."""

    providers: Dict[str, ProviderSchema] = field(default_factory=dict)

    @classmethod
    def from_json(cls, payload: Any) -> "ProviderSchemaSnapshot":
        if not isinstance(payload, Mapping):
            raise SnapshotUnavailable("schema", "expected a JSON object at the root")
        raw_providers = payload.get("provider_schemas")
        if raw_providers is None:
            raw_providers = {}
        if not isinstance(raw_providers, Mapping):
            raise SnapshotUnavailable("schema", "'provider_schemas' must be an object")

        providers: Dict[str, ProviderSchema] = {}
        for source, entry in raw_providers.items():
            entry = entry if isinstance(entry, Mapping) else {}
            providers[str(source)] = ProviderSchema(
                resource_schemas=_parse_schemas(entry.get("resource_schemas")),
                data_source_schemas=_parse_schemas(entry.get("data_source_schemas")),
            )
        return cls(providers=providers)

    def sorted_sources(self) -> List[str]:
        return sorted(self.providers)


def _parse_schemas(raw: Any) -> Dict[str, AttributeSet]:
    if not isinstance(raw, Mapping):
        return {}
    schemas: Dict[str, AttributeSet] = {}
    for type_name, schema in raw.items():
        block = schema.get("block") if isinstance(schema, Mapping) else None
        attributes = block.get("attributes") if isinstance(block, Mapping) else None
        parsed: AttributeSet = {}
        if isinstance(attributes, Mapping):
            for name, flags in attributes.items():
                flags = flags if isinstance(flags, Mapping) else {}
                parsed[str(name)] = AttributeSchema(
                    required=bool(flags.get("required", False)),
                    optional=bool(flags.get("optional", False)),
                    computed=bool(flags.get("computed", False)),
                    type=flags.get("type"),
                )
        schemas[str(type_name)] = parsed
    return schemas


@dataclass(frozen=True)
class SchemaMatch:
    """Outcome of looking up a data-source counterpart for a resource type."""

    found: bool
    provider: Optional[str] = None
    required_attributes: tuple[str, ...] = ()


class SchemaMatcher:
    """Answers data-source and provider-ownership questions against a snapshot.

    Providers are always visited in lexical order of their source keys, so a
    data source defined by several providers resolves to the same one on every
    run.
    """

    def __init__(self, snapshot: ProviderSchemaSnapshot) -> None:
        self.snapshot = snapshot

    def match(self, resource_type: str) -> SchemaMatch:
        for source in self.snapshot.sorted_sources():
            attributes = self.snapshot.providers[source].data_source_schemas.get(resource_type)
            if attributes is None:
                continue
            required = tuple(sorted(name for name, attr in attributes.items() if attr.required))
            return SchemaMatch(found=True, provider=source, required_attributes=required)
        return SchemaMatch(found=False)

    def resource_owners(self, resource_type: str) -> List[str]:
        """Return provider sources whose managed resource schemas define ``resource_type``."""
        return [
            source
            for source in self.snapshot.sorted_sources()
            if resource_type in self.snapshot.providers[source].resource_schemas
        ]


__all__ = [
    "AttributeSchema",
    "ProviderSchema",
    "ProviderSchemaSnapshot",
    "SchemaMatch",
    "SchemaMatcher",
]
