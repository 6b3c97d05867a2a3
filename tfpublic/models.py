"""Core data models shared across tfpublic components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List


# Sentinel for an attribute missing from a resource's state entry.
ABSENT: Any = object()


@dataclass(frozen=True)
class AnnotatedDeclaration:
    """An output block preceded by a marker comment."""

    file: Path
    line: int
    name: str
    reference_expression: str


@dataclass(frozen=True)
class ResourceReference:
    """A managed resource address plus the attribute path read from it."""

    resource_type: str
    resource_name: str
    attribute_path: str = ""

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.resource_name}"

    @property
    def key(self) -> tuple[str, str]:
        return (self.resource_type, self.resource_name)


@dataclass
class MatchedResource:
    """A resource with a data-source counterpart and its looked-up inputs."""

    resource_type: str
    resource_name: str
    required_attributes: List[str] = field(default_factory=list)
    extracted_values: Dict[str, Any] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.resource_type}.{self.resource_name}"


@dataclass(frozen=True)
class PublishedOutput:
    """An output block re-pointed at the generated data source."""

    name: str
    reference: ResourceReference
    declaration: AnnotatedDeclaration

    @property
    def data_path(self) -> str:
        path = f"data.{self.reference.resource_type}.{self.reference.resource_name}"
        if self.reference.attribute_path:
            path = f"{path}.{self.reference.attribute_path}"
        return path


DATA_FILENAME = "generated_data.tf"
OUTPUTS_FILENAME = "generated_outputs.tf"
PROVIDERS_FILENAME = "generated_providers.tf"
GENERATED_FILENAMES = (DATA_FILENAME, OUTPUTS_FILENAME, PROVIDERS_FILENAME)


@dataclass(frozen=True)
class GeneratedArtifactSet:
    """Rendered contents of the three generated Terraform files."""

    data: str
    outputs: str
    providers: str

    def files(self) -> Dict[str, str]:
        return {
            DATA_FILENAME: self.data,
            OUTPUTS_FILENAME: self.outputs,
            PROVIDERS_FILENAME: self.providers,
        }
