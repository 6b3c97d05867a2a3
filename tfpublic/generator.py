"""Rendering of the generated data, output and provider files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, List, Sequence

from jinja2 import Environment, FileSystemLoader

from .models import ABSENT, GeneratedArtifactSet, MatchedResource, PublishedOutput
from .schema import SchemaMatcher

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")


@dataclass(frozen=True)
class ProviderRequirement:
    """A ``required_providers`` entry keyed by the provider's short name."""

    name: str
    source: str


def provider_short_name(source: str) -> str:
    return source.rstrip("/").rsplit("/", 1)[-1]


def hcl_string(value: Any) -> str:
    """Render a state value as a quoted HCL string literal."""
    if value is ABSENT or value is None:
        text = ""
    elif isinstance(value, bool):
        text = "true" if value else "false"
    elif isinstance(value, (int, float, str)):
        text = str(value)
    else:
        text = json.dumps(value, sort_keys=True, separators=(",", ":"))

    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "$${")
        .replace("%{", "%%{")
    )
    return f'"{escaped}"'


class CodeGenerator:
    """Renders the companion module from matched resources and their outputs."""

    def __init__(self, templates_dir: Path | None = None) -> None:
        self.templates_dir = templates_dir
        self._env = self._create_env(templates_dir)

    def render(
        self,
        resources: Sequence[MatchedResource],
        outputs: Sequence[PublishedOutput],
        matcher: SchemaMatcher,
    ) -> GeneratedArtifactSet:
        """Render all three artifacts; resources and outputs keep their given order."""
        return GeneratedArtifactSet(
            data=self._render("data.tf.j2", resources=list(resources)),
            outputs=self._render("outputs.tf.j2", outputs=list(outputs)),
            providers=self._render(
                "providers.tf.j2",
                providers=self.provider_requirements(resources, matcher),
            ),
        )

    @staticmethod
    def provider_requirements(
        resources: Iterable[MatchedResource], matcher: SchemaMatcher
    ) -> List[ProviderRequirement]:
        """Providers owning a managed schema for any matched type, one per short name."""
        requirements: List[ProviderRequirement] = []
        seen: set[str] = set()
        for resource in resources:
            for source in matcher.resource_owners(resource.resource_type):
                name = provider_short_name(source)
                if name in seen:
                    continue
                seen.add(name)
                requirements.append(ProviderRequirement(name=name, source=source))
        return requirements

    def _render(self, template_name: str, **context: Any) -> str:
        template = self._env.get_template(template_name)
        return template.render(**context).rstrip("\n") + "\n"

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES))
        env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters["hcl_string"] = hcl_string
        return env


__all__ = ["CodeGenerator", "ProviderRequirement", "hcl_string", "provider_short_name"]
