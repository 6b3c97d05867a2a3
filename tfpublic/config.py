"""Configuration loading for tfpublic (tfpublic.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError
from .scanner import DEFAULT_MARKER

CONFIG_FILENAME = "tfpublic.yml"
DEFAULT_OUTPUT_DIR = "interface"


@dataclass
class ProjectConfig:
    """A Terraform project to publish, relative to the configuration root."""

    path: str
    output_dir: Optional[str] = None


@dataclass
class TfPublicConfig:
    """Represents the settings defined in tfpublic.yml."""

    root: Path
    shell: str = "bash"
    command: str = "terraform"
    verbose: bool = False
    marker: str = DEFAULT_MARKER
    output_dir: str = DEFAULT_OUTPUT_DIR
    extra_path: Optional[str] = None
    templates_dir: Optional[Path] = None
    log_file: Optional[Path] = None
    projects: List[ProjectConfig] = field(default_factory=lambda: [ProjectConfig(path=".")])

    def project_dir(self, project: ProjectConfig) -> Path:
        return (self.root / project.path).resolve()

    def output_dir_for(self, project: ProjectConfig) -> str:
        return project.output_dir or self.output_dir


def load_config(config_path: Path) -> TfPublicConfig:
    """Load configuration from disk; a missing file yields defaults."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return TfPublicConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    config = TfPublicConfig(root=root)
    config.shell = _as_str(data.get("shell")) or config.shell
    config.command = _as_str(data.get("command")) or config.command
    if _as_bool(data.get("use_tofu")):
        config.command = "tofu"
    config.verbose = bool(_as_bool(data.get("verbose")))
    config.marker = _as_str(data.get("marker")) or config.marker
    config.output_dir = _as_str(data.get("output_dir")) or config.output_dir
    config.extra_path = _as_str(data.get("extra_path"))

    templates_dir = _as_str(data.get("templates_dir"))
    config.templates_dir = root / templates_dir if templates_dir else None
    log_file = _as_str(data.get("log_file"))
    config.log_file = root / log_file if log_file else None

    if "projects" in data:
        config.projects = _parse_projects(data.get("projects"))
    return config


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        raise ConfigError(f"{path.name} is empty")
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        raise ConfigError(f"{path.name} is empty")
    return loaded


def _parse_projects(value: Any) -> List[ProjectConfig]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        raise ConfigError("'projects' must be a list")
    projects: List[ProjectConfig] = []
    for index, entry in enumerate(value):
        if isinstance(entry, str):
            projects.append(ProjectConfig(path=entry))
            continue
        if not isinstance(entry, dict):
            raise ConfigError(f"projects[{index}] must be a mapping or a path string")
        path = _as_str(entry.get("path"))
        if not path:
            raise ConfigError(f"projects[{index}] is missing 'path'")
        projects.append(ProjectConfig(path=path, output_dir=_as_str(entry.get("output_dir"))))
    return projects


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_OUTPUT_DIR",
    "ProjectConfig",
    "TfPublicConfig",
    "load_config",
]
