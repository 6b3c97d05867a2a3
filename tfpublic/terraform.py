"""Adapter around the terraform / tofu command line for JSON snapshots."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .errors import SnapshotUnavailable
from .logging import get_logger
from .schema import ProviderSchemaSnapshot
from .state import StateSnapshot


@dataclass
class CommandRequest:
    """A shell command to run inside a Terraform project directory."""

    args: list[str]
    cwd: Path
    env: Optional[Dict[str, str]]


class TerraformCLI:
    """Runs ``show -json`` and ``providers schema -json`` through a shell."""

    def __init__(
        self,
        shell: str = "bash",
        command: str = "terraform",
        *,
        extra_path: str | None = None,
        runner: Callable[[CommandRequest], str] | None = None,
    ) -> None:
        self.shell = shell
        self.command = command
        self.extra_path = extra_path
        self._runner = runner or self._subprocess_runner
        self.logger = get_logger("terraform")

    def show_state(self, project: Path) -> StateSnapshot:
        """Return the applied state of ``project``."""
        payload = self._run_json("state", project, f"{self.command} show -json")
        return StateSnapshot.from_json(payload)

    def provider_schemas(self, project: Path) -> ProviderSchemaSnapshot:
        """Return the provider schemas available to ``project``."""
        payload = self._run_json("schema", project, f"{self.command} providers schema -json")
        return ProviderSchemaSnapshot.from_json(payload)

    def _run_json(self, snapshot: str, project: Path, command_line: str) -> Any:
        request = CommandRequest(
            args=[self.shell, "-c", command_line],
            cwd=project,
            env=self._environment(),
        )
        self.logger.debug("Running command: %s -c %r in %s", self.shell, command_line, project)
        try:
            output = self._runner(request)
        except RuntimeError as exc:
            raise SnapshotUnavailable(snapshot, str(exc)) from exc
        try:
            return json.loads(output)
        except json.JSONDecodeError as exc:
            raise SnapshotUnavailable(
                snapshot, f"`{command_line}` did not return JSON: {exc}"
            ) from exc

    def _environment(self) -> Optional[Dict[str, str]]:
        if not self.extra_path:
            return None
        env = dict(os.environ)
        env["PATH"] = os.pathsep.join(filter(None, (self.extra_path, env.get("PATH"))))
        return env

    @staticmethod
    def _subprocess_runner(request: CommandRequest) -> str:
        try:
            completed = subprocess.run(
                request.args,
                cwd=request.cwd,
                env=request.env,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(
                f"Unable to locate '{request.args[0]}'. Check the configured shell."
            ) from exc
        except subprocess.CalledProcessError as exc:  # pragma: no cover - depends on environment
            detail = (exc.stderr or exc.stdout or "").strip()
            raise RuntimeError(f"command failed with exit code {exc.returncode}: {detail}") from exc
        return completed.stdout


def load_json_file(path: Path, snapshot: str) -> Any:
    """Read a pre-exported snapshot from disk."""
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise SnapshotUnavailable(snapshot, f"cannot load {path}: {exc}") from exc


__all__ = ["CommandRequest", "TerraformCLI", "load_json_file"]
