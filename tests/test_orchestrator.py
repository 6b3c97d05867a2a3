"""Tests for tfpublic.orchestrator."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from tests._fixtures.project_builder import ProjectBuilder
from tests._fixtures.snapshots import attribute_block, aws_schema, aws_state, schema_payload
from tfpublic.config import ProjectConfig, TfPublicConfig
from tfpublic.orchestrator import FAILED, GENERATED, NO_OUTPUTS, SKIPPED, Orchestrator
from tfpublic.terraform import CommandRequest, TerraformCLI

_ANNOTATED = """
resource "aws_instance" "foo" {
  ami = "ami-42"
}
# @public
output "instance_id" {
  value = aws_instance.foo.id
}
"""


def _terraform(state: dict, schema: dict, calls: List[CommandRequest] | None = None) -> TerraformCLI:
    def _runner(request: CommandRequest) -> str:
        if calls is not None:
            calls.append(request)
        if request.args[-1].endswith("show -json"):
            return json.dumps(state)
        return json.dumps(schema)

    return TerraformCLI(runner=_runner)


def _config(root: Path, *paths: str) -> TfPublicConfig:
    return TfPublicConfig(root=root, projects=[ProjectConfig(path=path) for path in paths])


def test_run_writes_interface_files(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    orchestrator = Orchestrator(_config(tmp_path, "project"), terraform=_terraform(aws_state(), aws_schema()))

    [outcome] = orchestrator.run()

    assert outcome.status == GENERATED
    interface = project_builder.path() / "interface"
    assert sorted(path.name for path in interface.iterdir()) == [
        "generated_data.tf",
        "generated_outputs.tf",
        "generated_providers.tf",
    ]
    assert 'id = "i-123"' in (interface / "generated_data.tf").read_text(encoding="utf-8")
    assert outcome.written == [
        interface / "generated_data.tf",
        interface / "generated_outputs.tf",
        interface / "generated_providers.tf",
    ]


def test_rerun_does_not_scan_generated_files(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    orchestrator = Orchestrator(_config(tmp_path, "project"), terraform=_terraform(aws_state(), aws_schema()))

    first = orchestrator.run()[0]
    second = orchestrator.run()[0]

    assert second.result is not None and first.result is not None
    assert len(second.result.declarations) == len(first.result.declarations) == 1


def test_failed_project_does_not_stop_others(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    orchestrator = Orchestrator(
        _config(tmp_path, "missing", "project"),
        terraform=_terraform(aws_state(), aws_schema()),
    )

    outcomes = orchestrator.run()

    assert [outcome.status for outcome in outcomes] == [FAILED, GENERATED]
    assert outcomes[0].error is not None and "missing" in outcomes[0].error


def test_snapshot_failure_is_isolated(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})

    def _broken(request: CommandRequest) -> str:
        return "not json"

    orchestrator = Orchestrator(_config(tmp_path, "project"), terraform=TerraformCLI(runner=_broken))

    [outcome] = orchestrator.run()

    assert outcome.failed
    assert "state snapshot unavailable" in (outcome.error or "")
    assert not (project_builder.path() / "interface").exists()


def test_unapplied_project_is_skipped(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    calls: List[CommandRequest] = []
    orchestrator = Orchestrator(
        _config(tmp_path, "project"),
        terraform=_terraform({"format_version": "1.0"}, aws_schema(), calls),
    )

    [outcome] = orchestrator.run()

    assert outcome.status == SKIPPED
    assert len(calls) == 1


def test_project_without_annotations_skips_terraform(
    project_builder: ProjectBuilder, tmp_path: Path
) -> None:
    project_builder.write({"main.tf": 'output "plain" {\n  value = "value1"\n}\n'})
    calls: List[CommandRequest] = []
    orchestrator = Orchestrator(
        _config(tmp_path, "project"), terraform=_terraform(aws_state(), aws_schema(), calls)
    )

    [outcome] = orchestrator.run()

    assert outcome.status == NO_OUTPUTS
    assert calls == []


def test_unmatched_outputs_create_no_files(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    schema = schema_payload({"hashicorp/aws": {"resources": {"aws_instance": attribute_block()}}})
    orchestrator = Orchestrator(_config(tmp_path, "project"), terraform=_terraform(aws_state(), schema))

    [outcome] = orchestrator.run()

    assert outcome.status == NO_OUTPUTS
    assert outcome.warnings == 1
    assert not (project_builder.path() / "interface").exists()


def test_snapshot_files_replace_terraform_calls(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    state_file = tmp_path / "state.json"
    schema_file = tmp_path / "schema.json"
    state_file.write_text(json.dumps(aws_state()), encoding="utf-8")
    schema_file.write_text(json.dumps(aws_schema()), encoding="utf-8")
    calls: List[CommandRequest] = []
    config = _config(tmp_path, "project")
    config.output_dir = "public"

    orchestrator = Orchestrator(
        config,
        terraform=_terraform({}, {}, calls),
        state_file=state_file,
        schema_file=schema_file,
    )
    [outcome] = orchestrator.run()

    assert outcome.status == GENERATED
    assert calls == []
    assert (project_builder.path() / "public" / "generated_outputs.tf").exists()


def test_dropped_annotation_removes_previous_interface(
    project_builder: ProjectBuilder, tmp_path: Path
) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    interface = project_builder.path() / "interface"
    interface.mkdir()
    (interface / "README.md").write_text("kept\n", encoding="utf-8")
    orchestrator = Orchestrator(_config(tmp_path, "project"), terraform=_terraform(aws_state(), aws_schema()))
    assert orchestrator.run()[0].status == GENERATED

    project_builder.write({"main.tf": _ANNOTATED.replace("# @public\n", "")})
    [outcome] = orchestrator.run()

    assert outcome.status == NO_OUTPUTS
    assert sorted(path.name for path in outcome.removed) == [
        "generated_data.tf",
        "generated_outputs.tf",
        "generated_providers.tf",
    ]
    assert sorted(path.name for path in interface.iterdir()) == ["README.md"]


def test_unmatched_rerun_removes_previous_interface(
    project_builder: ProjectBuilder, tmp_path: Path
) -> None:
    project_builder.write({"main.tf": _ANNOTATED})
    config = _config(tmp_path, "project")
    Orchestrator(config, terraform=_terraform(aws_state(), aws_schema())).run()
    schema = schema_payload({"hashicorp/aws": {"resources": {"aws_instance": attribute_block()}}})

    [outcome] = Orchestrator(config, terraform=_terraform(aws_state(), schema)).run()

    assert outcome.status == NO_OUTPUTS
    assert len(outcome.removed) == 3
    assert list((project_builder.path() / "interface").iterdir()) == []
