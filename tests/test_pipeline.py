"""End-to-end tests for tfpublic.pipeline."""

from __future__ import annotations

from pathlib import Path

from tests._fixtures.project_builder import ProjectBuilder
from tests._fixtures.snapshots import attribute_block, aws_schema, aws_state, schema_payload, state_payload
from tfpublic.diagnostics import DiagnosticKind
from tfpublic.pipeline import PublicInterfacePipeline, write_artifacts
from tfpublic.schema import ProviderSchemaSnapshot
from tfpublic.state import StateSnapshot

_SINGLE_OUTPUT = """
# @public
output "x" { value = aws_instance.foo.id }
"""


def _run(project: Path, schema: dict, state: dict, **kwargs):
    pipeline = PublicInterfacePipeline(**kwargs)
    return pipeline.run(
        project,
        ProviderSchemaSnapshot.from_json(schema),
        StateSnapshot.from_json(state),
    )


def test_pipeline_generates_interface_for_matched_output(project_builder: ProjectBuilder) -> None:
    project_builder.write({"main.tf": _SINGLE_OUTPUT})

    result = _run(project_builder.path(), aws_schema(), aws_state())

    assert result.artifacts is not None
    assert result.artifacts.data == 'data "aws_instance" "foo" {\n  id = "i-123"\n}\n'
    assert result.artifacts.outputs == 'output "x" {\n  value = data.aws_instance.foo.id\n}\n'
    assert 'aws = {\n      source = "hashicorp/aws"' in result.artifacts.providers
    assert len(result.diagnostics) == 0


def test_pipeline_warns_when_no_data_source_exists(project_builder: ProjectBuilder) -> None:
    project_builder.write({"main.tf": _SINGLE_OUTPUT})
    schema = schema_payload(
        {"hashicorp/aws": {"resources": {"aws_instance": attribute_block(required=["ami"])}}}
    )

    result = _run(project_builder.path(), schema, aws_state())

    assert result.artifacts is None
    assert result.matched == []
    [warning] = result.diagnostics.warnings
    assert warning.kind is DiagnosticKind.NO_MATCHING_DATA_SOURCE
    assert warning.message.startswith("Annotated resource aws_instance.foo at line 2")
    assert warning.message.endswith("does not have a matching data resource!")
    assert warning.file == Path("main.tf")
    assert warning.line == 2


def test_pipeline_deduplicates_data_blocks_but_not_outputs(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "a.tf": """
            # @public
            output "instance_id" {
              value = aws_instance.foo.id
            }
            # @public
            output "instance_ami" {
              value = aws_instance.foo.ami
            }
            """,
            "b.tf": """
            # @public
            output "instance_again" {
              value = aws_instance.foo.id
            }
            """,
        }
    )

    result = _run(project_builder.path(), aws_schema(), aws_state())

    assert [resource.address for resource in result.matched] == ["aws_instance.foo"]
    assert result.artifacts is not None
    assert result.artifacts.data.count('data "aws_instance" "foo"') == 1
    assert [output.name for output in result.outputs] == [
        "instance_id",
        "instance_ami",
        "instance_again",
    ]
    assert "value = data.aws_instance.foo.ami" in result.artifacts.outputs


def test_pipeline_warns_once_per_unmatched_occurrence(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "main.tf": """
            # @public
            output "pet" {
              value = random_pet.name.id
            }
            # @public
            output "instance" {
              value = aws_instance.foo.id
            }
            """,
            "more.tf": """
            # @public
            output "pet_again" {
              value = random_pet.name.id
            }
            """,
        }
    )
    schema = schema_payload(
        {
            "hashicorp/aws": {
                "resources": {"aws_instance": attribute_block()},
                "data_sources": {"aws_instance": attribute_block(required=["id"])},
            },
            "hashicorp/random": {"resources": {"random_pet": attribute_block()}},
        }
    )

    result = _run(project_builder.path(), schema, aws_state())

    warnings = result.diagnostics.of_kind(DiagnosticKind.NO_MATCHING_DATA_SOURCE)
    assert [(str(item.file), item.line) for item in warnings] == [("main.tf", 2), ("more.tf", 2)]
    assert [output.name for output in result.outputs] == ["instance"]
    assert result.artifacts is not None
    assert "random" not in result.artifacts.providers


def test_pipeline_defaults_missing_state_attributes(project_builder: ProjectBuilder) -> None:
    project_builder.write({"main.tf": _SINGLE_OUTPUT})
    state = state_payload([("aws_instance.other", {"id": "i-999"})])

    result = _run(project_builder.path(), aws_schema(), state)

    assert result.artifacts is not None
    assert '  id = ""\n' in result.artifacts.data
    [absent] = result.diagnostics.of_kind(DiagnosticKind.ATTRIBUTE_ABSENT_FROM_STATE)
    assert absent.severity == "info"
    assert result.diagnostics.warnings == []


def test_pipeline_reports_malformed_references_and_continues(
    project_builder: ProjectBuilder,
) -> None:
    project_builder.write(
        {
            "main.tf": """
            # @public
            output "literal" {
              value = "value1"
            }
            # @public
            output "x" {
              value = aws_instance.foo.id
            }
            """
        }
    )

    result = _run(project_builder.path(), aws_schema(), aws_state())

    [malformed] = result.diagnostics.of_kind(DiagnosticKind.MALFORMED_REFERENCE)
    assert malformed.line == 2
    assert "literal" in malformed.message
    assert [output.name for output in result.outputs] == ["x"]


def test_pipeline_skips_duplicate_output_names(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            "a.tf": _SINGLE_OUTPUT,
            "b.tf": """
            # @public
            output "x" {
              value = aws_instance.foo.ami
            }
            """,
        }
    )

    result = _run(project_builder.path(), aws_schema(), aws_state())

    [duplicate] = result.diagnostics.of_kind(DiagnosticKind.DUPLICATE_OUTPUT)
    assert duplicate.file == Path("b.tf")
    assert [output.reference.attribute_path for output in result.outputs] == ["id"]


def test_pipeline_is_deterministic_across_runs(project_builder: ProjectBuilder, tmp_path: Path) -> None:
    project_builder.write(
        {
            "main.tf": """
            # @public
            output "bucket" {
              value = cloud_bucket.assets.url
            }
            # @public
            output "x" {
              value = aws_instance.foo.id
            }
            """
        }
    )
    schema = schema_payload(
        {
            "zeta/cloud": {
                "resources": {"cloud_bucket": attribute_block()},
                "data_sources": {"cloud_bucket": attribute_block(required=["bucket"])},
            },
            "acme/cloud": {
                "resources": {"cloud_bucket": attribute_block()},
                "data_sources": {"cloud_bucket": attribute_block(required=["name"])},
            },
            "hashicorp/aws": {
                "resources": {"aws_instance": attribute_block()},
                "data_sources": {"aws_instance": attribute_block(required=["id"])},
            },
        }
    )
    state = state_payload(
        [
            ("cloud_bucket.assets", {"name": "assets", "bucket": "assets-bkt"}),
            ("aws_instance.foo", {"id": "i-123"}),
        ]
    )

    first = _run(project_builder.path(), schema, state)
    second = _run(project_builder.path(), schema, state)

    assert first.artifacts == second.artifacts
    assert first.artifacts is not None
    assert '  name = "assets"\n' in first.artifacts.data
    assert 'cloud = {\n      source = "acme/cloud"' in first.artifacts.providers
    assert "zeta/cloud" not in first.artifacts.providers

    first_dir = write_artifacts(first.artifacts, tmp_path / "one")
    second_dir = write_artifacts(second.artifacts, tmp_path / "two")
    assert [path.read_bytes() for path in first_dir] == [path.read_bytes() for path in second_dir]


def test_write_artifacts_overwrites_previous_run(project_builder: ProjectBuilder) -> None:
    project_builder.write({"main.tf": _SINGLE_OUTPUT})
    output_dir = project_builder.path() / "interface"
    output_dir.mkdir()
    (output_dir / "generated_data.tf").write_text("stale", encoding="utf-8")

    result = _run(project_builder.path(), aws_schema(), aws_state(), exclude_dirs=["interface"])
    assert result.artifacts is not None
    written = write_artifacts(result.artifacts, output_dir)

    assert sorted(path.name for path in written) == [
        "generated_data.tf",
        "generated_outputs.tf",
        "generated_providers.tf",
    ]
    assert (output_dir / "generated_data.tf").read_text(encoding="utf-8") == result.artifacts.data
    assert not list(output_dir.glob("*.tmp"))
