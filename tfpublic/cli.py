"""CLI entrypoints for tfpublic commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List

from .config import CONFIG_FILENAME, ProjectConfig, TfPublicConfig, load_config
from .errors import ConfigError, UnreadableFile
from .logging import configure_logging
from .orchestrator import GENERATED, Orchestrator, ProjectOutcome
from .scanner import AnnotationScanner


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_shared_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--marker",
        help="Comment token that marks an output as public (default: @public).",
    )
    parser.add_argument(
        "--config",
        default=CONFIG_FILENAME,
        help=f"Path to the configuration file (default: {CONFIG_FILENAME}).",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        type=Path,
        help="Also write log records to this file.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tfpublic",
        description="Generate read-only data source interfaces for annotated Terraform outputs.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate interface modules for the given or configured projects.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_shared_options(generate_parser)
    generate_parser.add_argument(
        "paths",
        nargs="*",
        help="Terraform project directories (defaults to the configured projects).",
    )
    generate_parser.add_argument("--shell", help="Shell used to run terraform commands.")
    command_group = generate_parser.add_mutually_exclusive_group()
    command_group.add_argument(
        "--tf-command",
        dest="tf_command",
        help="Terraform-compatible executable to invoke (default: terraform).",
    )
    command_group.add_argument(
        "--use-tofu",
        action="store_true",
        help="Use tofu instead of terraform.",
    )
    generate_parser.add_argument(
        "--output-dir",
        help="Directory inside each project for generated files (default: interface).",
    )
    generate_parser.add_argument(
        "--state-file",
        type=Path,
        help="Read state from a saved `show -json` export instead of running terraform.",
    )
    generate_parser.add_argument(
        "--schema-file",
        type=Path,
        help="Read provider schemas from a saved `providers schema -json` export.",
    )

    scan_parser = subparsers.add_parser(
        "scan",
        help="List annotated outputs without contacting terraform.",
    )
    _add_verbose_option(scan_parser, suppress_default=True)
    _add_shared_options(scan_parser)
    scan_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the Terraform project (defaults to current directory).",
    )

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for tfpublic commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        config = _effective_config(args)
    except ConfigError as exc:
        configure_logging(verbose=bool(args.verbose))
        parser.exit(1, f"tfpublic: {exc}\n")
    configure_logging(verbose=config.verbose, log_file=config.log_file)

    if args.command == "scan":
        _run_scan(parser, args, config)
    elif args.command == "generate":
        orchestrator = Orchestrator(
            config,
            state_file=args.state_file,
            schema_file=args.schema_file,
        )
        outcomes = orchestrator.run()
        _print_summary(outcomes)
        if any(outcome.failed for outcome in outcomes):
            parser.exit(1)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _effective_config(args: argparse.Namespace) -> TfPublicConfig:
    """Merge the configuration file with command-line overrides."""
    config = load_config(Path(args.config))
    if args.verbose:
        config.verbose = True
    if args.marker:
        config.marker = args.marker
    if args.log_file:
        config.log_file = args.log_file.resolve()
    if args.command != "generate":
        return config

    if args.shell:
        config.shell = args.shell
    if args.use_tofu:
        config.command = "tofu"
    elif args.tf_command:
        config.command = args.tf_command
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.paths:
        cwd = Path.cwd()
        config.projects = [ProjectConfig(path=str((cwd / path).resolve())) for path in args.paths]
    return config


def _run_scan(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: TfPublicConfig
) -> None:
    scanner = AnnotationScanner(config.marker)
    try:
        declarations = scanner.scan(args.path)
    except (FileNotFoundError, NotADirectoryError, UnreadableFile) as exc:
        parser.exit(1, f"tfpublic scan failed: {exc}\n")
    if not declarations:
        print("No annotated outputs")
        return
    print("Annotated outputs:")
    for declaration in declarations:
        print(
            f"  {declaration.name} = {declaration.reference_expression} "
            f"({declaration.file}:{declaration.line})"
        )


def _print_summary(outcomes: List[ProjectOutcome]) -> None:
    for outcome in outcomes:
        location = _relativize(outcome.project)
        if outcome.status == GENERATED:
            print(f"{location}: generated {len(outcome.written)} files")
        elif outcome.removed:
            print(f"{location}: {outcome.status} (removed {len(outcome.removed)} stale files)")
        elif outcome.error:
            print(f"{location}: {outcome.status} ({outcome.error})")
        else:
            print(f"{location}: {outcome.status}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
