"""Command-line entry point for cleanarch.

Each generator subcommand builds an immutable request and hands it to the
:class:`~cleanarch.pipeline.GenerationOrchestrator`; the process exits with
status 1 whenever the run fails.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.table import Table

from cleanarch.backup import BackupService
from cleanarch.config import GeneratorConfig, ProjectSettings
from cleanarch.errors import BackupError, ValidationError
from cleanarch.pipeline import GenerationOrchestrator
from cleanarch.scaffolder.templates import JinjaTemplateProvider
from cleanarch.structure.models import (
    AdapterRequest,
    EntityRequest,
    GenerationResult,
    InitRequest,
    InputAdapterRequest,
    UseCaseRequest,
)
from cleanarch.utils import console, print_error, print_success, print_summary_table
from cleanarch.validation.parsing import (
    parse_endpoints,
    parse_fields,
    parse_methods,
    resolve_package_name,
)


# ---------------------------------------------------------------------------
# Request builders
# ---------------------------------------------------------------------------


def _base_package(project_dir: Path, config: GeneratorConfig) -> str:
    """Base package from ``.cleanarch.yml``, or "" when it cannot be read.

    The orchestrator re-reads the file and reports why it is unusable.
    """
    try:
        return ProjectSettings.load(project_dir, config.settings_file).base_package
    except ValidationError:
        return ""


def _package(args: argparse.Namespace, kind: str, config: GeneratorConfig, adapter_type: str | None = None) -> str:
    base = _base_package(Path(args.project_dir), config)
    if not args.package and not base:
        return ""
    return resolve_package_name(kind, base, args.package, adapter_type)


def build_request(args: argparse.Namespace, config: GeneratorConfig) -> Any:
    """Translate parsed arguments into a generation request.

    Raises:
        ValidationError: A list argument is malformed.
    """
    project_root = Path(args.project_dir)

    if args.command == "init":
        return InitRequest(
            project_root=project_root,
            name=args.name or project_root.resolve().name,
            package_name=args.package,
            architecture=args.architecture,
            framework=args.framework,
            paradigm=args.paradigm,
            adapters_as_modules=args.adapters_as_modules,
        )
    if args.command == "adapter":
        return AdapterRequest(
            project_root=project_root,
            name=args.name,
            package_name=_package(args, "adapter", config, args.type),
            entity_name=args.entity,
            adapter_type=args.type,
            methods=tuple(parse_methods(args.methods)),
        )
    if args.command == "use-case":
        return UseCaseRequest(
            project_root=project_root,
            name=args.name,
            package_name=_package(args, "use-case", config),
            methods=tuple(parse_methods(args.methods)),
            generate_port=not args.no_port,
            generate_impl=not args.no_impl,
        )
    if args.command == "entity":
        return EntityRequest(
            project_root=project_root,
            name=args.name,
            package_name=_package(args, "entity", config),
            fields=tuple(parse_fields(args.fields)),
            has_id=not args.no_id,
            id_type=args.id_type,
        )
    if args.command == "input-adapter":
        return InputAdapterRequest(
            project_root=project_root,
            name=args.name,
            package_name=_package(args, "input-adapter", config, args.type),
            use_case_name=args.use_case,
            adapter_type=args.type,
            endpoints=tuple(parse_endpoints(args.endpoints)),
        )
    raise ValueError(f"Not a generator command: {args.command}")


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def print_result(result: GenerationResult, project_dir: Path) -> None:
    if result.files:
        table = Table(title="Files", show_header=True, header_style="bold cyan")
        table.add_column("Action", style="dim", no_wrap=True)
        table.add_column("Path")
        for generated in result.files:
            try:
                shown = generated.path.relative_to(project_dir)
            except ValueError:
                shown = generated.path
            table.add_row(generated.action, str(shown))
        console.print(table)

    for warning in result.warnings:
        console.print(f"[yellow]warning:[/yellow] {warning}")
    for error in result.errors:
        console.print(f"[bold red]Error:[/bold red] {error}")


# ---------------------------------------------------------------------------
# Non-generating commands
# ---------------------------------------------------------------------------


def run_backups(args: argparse.Namespace, config: GeneratorConfig) -> int:
    service = BackupService(config.state_dir, config.backups_subdir)
    project_dir = Path(args.project_dir)

    if args.delete:
        try:
            service.delete_backup(project_dir, args.delete)
        except BackupError as exc:
            print_error(str(exc))
            return 1
        print_success(f"Deleted backup {args.delete}")
        return 0

    manifests = service.list_backups(project_dir)
    if not manifests:
        console.print("No backups found.")
        return 0
    print_summary_table(
        {m.backup_id: f"{m.created_at}  ({len(m.files)} file(s))" for m in manifests},
        title="Backups",
    )
    return 0


def run_validate_templates(args: argparse.Namespace, config: GeneratorConfig) -> int:
    provider = JinjaTemplateProvider(args.template_dir or config.template_dir)
    templates = provider.list_templates()
    result = provider.validate_all()
    for error in result.errors:
        print_error(error)
    if not result.valid:
        return 1
    print_success(f"{len(templates)} template(s) OK in {provider.template_dir}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cleanarch",
        description="cleanarch -- scaffold adapters, use cases and entities into a clean-architecture project",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  cleanarch init --package com.company.payments --architecture hexagonal-single\n"
            "  cleanarch entity --name User --fields 'name:String,email:String'\n"
            "  cleanarch use-case --name CreateUser --methods 'execute:User:user:User'\n"
            "  cleanarch adapter --name UserRepository --entity User --type redis \\\n"
            "      --methods 'findById:User:id:String|save:User:user:User'\n"
            "  cleanarch input-adapter --name User --use-case CreateUser --type rest \\\n"
            "      --endpoints '/users:POST:execute:User:user:BODY:User'\n"
            "  cleanarch backups --delete backup_20240101_120000_000000_1_abcd1234\n"
        ),
    )
    parser.add_argument(
        "--project-dir", "-p",
        default=".",
        help="Project root containing .cleanarch.yml (default: current directory)",
    )
    parser.add_argument(
        "--template-dir",
        default=None,
        type=Path,
        help="Template tree to use instead of the built-in one",
    )
    parser.add_argument(
        "--fail-on-conflicts",
        action="store_true",
        help="Roll back instead of warning when dependency conflicts are found",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Initialise a project: .cleanarch.yml, build file and application.yml")
    init.add_argument("--package", required=True, help="Base package (e.g. com.company.service)")
    init.add_argument("--name", "-n", default=None, help="Project name (default: project directory name)")
    init.add_argument("--architecture", "-a", default="hexagonal-single",
                      help="hexagonal-single, hexagonal-multi, hexagonal-multi-granular, onion-single, onion-multi")
    init.add_argument("--framework", default="spring", help="spring, quarkus, micronaut")
    init.add_argument("--paradigm", default="reactive", help="reactive or imperative")
    init.add_argument("--adapters-as-modules", action="store_true", help="Place each adapter in its own module")

    adapter = sub.add_parser("adapter", help="Generate a driven adapter")
    adapter.add_argument("--name", "-n", required=True, help="Adapter name (e.g. UserRepository)")
    adapter.add_argument("--entity", "-e", required=True, help="Domain entity the adapter handles")
    adapter.add_argument("--type", "-t", default="redis", help="redis, mongodb, postgresql, rest-client, kafka")
    adapter.add_argument("--methods", "-m", default=None, help="name:Return[:param:Type,...] entries separated by |")
    adapter.add_argument("--package", default=None, help="Override the derived package")

    use_case = sub.add_parser("use-case", help="Generate a use case port and implementation")
    use_case.add_argument("--name", "-n", required=True)
    use_case.add_argument("--methods", "-m", default=None, help="name:Return[:param:Type,...] entries separated by |")
    use_case.add_argument("--no-port", action="store_true", help="Skip the input port interface")
    use_case.add_argument("--no-impl", action="store_true", help="Skip the implementation class")
    use_case.add_argument("--package", default=None)

    entity = sub.add_parser("entity", help="Generate a domain entity")
    entity.add_argument("--name", "-n", required=True)
    entity.add_argument("--fields", "-f", default=None, help="name:Type pairs separated by commas (Type? = nullable)")
    entity.add_argument("--id-type", default="String", help="String, Long or UUID (default: String)")
    entity.add_argument("--no-id", action="store_true", help="Do not add an id field")
    entity.add_argument("--package", default=None)

    input_adapter = sub.add_parser("input-adapter", help="Generate a driving adapter (entry point)")
    input_adapter.add_argument("--name", "-n", required=True)
    input_adapter.add_argument("--use-case", "-u", required=True, help="Use case the entry point delegates to")
    input_adapter.add_argument("--type", "-t", default="rest", help="rest, graphql, grpc, websocket")
    input_adapter.add_argument("--endpoints", default=None,
                               help="/path:METHOD:useCaseMethod:Return[:param:KIND:Type] entries separated by |")
    input_adapter.add_argument("--package", default=None)

    backups = sub.add_parser("backups", help="List or delete backups kept after failed runs")
    backups.add_argument("--delete", metavar="BACKUP_ID", default=None, help="Delete one backup")

    sub.add_parser("validate-templates", help="Syntax-check every template")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for ``cleanarch``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = GeneratorConfig.from_env()
    if args.template_dir is not None:
        config = config.model_copy(update={"template_dir": args.template_dir})
    if args.fail_on_conflicts:
        config = config.model_copy(update={"fail_on_dependency_conflicts": True})

    if args.command == "backups":
        sys.exit(run_backups(args, config))
    if args.command == "validate-templates":
        sys.exit(run_validate_templates(args, config))

    project_dir = Path(args.project_dir)
    if not project_dir.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project directory not found: {project_dir}")
        sys.exit(1)

    try:
        request = build_request(args, config)
    except ValidationError as exc:
        for message in exc.errors:
            console.print(f"[bold red]Error:[/bold red] {message}")
        sys.exit(1)

    result = GenerationOrchestrator(config).generate(request)
    print_result(result, project_dir)
    if not result.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
