"""cleanarch generation orchestrator.

Applies a generation request to a project as a single all-or-nothing step:

VALIDATING  -- Load settings, validate the request, check every template and
               every target path.  Any failure rejects the run untouched.
BACKING_UP  -- Snapshot the target files that already exist.
GENERATING  -- Render and write new files, merge ``application.yml`` and the
               build descriptor, report dependency conflicts.
COMMITTED   -- Discard the snapshot.
ROLLING_BACK -- Restore the snapshot and remove files the run created.  The
               snapshot is kept for inspection.

Project initialisation (:class:`InitRequest`) takes the same path; its
settings come from the request and are written to ``.cleanarch.yml``.

Usage::

    from cleanarch.pipeline import GenerationOrchestrator

    orchestrator = GenerationOrchestrator()
    result = orchestrator.generate(request)
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from rich.panel import Panel

from cleanarch.backup import BackupService
from cleanarch.config import ArchitectureSettings, GeneratorConfig, ProjectInfo, ProjectSettings
from cleanarch.errors import (
    BackupCreationError,
    BackupError,
    CleanArchError,
    GenerationError,
    RollbackFailure,
    ValidationError,
    error_messages,
)
from cleanarch.merger.conflicts import (
    apply_version_overrides,
    detect_framework_conflicts,
    detect_version_conflicts,
    suggest_resolution,
)
from cleanarch.merger.content import merge_yaml_text
from cleanarch.merger.descriptor import merge_dependencies, parse_declared_dependencies
from cleanarch.scaffolder.planner import GenerationPlan, PlannedFile, plan_request
from cleanarch.scaffolder.templates import JinjaTemplateProvider, TemplateProvider
from cleanarch.structure.models import (
    AdapterRequest,
    AdapterType,
    ArchitectureMetadata,
    ArtifactMetadata,
    Dependency,
    GeneratedFile,
    GenerationResult,
    EntityRequest,
    InitRequest,
    InputAdapterRequest,
    InputAdapterType,
    UseCaseRequest,
    ValidationResult,
)
from cleanarch.structure.paths import SOURCE_ROLES, PathResolver
from cleanarch.utils import console, package_to_path, print_error, print_success, print_warning
from cleanarch.validation.validators import validate_request


_REQUEST_TYPES = (AdapterRequest, UseCaseRequest, EntityRequest, InputAdapterRequest, InitRequest)


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


class OrchestratorState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REJECTED = "rejected"
    VALIDATED = "validated"
    BACKING_UP = "backing_up"
    GENERATING = "generating"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    DONE = "done"


class PreparedRun(BaseModel):
    """Everything pre-flight established, handed to the mutating phases."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: ProjectSettings
    provider: Any
    architecture: ArchitectureMetadata
    plan: GenerationPlan
    targets: list[tuple[PlannedFile, Path]] = Field(default_factory=list)

    @property
    def target_paths(self) -> list[Path]:
        seen: list[Path] = []
        for _, rel in self.targets:
            if rel not in seen:
                seen.append(rel)
        return seen


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class GenerationOrchestrator:
    """Validate, back up, generate, then commit or roll back.

    One orchestrator run at a time per project root; nothing here locks.

    Attributes:
        config: Tool configuration.
        state: Current :class:`OrchestratorState`.
        history: Every state the last run passed through, in order.
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        provider: TemplateProvider | None = None,
        backup_service: BackupService | None = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self._provider = provider
        self.backups = backup_service or BackupService(
            self.config.state_dir, self.config.backups_subdir
        )
        self.state = OrchestratorState.IDLE
        self.history: list[OrchestratorState] = [OrchestratorState.IDLE]

    def _transition(self, state: OrchestratorState) -> None:
        self.state = state
        self.history.append(state)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def generate(self, request: Any) -> GenerationResult:
        """Run *request* against its project root and report the outcome.

        Never raises for problems with the request or the project; every
        failure is returned as ``GenerationResult(success=False)``.
        """
        self.state = OrchestratorState.IDLE
        self.history = [OrchestratorState.IDLE]

        console.print()
        console.print(
            Panel(
                f"[bold]{request.kind}[/bold] '{request.name}'\n"
                f"Project: {Path(request.project_root).resolve()}",
                title="[bold bright_cyan]cleanarch generate[/bold bright_cyan]",
                border_style="bright_cyan",
            )
        )

        result = self._run(request, Path(request.project_root))
        self._transition(OrchestratorState.DONE)
        self._print_summary(request, result)
        return result

    def _run(self, request: Any, root: Path) -> GenerationResult:
        self._transition(OrchestratorState.VALIDATING)
        try:
            prepared = self._preflight(request, root)
        except ValidationError as exc:
            self._transition(OrchestratorState.REJECTED)
            for message in exc.errors:
                print_error(f"  - {message}")
            return GenerationResult.failed(exc.errors)
        self._transition(OrchestratorState.VALIDATED)

        self._transition(OrchestratorState.BACKING_UP)
        existing = [rel for rel in prepared.target_paths if (root / rel).is_file()]
        backup_id: Optional[str] = None
        if existing:
            try:
                backup_id = self.backups.create_backup(root, existing)
            except BackupError as exc:
                failure = BackupCreationError(str(exc), exc.backup_path)
                print_error(str(failure))
                return GenerationResult.failed([str(failure)])

        self._transition(OrchestratorState.GENERATING)
        warnings: list[str] = []
        created_files: list[Path] = []
        created_dirs: list[Path] = []
        try:
            files = self._apply(root, prepared, warnings, created_files, created_dirs)
        except Exception as exc:
            self._transition(OrchestratorState.ROLLING_BACK)
            action = "initialize project" if isinstance(request, InitRequest) else f"generate {request.kind}"
            errors = [f"Failed to {action}: {exc}"]
            try:
                self._rollback(root, backup_id, created_files, created_dirs)
                errors.append("All changes have been rolled back.")
                if backup_id:
                    location = self.backups.backup_path(root, backup_id)
                    errors.append(f"Backup {backup_id} was kept at {location}")
            except RollbackFailure as failure:
                errors += [
                    "Failed to restore backup automatically.",
                    str(failure),
                    "Manual recovery may be required.",
                    f"Backup location: {failure.backup_path}",
                ]
            for message in errors:
                print_error(message)
            return GenerationResult.failed(errors, warnings=warnings, backup_id=backup_id)

        self._transition(OrchestratorState.COMMITTED)
        if backup_id:
            try:
                self.backups.delete_backup(root, backup_id)
            except BackupError as exc:
                warnings.append(f"Generation succeeded but the backup could not be removed: {exc}")

        for message in warnings:
            print_warning(message)
        print_success(f"Generated {len(files)} file(s) for {request.kind} '{request.name}'")
        return GenerationResult.ok(files, warnings)

    def _print_summary(self, request: Any, result: GenerationResult) -> None:
        if result.success:
            border_style = "bold green"
            status_text = "[bold green]GENERATION SUCCEEDED[/bold green]"
        else:
            border_style = "bold red"
            status_text = "[bold red]GENERATION FAILED[/bold red]"

        detail_lines = [
            status_text,
            "",
            f"Request  : {request.kind} '{request.name}'",
            f"States   : {' -> '.join(s.value for s in self.history)}",
            f"Files    : {len(result.files)}",
            f"Warnings : {len(result.warnings)}",
        ]
        if result.errors:
            detail_lines.append(f"Errors   : {len(result.errors)}")
        if result.backup_id:
            detail_lines.append(f"Backup   : {result.backup_id}")

        console.print()
        console.print(
            Panel(
                "\n".join(detail_lines),
                title="[bold]Generation Complete[/bold]",
                border_style=border_style,
            )
        )

    # ------------------------------------------------------------------
    # VALIDATING
    # ------------------------------------------------------------------

    def _provider_for(self, settings: ProjectSettings | None, root: Path) -> TemplateProvider:
        if self._provider is not None:
            return self._provider
        template_dir = settings.template_dir(root) if settings else None
        return JinjaTemplateProvider(template_dir or self.config.template_dir)

    def _preflight(self, request: Any, root: Path) -> PreparedRun:
        """Collect every problem with *request*; raise them together."""
        errors: list[str] = []

        settings: ProjectSettings | None = None
        if isinstance(request, InitRequest):
            errors.extend(self._already_initialized(root))
            settings = self._init_settings(request)
        else:
            try:
                settings = ProjectSettings.load(root, self.config.settings_file)
            except ValidationError as exc:
                errors.extend(exc.errors)

        base_package = settings.base_package if settings else ""
        structural = validate_request(request, base_package)
        errors.extend(structural.errors)
        if settings is None:
            raise ValidationError(errors)

        provider = self._provider_for(settings, root)
        architecture: ArchitectureMetadata | None = None
        try:
            architecture = provider.load_architecture(settings.architecture.type.value)
        except CleanArchError as exc:
            errors.extend(error_messages(exc))

        metadata: ArtifactMetadata | None = None
        if isinstance(request, AdapterRequest):
            metadata = self._load_metadata(provider, request, errors)

        plan = self._plan(request, settings, metadata)
        if plan is not None:
            for template_id in plan.template_ids:
                errors.extend(provider.validate(template_id).errors)

        # Paths built from invalid names would only repeat the errors above.
        targets: list[tuple[PlannedFile, Path]] = []
        if structural.valid and plan is not None and architecture is not None:
            targets = self._resolve_targets(plan, settings, architecture, provider, errors)

        if errors or plan is None or architecture is None:
            raise ValidationError(errors or ["Validation failed"])

        console.print(f"  [green]+[/green] Validated {request.kind} '{request.name}'")
        return PreparedRun(
            settings=settings,
            provider=provider,
            architecture=architecture,
            plan=plan,
            targets=targets,
        )

    def _already_initialized(self, root: Path) -> list[str]:
        filename = self.config.settings_file
        if not (root / filename).exists():
            return []
        return [
            f"Project is already initialized. Found {filename} file.",
            f"If you want to reinitialize, delete the {filename} file first.",
        ]

    @staticmethod
    def _init_settings(request: InitRequest) -> ProjectSettings | None:
        """Settings the init run will write, or None for unknown enum values."""
        try:
            return ProjectSettings(
                project=ProjectInfo(name=request.name, base_package=request.package_name),
                architecture=ArchitectureSettings(
                    type=request.architecture,
                    framework=request.framework,
                    paradigm=request.paradigm,
                    adapters_as_modules=request.adapters_as_modules,
                ),
            )
        except PydanticValidationError:
            # Already reported by the structural validator.
            return None

    def _plan(
        self, request: Any, settings: ProjectSettings, metadata: ArtifactMetadata | None
    ) -> GenerationPlan | None:
        """Plan the run, or None when the request kind or type is unusable."""
        if isinstance(request, AdapterRequest) and metadata is None:
            return None
        if isinstance(request, InputAdapterRequest):
            try:
                InputAdapterType.from_value(request.adapter_type)
            except ValueError:
                # Already reported by the structural validator.
                return None
        if not isinstance(request, _REQUEST_TYPES):
            return None
        return plan_request(request, settings, metadata)

    def _load_metadata(
        self, provider: TemplateProvider, request: AdapterRequest, errors: list[str]
    ) -> ArtifactMetadata | None:
        try:
            adapter_type = AdapterType.from_value(request.adapter_type)
        except ValueError:
            # Already reported by the structural validator.
            return None
        try:
            metadata = provider.load_artifact_metadata("driven", adapter_type.value)
        except CleanArchError as exc:
            errors.extend(error_messages(exc))
            return None
        check = metadata.validate_metadata()
        errors.extend(check.errors)
        return metadata if check.valid else None

    def _resolve_targets(
        self,
        plan: GenerationPlan,
        settings: ProjectSettings,
        architecture: ArchitectureMetadata,
        provider: TemplateProvider,
        errors: list[str],
    ) -> list[tuple[PlannedFile, Path]]:
        resolver = PathResolver(provider)
        placeholders = {
            "basePackage": settings.base_package,
            "basePackagePath": package_to_path(settings.base_package),
            "buildDescriptor": self.config.build_descriptor,
            "applicationProperties": self.config.application_properties,
        }
        layer_check = ValidationResult.success()
        targets: list[tuple[PlannedFile, Path]] = []
        for planned in plan.files:
            if planned.mode == "settings":
                targets.append((planned, Path(self.config.settings_file)))
                continue
            context = {**placeholders, "packagePath": package_to_path(planned.package)}
            try:
                rel = resolver.resolve_path(architecture, planned.role, planned.name, context)
            except CleanArchError as exc:
                errors.extend(error_messages(exc))
                continue
            if rel.is_absolute() or ".." in rel.parts:
                errors.append(f"Resolved path escapes the project root: {rel}")
                continue
            if planned.mode == "source" and planned.role in SOURCE_ROLES:
                layer_check = layer_check.merge(resolver.validate_layer(rel, architecture))
            targets.append((planned, rel))
        errors.extend(layer_check.errors)
        return targets

    # ------------------------------------------------------------------
    # GENERATING
    # ------------------------------------------------------------------

    def _write(
        self,
        path: Path,
        content: str,
        created_files: list[Path],
        created_dirs: list[Path],
    ) -> None:
        missing: list[Path] = []
        parent = path.parent
        while not parent.exists():
            missing.append(parent)
            parent = parent.parent
        created_dirs.extend(reversed(missing))
        if not path.exists():
            created_files.append(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    def _dependencies_to_add(
        self, descriptor_text: str, prepared: PreparedRun, warnings: list[str]
    ) -> list[Dependency]:
        """Apply overrides and report conflicts.

        An incoming artifact that the descriptor already declares is dropped
        whenever the version strings differ, including versionless
        declarations, so the existing line always wins.
        """
        settings = prepared.settings
        incoming = apply_version_overrides(prepared.plan.dependencies, settings.dependency_overrides)
        declared = parse_declared_dependencies(descriptor_text)

        version_conflicts = detect_version_conflicts(declared, incoming)
        framework_conflicts = detect_framework_conflicts(settings.architecture.framework, incoming)
        conflicts = version_conflicts + framework_conflicts
        if conflicts and self.config.fail_on_dependency_conflicts:
            raise GenerationError("Dependency conflicts detected: " + "; ".join(conflicts))
        if conflicts:
            warnings.extend(conflicts)
            warnings.extend(line for line in suggest_resolution(conflicts) if line.strip())

        declared_versions = {dep.key: dep.version for dep in declared}
        return [
            dep for dep in incoming
            if declared_versions.get(dep.key, dep.version) == dep.version
        ]

    def _apply(
        self,
        root: Path,
        prepared: PreparedRun,
        warnings: list[str],
        created_files: list[Path],
        created_dirs: list[Path],
    ) -> list[GeneratedFile]:
        provider = prepared.provider
        files: list[GeneratedFile] = []

        # Conflicts are decided before anything is written.
        descriptor_deps: dict[Path, list[Dependency]] = {}
        for planned, rel in prepared.targets:
            if planned.mode != "descriptor":
                continue
            path = root / rel
            if not path.is_file():
                warnings.append(f"Build file not found at {rel}; dependencies were not added")
                continue
            descriptor_deps[rel] = self._dependencies_to_add(
                path.read_text(encoding="utf-8"), prepared, warnings
            )

        for planned, rel in prepared.targets:
            path = root / rel
            bindings = dict(prepared.plan.bindings)
            if planned.name:
                bindings["className"] = planned.name
            if planned.package:
                bindings["packageName"] = planned.package

            if planned.mode == "source":
                content = provider.render(planned.template_id, bindings)
                existed = path.exists()
                if existed:
                    warnings.append(f"Overwriting existing file: {rel}")
                self._write(path, content, created_files, created_dirs)
                files.append(GeneratedFile(
                    path=path, content=content, action="overwritten" if existed else "created"
                ))
                console.print(f"  [green]+[/green] {rel}")

            elif planned.mode == "properties":
                rendered = provider.render(planned.template_id, bindings)
                if not path.exists():
                    self._write(path, rendered, created_files, created_dirs)
                    files.append(GeneratedFile(path=path, content=rendered, action="created"))
                    console.print(f"  [green]+[/green] {rel}")
                    continue
                merged, result = merge_yaml_text(path.read_text(encoding="utf-8"), rendered, str(rel))
                warnings.extend(result.conflicts)
                if merged is not None:
                    self._write(path, merged, created_files, created_dirs)
                    files.append(GeneratedFile(path=path, content=merged, action="merged"))
                    console.print(f"  [cyan]~[/cyan] {rel} ({len(result.added_keys)} key(s) added)")

            elif planned.mode == "scaffold":
                if path.exists():
                    warnings.append(f"{rel} already exists and was left unchanged")
                    continue
                content = provider.render(planned.template_id, bindings)
                self._write(path, content, created_files, created_dirs)
                files.append(GeneratedFile(path=path, content=content, action="created"))
                console.print(f"  [green]+[/green] {rel}")

            elif planned.mode == "settings":
                content = prepared.settings.to_yaml()
                self._write(path, content, created_files, created_dirs)
                files.append(GeneratedFile(path=path, content=content, action="created"))
                console.print(f"  [green]+[/green] {rel}")

            elif planned.mode == "descriptor" and rel in descriptor_deps:
                result = merge_dependencies(path.read_text(encoding="utf-8"), descriptor_deps[rel])
                if result.changed:
                    self._write(path, result.content, created_files, created_dirs)
                    files.append(GeneratedFile(path=path, content=result.content, action="merged"))
                    console.print(f"  [cyan]~[/cyan] {rel} ({len(result.added)} dependency(ies) added)")

        return files

    # ------------------------------------------------------------------
    # ROLLING_BACK
    # ------------------------------------------------------------------

    def _rollback(
        self,
        root: Path,
        backup_id: str | None,
        created_files: list[Path],
        created_dirs: list[Path],
    ) -> None:
        """Put the project back the way it was before the run.

        Raises:
            RollbackFailure: Restoring or cleaning up failed.  The backup
                directory is never deleted here.
        """
        location = self.backups.backup_path(root, backup_id) if backup_id else root
        try:
            if backup_id:
                self.backups.restore_backup(root, backup_id)
            for path in reversed(created_files):
                path.unlink(missing_ok=True)
            for directory in reversed(created_dirs):
                if directory.is_dir() and not any(directory.iterdir()):
                    directory.rmdir()
        except (BackupError, OSError) as exc:
            raise RollbackFailure(str(exc), location) from exc
