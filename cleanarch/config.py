"""cleanarch configuration.

Two layers of typed settings, both Pydantic v2 models:

* :class:`GeneratorConfig` tunes the tool itself (where templates live, where
  backups go, whether dependency conflicts are fatal).  It can be saved to and
  loaded from JSON, or built from ``CLEANARCH_*`` environment variables.
* :class:`ProjectSettings` describes the target project and is read from the
  ``.cleanarch.yml`` file at its root.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from cleanarch.errors import ValidationError
from cleanarch.structure.models import ArchitectureType, Framework, Paradigm


_TRUE_VALUES = {"1", "true", "yes", "on"}


class GeneratorConfig(BaseModel):
    """Tool-level configuration shared by the CLI and the orchestrator."""

    template_dir: Optional[Path] = Field(
        default=None, description="Template tree to use; None means the built-in templates"
    )
    state_dir: str = Field(default=".cleanarch")
    backups_subdir: str = Field(default="backups")
    settings_file: str = Field(default=".cleanarch.yml")
    build_descriptor: str = Field(default="build.gradle.kts")
    application_properties: str = Field(default="application.yml")
    fail_on_dependency_conflicts: bool = Field(
        default=False, description="Abort and roll back instead of warning on conflicts"
    )

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def state_path(self, project_root: Path) -> Path:
        """Root of the hidden ``.cleanarch/`` directory inside a project."""
        return Path(project_root) / self.state_dir

    def backups_path(self, project_root: Path) -> Path:
        return self.state_path(project_root) / self.backups_subdir

    def settings_path(self, project_root: Path) -> Path:
        return Path(project_root) / self.settings_file

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "GeneratorConfig":
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a config from environment variables.

        Recognised variables (all optional):
            CLEANARCH_TEMPLATE_DIR, CLEANARCH_STATE_DIR,
            CLEANARCH_FAIL_ON_CONFLICTS.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CLEANARCH_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["CLEANARCH_TEMPLATE_DIR"])
        if os.environ.get("CLEANARCH_STATE_DIR"):
            kwargs["state_dir"] = os.environ["CLEANARCH_STATE_DIR"]
        if os.environ.get("CLEANARCH_FAIL_ON_CONFLICTS"):
            kwargs["fail_on_dependency_conflicts"] = (
                os.environ["CLEANARCH_FAIL_ON_CONFLICTS"].strip().lower() in _TRUE_VALUES
            )
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Project settings (.cleanarch.yml)
# ---------------------------------------------------------------------------


class ProjectInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    base_package: str = Field(..., alias="basePackage")


class ArchitectureSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: ArchitectureType
    framework: Framework = Framework.SPRING
    paradigm: Paradigm = Paradigm.REACTIVE
    adapters_as_modules: bool = Field(default=False, alias="adaptersAsModules")

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, value: Any) -> Any:
        return ArchitectureType.from_value(value) if isinstance(value, str) else value

    @field_validator("framework", mode="before")
    @classmethod
    def _parse_framework(cls, value: Any) -> Any:
        return Framework.from_value(value) if isinstance(value, str) else value

    @field_validator("paradigm", mode="before")
    @classmethod
    def _parse_paradigm(cls, value: Any) -> Any:
        return Paradigm.from_value(value) if isinstance(value, str) else value


class TemplateSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    local_path: Optional[str] = Field(default=None, alias="localPath")


class ProjectSettings(BaseModel):
    """Contents of a project's ``.cleanarch.yml``.

    Example::

        project:
          name: payments
          basePackage: com.acme.payments
        architecture:
          type: hexagonal-single
          framework: spring
          paradigm: reactive
        dependencyOverrides:
          "org.springframework.boot:spring-boot-starter-data-redis": "3.2.0"
    """

    model_config = ConfigDict(populate_by_name=True)

    project: ProjectInfo
    architecture: ArchitectureSettings
    dependency_overrides: dict[str, str] = Field(default_factory=dict, alias="dependencyOverrides")
    templates: TemplateSettings = Field(default_factory=TemplateSettings)

    @field_validator("dependency_overrides", mode="before")
    @classmethod
    def _stringify_versions(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return value

    @property
    def base_package(self) -> str:
        return self.project.base_package

    def template_dir(self, project_root: Path) -> Path | None:
        """Project-local template tree, if ``templates.localPath`` is set."""
        if not self.templates.local_path:
            return None
        path = Path(self.templates.local_path)
        return path if path.is_absolute() else Path(project_root) / path

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    @classmethod
    def from_mapping(cls, data: dict[str, Any], source: str = ".cleanarch.yml") -> "ProjectSettings":
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            messages = []
            for err in exc.errors():
                location = ".".join(str(part) for part in err["loc"])
                messages.append(f"{source}: {location}: {err['msg']}")
            raise ValidationError(messages) from exc

    @classmethod
    def load(cls, project_root: Path, filename: str = ".cleanarch.yml") -> "ProjectSettings":
        """Read and validate ``<project_root>/<filename>``.

        Raises:
            ValidationError: The file is missing, unparsable or invalid.
        """
        path = Path(project_root) / filename
        if not path.is_file():
            raise ValidationError([
                f"Project not initialized: {filename} not found in {project_root}",
                "Run 'cleanarch init' first to initialize the project.",
            ])
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ValidationError(f"Could not parse {filename}: {exc}") from exc
        if not isinstance(data, dict):
            raise ValidationError(f"{filename} must contain a mapping")
        return cls.from_mapping(data, filename)

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if not data.get("templates"):
            data.pop("templates", None)
        if not data.get("dependencyOverrides"):
            data.pop("dependencyOverrides", None)
        return yaml.safe_dump(data, sort_keys=False)

    def save(self, project_root: Path, filename: str = ".cleanarch.yml") -> Path:
        path = Path(project_root) / filename
        path.write_text(self.to_yaml(), encoding="utf-8")
        return path
