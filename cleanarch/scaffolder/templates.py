"""Jinja2 template provider for cleanarch.

Loads templates and metadata from a template tree laid out as::

    architectures/<architecture>/structure.yml
    adapters/<role>/<type>/metadata.yml
    adapters/<role>/<type>/*.j2
    entities/*.j2, usecases/*.j2, entrypoints/<type>/*.j2

The built-in tree ships in ``cleanarch/scaffolder/templates/``; a project may
point at its own tree via ``templates.localPath`` in ``.cleanarch.yml``.
The orchestrator only relies on the narrow :class:`TemplateProvider`
protocol, so another engine can be substituted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Protocol

import jinja2
import yaml
from jinja2 import Environment, FileSystemLoader, select_autoescape

from cleanarch.errors import (
    TemplateNotFoundError,
    TemplateSyntaxError,
    ValidationError,
)
from cleanarch.structure.models import (
    ArchitectureMetadata,
    ArtifactMetadata,
    ConfigurationClass,
    Dependency,
    LayerDependencies,
    ValidationResult,
)
from cleanarch.utils import (
    load_yaml,
    package_to_path,
    to_camel_case,
    to_kebab_case,
    to_pascal_case,
    to_snake_case,
)


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


class TemplateProvider(Protocol):
    """What the orchestrator needs from a template engine."""

    def exists(self, template_id: str) -> bool: ...

    def validate(self, template_id: str) -> ValidationResult: ...

    def render(self, template_id: str, bindings: Mapping[str, Any]) -> str: ...

    def load_architecture(self, architecture: str) -> ArchitectureMetadata: ...

    def load_artifact_metadata(self, role: str, artifact_type: str) -> ArtifactMetadata: ...


# ---------------------------------------------------------------------------
# Metadata parsing
# ---------------------------------------------------------------------------


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def parse_dependency(entry: Any, default_scope: str) -> Dependency:
    """Accept ``"g:a:v"`` strings or mappings with ``group``/``groupId`` keys."""
    if isinstance(entry, str):
        parts = entry.split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid dependency coordinate: {entry}")
        return Dependency(
            group=parts[0],
            artifact=parts[1],
            version=parts[2] if len(parts) > 2 else "",
            scope=default_scope,
        )
    if not isinstance(entry, Mapping):
        raise ValueError(f"Dependency must be a mapping or a coordinate string, got {entry!r}")

    group = _first(entry, "group", "groupId")
    artifact = _first(entry, "artifact", "artifactId")
    if group is None:
        raise ValueError("Required field 'group' or 'groupId' is missing")
    if artifact is None:
        raise ValueError("Required field 'artifact' or 'artifactId' is missing")
    return Dependency(
        group=str(group),
        artifact=str(artifact),
        version=str(entry.get("version") or ""),
        scope=str(entry.get("scope") or default_scope),
    )


def parse_dependency_list(raw: Any, default_scope: str) -> list[Dependency]:
    """Parse a flat list or the nested ``{gradle: [...]}`` form."""
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        raw = raw.get("gradle") or []
    if not isinstance(raw, list):
        raise ValueError("Dependencies must be a list")
    return [parse_dependency(entry, default_scope) for entry in raw]


def parse_artifact_metadata(data: Mapping[str, Any], role: str, base_dir: str) -> ArtifactMetadata:
    """Build :class:`ArtifactMetadata` from a parsed ``metadata.yml``.

    Template references in the file are relative to the adapter directory;
    they are returned as template ids relative to the template root.
    """
    name = data.get("name")
    artifact_type = data.get("type")
    if not name or not isinstance(name, str):
        raise ValueError("Required field 'name' is missing")
    if not artifact_type or not isinstance(artifact_type, str):
        raise ValueError("Required field 'type' is missing")

    properties = data.get("applicationPropertiesTemplate")
    if properties is not None and not isinstance(properties, str):
        raise ValueError("Field 'applicationPropertiesTemplate' must be a string")

    config_classes = []
    for entry in data.get("configurationClasses") or []:
        missing = [k for k in ("name", "packagePath", "templatePath") if not entry.get(k)]
        if missing:
            raise ValueError(f"Configuration class is missing: {', '.join(missing)}")
        config_classes.append(
            ConfigurationClass(
                name=entry["name"],
                package_suffix=entry["packagePath"],
                template=f"{base_dir}/{entry['templatePath']}",
            )
        )

    return ArtifactMetadata(
        name=name,
        type=artifact_type,
        role=role,
        description=str(data.get("description") or ""),
        template=f"{base_dir}/{data.get('template') or 'Adapter.java.j2'}",
        dependencies=parse_dependency_list(data.get("dependencies"), "compile"),
        test_dependencies=parse_dependency_list(data.get("testDependencies"), "test"),
        properties_template=f"{base_dir}/{properties}" if properties else None,
        configuration_classes=config_classes,
    )


def parse_architecture_metadata(data: Mapping[str, Any], architecture: str) -> ArchitectureMetadata:
    paths = _first(data, "paths", "adapterPaths")
    if not isinstance(paths, Mapping) or not paths:
        raise ValueError("structure.yml must declare a non-empty 'paths' mapping")

    layers = data.get("layerDependencies")
    layer_deps = None
    if layers:
        layer_deps = LayerDependencies(
            allowed={str(k): [str(v) for v in (vals or [])] for k, vals in layers.items()}
        )

    return ArchitectureMetadata(
        architecture=str(data.get("architecture") or architecture),
        paths={str(k): str(v) for k, v in paths.items()},
        layer_dependencies=layer_deps,
        modules=[str(m) for m in data.get("modules") or []],
    )


# ---------------------------------------------------------------------------
# JinjaTemplateProvider
# ---------------------------------------------------------------------------


class JinjaTemplateProvider:
    """Renders Jinja2 templates and loads metadata from a template tree.

    Template ids are POSIX paths relative to the template root, e.g.
    ``"adapters/driven/redis/Adapter.java.j2"``.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pascal_case"] = to_pascal_case
        self.env.filters["camel_case"] = to_camel_case
        self.env.filters["snake_case"] = to_snake_case
        self.env.filters["kebab_case"] = to_kebab_case
        self.env.filters["package_path"] = package_to_path

    # -- Templates ---------------------------------------------------------

    def exists(self, template_id: str) -> bool:
        return (self.template_dir / template_id).is_file()

    def validate(self, template_id: str) -> ValidationResult:
        """Check that *template_id* exists and parses."""
        if not self.exists(template_id):
            return ValidationResult.failure(str(TemplateNotFoundError(template_id)))
        source = (self.template_dir / template_id).read_text(encoding="utf-8")
        try:
            self.env.parse(source, name=template_id)
        except jinja2.TemplateSyntaxError as exc:
            return ValidationResult.failure(
                str(TemplateSyntaxError(template_id, exc.message or str(exc), exc.lineno))
            )
        return ValidationResult.success()

    def render(self, template_id: str, bindings: Mapping[str, Any]) -> str:
        """Render *template_id* with *bindings* as the template context.

        Raises:
            TemplateNotFoundError: The template does not exist.
            TemplateSyntaxError: The template does not parse.
        """
        try:
            template = self.env.get_template(template_id)
        except jinja2.TemplateNotFound as exc:
            raise TemplateNotFoundError(template_id) from exc
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateSyntaxError(template_id, exc.message or str(exc), exc.lineno) from exc
        return template.render(**bindings)

    # -- Metadata ----------------------------------------------------------

    def _load_yaml(self, template_id: str) -> dict[str, Any]:
        path = self.template_dir / template_id
        if not path.is_file():
            raise TemplateNotFoundError(template_id)
        try:
            return load_yaml(path)
        except yaml.YAMLError as exc:
            raise ValidationError(f"Invalid YAML in {template_id}: {exc}") from exc
        except ValueError as exc:
            raise ValidationError(f"{template_id} must contain a mapping") from exc

    def load_architecture(self, architecture: str) -> ArchitectureMetadata:
        template_id = f"architectures/{architecture}/structure.yml"
        data = self._load_yaml(template_id)
        try:
            return parse_architecture_metadata(data, architecture)
        except ValueError as exc:
            raise ValidationError(f"Invalid {template_id}: {exc}") from exc

    def load_artifact_metadata(self, role: str, artifact_type: str) -> ArtifactMetadata:
        base_dir = f"adapters/{role}/{artifact_type}"
        template_id = f"{base_dir}/metadata.yml"
        data = self._load_yaml(template_id)
        try:
            return parse_artifact_metadata(data, role, base_dir)
        except ValueError as exc:
            raise ValidationError(f"Invalid {template_id}: {exc}") from exc

    def list_templates(self, prefix: str = "") -> list[str]:
        """Every ``*.j2`` template id under *prefix*, sorted."""
        base = self.template_dir / prefix
        if not base.is_dir():
            return []
        return sorted(
            p.relative_to(self.template_dir).as_posix() for p in base.rglob("*.j2")
        )

    def validate_all(self) -> ValidationResult:
        """Syntax-check every template in the tree."""
        result = ValidationResult.success()
        for template_id in self.list_templates():
            result = result.merge(self.validate(template_id))
        return result
