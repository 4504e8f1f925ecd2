"""Pydantic v2 models for the cleanarch scaffolder.

Defines the closed enumerations (architecture, framework, adapter kinds),
the template metadata loaded from ``structure.yml`` / ``metadata.yml``, the
immutable generation requests built by the CLI, and the result objects
returned by validators, mergers and the orchestrator.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

def _lookup(enum_cls: type[Enum], value: str, label: str, aliases: dict[str, str] | None = None) -> Any:
    """Resolve *value* to a member of *enum_cls*, case-insensitively.

    Raises ``ValueError`` listing the valid values so callers can surface the
    message as a validation error.
    """
    normalized = (value or "").strip().lower()
    normalized = (aliases or {}).get(normalized, normalized)
    for member in enum_cls:
        if member.value.lower() == normalized:
            return member
    valid = ", ".join(m.value for m in enum_cls)
    raise ValueError(f"Unknown {label}: '{value}'. Valid values: {valid}")


class ArchitectureType(str, Enum):
    """Named layering schemes a project can be initialised with."""
    HEXAGONAL_SINGLE = "hexagonal-single"
    HEXAGONAL_MULTI = "hexagonal-multi"
    HEXAGONAL_MULTI_GRANULAR = "hexagonal-multi-granular"
    ONION_SINGLE = "onion-single"
    ONION_MULTI = "onion-multi"

    @classmethod
    def from_value(cls, value: str) -> "ArchitectureType":
        return _lookup(cls, value, "architecture type")

    @property
    def is_multi_module(self) -> bool:
        return self in (
            ArchitectureType.HEXAGONAL_MULTI,
            ArchitectureType.HEXAGONAL_MULTI_GRANULAR,
            ArchitectureType.ONION_MULTI,
        )


class Framework(str, Enum):
    """Target application framework of the scaffolded project."""
    SPRING = "spring"
    QUARKUS = "quarkus"
    MICRONAUT = "micronaut"

    @classmethod
    def from_value(cls, value: str) -> "Framework":
        return _lookup(cls, value, "framework")


class Paradigm(str, Enum):
    """Reactive (non-blocking) or imperative (blocking) code style."""
    REACTIVE = "reactive"
    IMPERATIVE = "imperative"

    @classmethod
    def from_value(cls, value: str) -> "Paradigm":
        return _lookup(cls, value, "paradigm")


class AdapterType(str, Enum):
    """Driven (output) adapter technologies."""
    REDIS = "redis"
    MONGODB = "mongodb"
    POSTGRESQL = "postgresql"
    REST_CLIENT = "rest-client"
    KAFKA = "kafka"

    @classmethod
    def from_value(cls, value: str) -> "AdapterType":
        aliases = {"mongo": "mongodb", "postgres": "postgresql", "rest": "rest-client"}
        return _lookup(cls, value, "adapter type", aliases)

    @property
    def has_data_entity(self) -> bool:
        """Persistence adapters also get a data entity and a mapper."""
        return self in (AdapterType.REDIS, AdapterType.MONGODB, AdapterType.POSTGRESQL)


class InputAdapterType(str, Enum):
    """Driving (entry-point) adapter technologies."""
    REST = "rest"
    GRAPHQL = "graphql"
    GRPC = "grpc"
    WEBSOCKET = "websocket"

    @classmethod
    def from_value(cls, value: str) -> "InputAdapterType":
        return _lookup(cls, value, "input adapter type")

    @property
    def class_suffix(self) -> str:
        return {
            InputAdapterType.REST: "Controller",
            InputAdapterType.GRAPHQL: "Resolver",
            InputAdapterType.GRPC: "Service",
            InputAdapterType.WEBSOCKET: "Handler",
        }[self]


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @classmethod
    def from_value(cls, value: str) -> "HttpMethod":
        return _lookup(cls, value, "HTTP method")


class ParameterKind(str, Enum):
    """Where an endpoint parameter is bound from."""
    PATH = "PATH"
    BODY = "BODY"
    QUERY = "QUERY"

    @classmethod
    def from_value(cls, value: str) -> "ParameterKind":
        return _lookup(cls, value, "parameter kind")


# ---------------------------------------------------------------------------
# Validation & merge results
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Outcome of one or more validation checks.

    Results are aggregated with :meth:`merge`; nothing short-circuits, so a
    combined result lists every error found across all sub-checks in order.
    """
    valid: bool = Field(default=True)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def success(cls, warnings: list[str] | None = None) -> "ValidationResult":
        return cls(valid=True, warnings=list(warnings or []))

    @classmethod
    def failure(
        cls, errors: list[str] | str, warnings: list[str] | None = None
    ) -> "ValidationResult":
        if isinstance(errors, str):
            errors = [errors]
        return cls(valid=False, errors=list(errors), warnings=list(warnings or []))

    @classmethod
    def from_messages(
        cls, errors: list[str], warnings: list[str] | None = None
    ) -> "ValidationResult":
        """Build a result that is valid iff *errors* is empty."""
        return cls(valid=not errors, errors=list(errors), warnings=list(warnings or []))

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            valid=self.valid and other.valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )


class MergeResult(BaseModel):
    """Result of merging an overlay document into an existing one."""
    merged: dict[str, Any] = Field(default_factory=dict)
    conflicts: list[str] = Field(default_factory=list)
    added_keys: list[str] = Field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)

    @property
    def has_changes(self) -> bool:
        return bool(self.added_keys)


# ---------------------------------------------------------------------------
# Template metadata
# ---------------------------------------------------------------------------

class Dependency(BaseModel):
    """A build dependency ``group:artifact:version`` with a logical scope.

    Identity for duplicate/conflict checks is ``(group, artifact)``; the full
    coordinate is what gets matched against raw descriptor text.
    """
    model_config = ConfigDict(frozen=True)

    group: str
    artifact: str
    version: str = ""
    scope: str = "compile"

    @classmethod
    def compile(cls, group: str, artifact: str, version: str = "") -> "Dependency":
        return cls(group=group, artifact=artifact, version=version, scope="compile")

    @classmethod
    def test(cls, group: str, artifact: str, version: str = "") -> "Dependency":
        return cls(group=group, artifact=artifact, version=version, scope="test")

    @property
    def key(self) -> str:
        return f"{self.group}:{self.artifact}"

    @property
    def coordinate(self) -> str:
        if not self.version:
            return self.key
        return f"{self.key}:{self.version}"

    @property
    def is_test(self) -> bool:
        return self.scope.lower() == "test"


class ConfigurationClass(BaseModel):
    """A secondary configuration class an adapter ships with."""
    model_config = ConfigDict(frozen=True)

    name: str
    package_suffix: str
    template: str

    def qualified_name(self, base_package: str) -> str:
        return f"{base_package}.{self.package_suffix}.{self.name}"


class ArtifactMetadata(BaseModel):
    """Adapter metadata loaded from an adapter's ``metadata.yml``."""
    name: str
    type: str
    role: Literal["driven", "driving"] = "driven"
    description: str = ""
    template: str = "Adapter.java.j2"
    dependencies: list[Dependency] = Field(default_factory=list)
    test_dependencies: list[Dependency] = Field(default_factory=list)
    properties_template: Optional[str] = None
    configuration_classes: list[ConfigurationClass] = Field(default_factory=list)

    @property
    def has_properties(self) -> bool:
        return bool(self.properties_template and self.properties_template.strip())

    @property
    def has_test_dependencies(self) -> bool:
        return bool(self.test_dependencies)

    @property
    def all_dependencies(self) -> list[Dependency]:
        return [*self.dependencies, *self.test_dependencies]

    def validate_metadata(self) -> ValidationResult:
        errors: list[str] = []
        if not self.name.strip():
            errors.append("Adapter name cannot be empty")
        if not self.type.strip():
            errors.append("Adapter type cannot be empty")
        return ValidationResult.from_messages(errors)


class LayerDependencies(BaseModel):
    """Which architectural layers may depend on which others."""
    allowed: dict[str, list[str]] = Field(default_factory=dict)

    def has_layer(self, layer: str) -> bool:
        return layer in self.allowed

    def allowed_for(self, layer: str) -> list[str]:
        return list(self.allowed.get(layer, []))

    def can_depend_on(self, from_layer: str, to_layer: str) -> bool:
        return to_layer in self.allowed.get(from_layer, [])

    def validate_dependency(self, from_layer: str, to_layer: str) -> ValidationResult:
        if self.can_depend_on(from_layer, to_layer):
            return ValidationResult.success()
        return ValidationResult.failure(
            f"Layer '{from_layer}' cannot depend on layer '{to_layer}'. "
            f"Allowed dependencies: {self.allowed_for(from_layer)}"
        )


class ArchitectureMetadata(BaseModel):
    """Structure of an architecture, loaded from its ``structure.yml``."""
    architecture: str
    paths: dict[str, str] = Field(..., description="Role -> path template with {placeholder} tokens")
    layer_dependencies: Optional[LayerDependencies] = None
    modules: list[str] = Field(default_factory=list)

    @property
    def has_layer_dependencies(self) -> bool:
        return self.layer_dependencies is not None

    @property
    def is_multi_module(self) -> bool:
        return bool(self.modules)

    def validate_metadata(self) -> ValidationResult:
        if not self.paths:
            return ValidationResult.failure("Architecture paths cannot be empty")
        return ValidationResult.success()


# ---------------------------------------------------------------------------
# Request building blocks
# ---------------------------------------------------------------------------

class MethodParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str


class MethodSpec(BaseModel):
    """A method on a use case port or an adapter."""
    model_config = ConfigDict(frozen=True)

    name: str
    return_type: str
    parameters: tuple[MethodParameter, ...] = ()


class EntityField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    nullable: bool = False


class EndpointParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    kind: str = ParameterKind.PATH.value


class EndpointSpec(BaseModel):
    """One entry-point operation mapped onto a use case method."""
    model_config = ConfigDict(frozen=True)

    path: str
    method: str
    use_case_method: str
    return_type: str
    parameters: tuple[EndpointParameter, ...] = ()


# ---------------------------------------------------------------------------
# Generation requests
# ---------------------------------------------------------------------------

class _RequestBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_root: Path
    name: str = ""
    package_name: str = ""


class AdapterRequest(_RequestBase):
    """Generate a driven adapter (plus data entity/mapper for persistence types)."""
    kind: Literal["adapter"] = "adapter"
    entity_name: str = ""
    adapter_type: str = AdapterType.REDIS.value
    methods: tuple[MethodSpec, ...] = ()


class UseCaseRequest(_RequestBase):
    """Generate a use case input port and/or its implementation."""
    kind: Literal["use-case"] = "use-case"
    methods: tuple[MethodSpec, ...] = ()
    generate_port: bool = True
    generate_impl: bool = True


class EntityRequest(_RequestBase):
    """Generate a domain entity."""
    kind: Literal["entity"] = "entity"
    fields: tuple[EntityField, ...] = ()
    has_id: bool = True
    id_type: str = "String"


class InputAdapterRequest(_RequestBase):
    """Generate a driving adapter (controller, resolver, handler...)."""
    kind: Literal["input-adapter"] = "input-adapter"
    use_case_name: str = ""
    adapter_type: str = InputAdapterType.REST.value
    endpoints: tuple[EndpointSpec, ...] = ()


class InitRequest(_RequestBase):
    """Initialise a project.

    ``name`` is the project name and ``package_name`` its base package.  The
    run writes ``.cleanarch.yml`` plus a base build descriptor and
    ``application.yml`` at the paths the architecture declares.
    """
    kind: Literal["init"] = "init"
    architecture: str = ArchitectureType.HEXAGONAL_SINGLE.value
    framework: str = Framework.SPRING.value
    paradigm: str = Paradigm.REACTIVE.value
    adapters_as_modules: bool = False


GenerationRequest = Annotated[
    Union[AdapterRequest, UseCaseRequest, EntityRequest, InputAdapterRequest, InitRequest],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class GeneratedFile(BaseModel):
    """A file written or merged by a generation run."""
    model_config = ConfigDict(frozen=True)

    path: Path
    content: str
    action: Literal["created", "overwritten", "merged"] = "created"


class GenerationResult(BaseModel):
    """Outbound result of an orchestrator run."""
    success: bool
    files: list[GeneratedFile] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    backup_id: Optional[str] = None

    @classmethod
    def ok(
        cls, files: list[GeneratedFile], warnings: list[str] | None = None
    ) -> "GenerationResult":
        return cls(success=True, files=list(files), warnings=list(warnings or []))

    @classmethod
    def failed(
        cls,
        errors: list[str],
        warnings: list[str] | None = None,
        backup_id: str | None = None,
    ) -> "GenerationResult":
        return cls(
            success=False,
            errors=list(errors),
            warnings=list(warnings or []),
            backup_id=backup_id,
        )


class BackupManifest(BaseModel):
    """Record of the files captured under a backup id."""
    backup_id: str
    files: list[str] = Field(default_factory=list)
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
