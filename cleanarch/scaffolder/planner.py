"""Work out which files a generation request produces.

The planner is pure: given a request, the project settings and (for
adapters) the artifact metadata, it returns the list of files to render, the
role each one plays in the architecture, and the template bindings.  Path
resolution and all filesystem work happen later in the orchestrator.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from cleanarch.config import ProjectSettings
from cleanarch.structure.models import (
    AdapterRequest,
    AdapterType,
    ArtifactMetadata,
    Dependency,
    EntityRequest,
    InitRequest,
    InputAdapterRequest,
    InputAdapterType,
    Paradigm,
    UseCaseRequest,
)
from cleanarch.validation.parsing import implementation_package


MAPPER_TEMPLATE = "adapters/driven/common/Mapper.java.j2"
ENTITY_TEMPLATE = "entities/Entity.java.j2"
INPUT_PORT_TEMPLATE = "usecases/InputPort.java.j2"
USE_CASE_TEMPLATE = "usecases/UseCase.java.j2"
BUILD_DESCRIPTOR_TEMPLATE = "project/build.gradle.kts.j2"
APPLICATION_PROPERTIES_TEMPLATE = "project/application.yml.j2"

# Versions written into a freshly initialised build descriptor.
PROJECT_DEFAULTS = {
    "javaVersion": "21",
    "version": "0.0.1-SNAPSHOT",
    "springBootVersion": "3.2.1",
    "quarkusVersion": "3.6.4",
    "micronautVersion": "4.2.1",
}


class PlannedFile(BaseModel):
    """One output of a generation run.

    ``mode`` decides how the orchestrator applies it: ``source`` files are
    written (or overwritten), ``properties`` go through the YAML merge and
    ``descriptor`` receives the plan's dependencies.  ``scaffold`` files are
    written only when missing, and ``settings`` is the project's
    ``.cleanarch.yml``.
    """
    model_config = ConfigDict(frozen=True)

    role: str
    name: str = ""
    template_id: str = ""
    package: str = ""
    mode: Literal["source", "properties", "descriptor", "scaffold", "settings"] = "source"


class GenerationPlan(BaseModel):
    files: list[PlannedFile] = Field(default_factory=list)
    bindings: dict[str, Any] = Field(default_factory=dict)
    dependencies: list[Dependency] = Field(default_factory=list)
    metadata: Optional[ArtifactMetadata] = None

    @property
    def template_ids(self) -> list[str]:
        """Every template the plan renders, in order, without duplicates."""
        seen: list[str] = []
        for planned in self.files:
            if planned.template_id and planned.template_id not in seen:
                seen.append(planned.template_id)
        return seen

    @property
    def source_files(self) -> list[PlannedFile]:
        return [f for f in self.files if f.mode == "source"]


def _common_bindings(request: Any, settings: ProjectSettings) -> dict[str, Any]:
    arch = settings.architecture
    return {
        "projectName": settings.project.name,
        "basePackage": settings.base_package,
        "packageName": request.package_name,
        "architecture": arch.type.value,
        "framework": arch.framework.value,
        "paradigm": arch.paradigm.value,
        "reactive": arch.paradigm == Paradigm.REACTIVE,
    }


def _methods(methods: tuple) -> list[dict[str, Any]]:
    return [m.model_dump(mode="json") for m in methods]


# ---------------------------------------------------------------------------
# Per-kind planners
# ---------------------------------------------------------------------------


def plan_adapter(
    request: AdapterRequest, settings: ProjectSettings, metadata: ArtifactMetadata
) -> GenerationPlan:
    adapter_type = AdapterType.from_value(request.adapter_type)
    class_name = f"{request.name}Adapter"

    bindings = _common_bindings(request, settings)
    bindings.update({
        "adapterName": request.name,
        "className": class_name,
        "entityName": request.entity_name,
        "adapterType": adapter_type.value,
        "methods": _methods(request.methods),
        "hasDataEntity": adapter_type.has_data_entity,
    })

    files = [PlannedFile(role="driven-adapter", name=class_name,
                         template_id=metadata.template, package=request.package_name)]
    if adapter_type.has_data_entity:
        files.append(PlannedFile(
            role="driven-adapter",
            name=f"{request.entity_name}Data",
            template_id=metadata.template.rsplit("/", 1)[0] + "/DataEntity.java.j2",
            package=request.package_name,
        ))
        files.append(PlannedFile(
            role="driven-adapter",
            name=f"{request.entity_name}Mapper",
            template_id=MAPPER_TEMPLATE,
            package=request.package_name,
        ))

    for config_class in metadata.configuration_classes:
        files.append(PlannedFile(
            role="configuration",
            name=config_class.name,
            template_id=config_class.template,
            package=f"{settings.base_package}.{config_class.package_suffix}",
        ))

    if metadata.has_properties:
        files.append(PlannedFile(
            role="application-properties",
            template_id=metadata.properties_template or "",
            mode="properties",
        ))

    if metadata.all_dependencies:
        files.append(PlannedFile(role="build-descriptor", mode="descriptor"))

    return GenerationPlan(
        files=files,
        bindings=bindings,
        dependencies=metadata.all_dependencies,
        metadata=metadata,
    )


def plan_use_case(request: UseCaseRequest, settings: ProjectSettings) -> GenerationPlan:
    impl_package = implementation_package(request.package_name)
    bindings = _common_bindings(request, settings)
    bindings.update({
        "useCaseName": request.name,
        "portName": f"{request.name}UseCase",
        "implName": f"{request.name}UseCaseImpl",
        "portPackage": request.package_name,
        "implPackage": impl_package,
        "methods": _methods(request.methods),
        "generatePort": request.generate_port,
        "generateImpl": request.generate_impl,
    })

    files: list[PlannedFile] = []
    if request.generate_port:
        files.append(PlannedFile(role="use-case-port", name=f"{request.name}UseCase",
                                 template_id=INPUT_PORT_TEMPLATE, package=request.package_name))
    if request.generate_impl:
        files.append(PlannedFile(role="use-case-impl", name=f"{request.name}UseCaseImpl",
                                 template_id=USE_CASE_TEMPLATE, package=impl_package))
    return GenerationPlan(files=files, bindings=bindings)


def plan_entity(request: EntityRequest, settings: ProjectSettings) -> GenerationPlan:
    bindings = _common_bindings(request, settings)
    bindings.update({
        "entityName": request.name,
        "fields": [f.model_dump(mode="json") for f in request.fields],
        "hasId": request.has_id,
        "idType": request.id_type,
    })
    return GenerationPlan(
        files=[PlannedFile(role="entity", name=request.name,
                           template_id=ENTITY_TEMPLATE, package=request.package_name)],
        bindings=bindings,
    )


def plan_input_adapter(request: InputAdapterRequest, settings: ProjectSettings) -> GenerationPlan:
    adapter_type = InputAdapterType.from_value(request.adapter_type)
    suffix = adapter_type.class_suffix
    class_name = request.name if request.name.endswith(suffix) else f"{request.name}{suffix}"

    bindings = _common_bindings(request, settings)
    bindings.update({
        "adapterName": request.name,
        "className": class_name,
        "useCaseName": request.use_case_name,
        "adapterType": adapter_type.value,
        "endpoints": [e.model_dump(mode="json") for e in request.endpoints],
    })
    return GenerationPlan(
        files=[PlannedFile(
            role="driving-adapter",
            name=class_name,
            template_id=f"entrypoints/{adapter_type.value}/EntryPoint.java.j2",
            package=request.package_name,
        )],
        bindings=bindings,
    )


def plan_init(request: InitRequest, settings: ProjectSettings) -> GenerationPlan:
    bindings = _common_bindings(request, settings)
    bindings.update(PROJECT_DEFAULTS)
    return GenerationPlan(
        files=[
            PlannedFile(role="build-descriptor", template_id=BUILD_DESCRIPTOR_TEMPLATE, mode="scaffold"),
            PlannedFile(role="application-properties", template_id=APPLICATION_PROPERTIES_TEMPLATE,
                        mode="properties"),
            PlannedFile(role="settings", mode="settings"),
        ],
        bindings=bindings,
    )


def plan_request(
    request: Any, settings: ProjectSettings, metadata: ArtifactMetadata | None = None
) -> GenerationPlan:
    """Dispatch on the request kind."""
    if isinstance(request, InitRequest):
        return plan_init(request, settings)
    if isinstance(request, AdapterRequest):
        if metadata is None:
            raise ValueError("Adapter plans need artifact metadata")
        return plan_adapter(request, settings, metadata)
    if isinstance(request, UseCaseRequest):
        return plan_use_case(request, settings)
    if isinstance(request, EntityRequest):
        return plan_entity(request, settings)
    if isinstance(request, InputAdapterRequest):
        return plan_input_adapter(request, settings)
    raise TypeError(f"Unsupported request type: {type(request).__name__}")
