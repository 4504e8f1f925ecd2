"""Parsing of the compact list syntaxes accepted on the command line.

Formats::

    fields     "name:String,email:String,age:Integer?"        (? = nullable)
    methods    "findById:User:id:String|save:User:user:User"
    endpoints  "/users/{id}:GET:findUser:User:id:PATH:String|/users:POST:createUser:User"
"""

from __future__ import annotations

import re

from cleanarch.errors import ValidationError
from cleanarch.structure.models import (
    AdapterType,
    EndpointParameter,
    EndpointSpec,
    EntityField,
    HttpMethod,
    MethodParameter,
    MethodSpec,
    ParameterKind,
)


_PARAM_SEPARATORS = re.compile(r"[:,]")
_ADAPTER_VALUES = {t.value for t in AdapterType} | {"mongo", "postgres", "rest"}

DEFAULT_PACKAGE_SUFFIXES: dict[str, str] = {
    "entity": "domain.model",
    "use-case": "domain.port.in",
    "adapter": "infrastructure.drivenadapters",
    "input-adapter": "infrastructure.entrypoints",
}


def _entries(raw: str | None, separator: str) -> list[str]:
    if not raw or not raw.strip():
        return []
    return [entry.strip() for entry in raw.split(separator) if entry.strip()]


def parse_fields(raw: str | None) -> list[EntityField]:
    """Parse ``name:Type`` pairs separated by commas."""
    fields: list[EntityField] = []
    errors: list[str] = []
    for entry in _entries(raw, ","):
        parts = [p.strip() for p in entry.split(":")]
        if len(parts) != 2 or not all(parts):
            errors.append(f"Invalid field format: {entry}. Expected format: name:type")
            continue
        name, type_name = parts
        nullable = type_name.endswith("?")
        fields.append(EntityField(name=name, type=type_name.rstrip("?"), nullable=nullable))
    if errors:
        raise ValidationError(errors)
    return fields


def parse_methods(raw: str | None) -> list[MethodSpec]:
    """Parse ``name:ReturnType[:param:Type...]`` entries separated by ``|``.

    Parameters may be separated by ``:`` or ``,``; a trailing unpaired token
    is ignored.
    """
    methods: list[MethodSpec] = []
    errors: list[str] = []
    for entry in _entries(raw, "|"):
        parts = [p.strip() for p in entry.split(":", 2)]
        if len(parts) < 2 or not parts[0] or not parts[1]:
            errors.append(
                f"Invalid method format: {entry}. "
                "Expected format: methodName:ReturnType[:param1:Type1,param2:Type2]"
            )
            continue
        tokens = [t.strip() for t in _PARAM_SEPARATORS.split(parts[2])] if len(parts) == 3 else []
        params = tuple(
            MethodParameter(name=tokens[i], type=tokens[i + 1])
            for i in range(0, len(tokens) - 1, 2)
        )
        methods.append(MethodSpec(name=parts[0], return_type=parts[1], parameters=params))
    if errors:
        raise ValidationError(errors)
    return methods


def parse_endpoints(raw: str | None) -> list[EndpointSpec]:
    """Parse ``/path:METHOD:useCaseMethod:ReturnType[:name:KIND:Type...]`` entries."""
    endpoints: list[EndpointSpec] = []
    errors: list[str] = []
    for entry in _entries(raw, "|"):
        parts = [p.strip() for p in entry.split(":")]
        if len(parts) < 4:
            errors.append(
                f"Invalid endpoint format: {entry}. "
                "Expected format: /path:METHOD:useCaseMethod:ReturnType[:param:KIND:Type]"
            )
            continue
        path, method, use_case_method, return_type = parts[:4]
        try:
            method = HttpMethod.from_value(method).value
        except ValueError as exc:
            errors.append(str(exc))
            continue

        params: list[EndpointParameter] = []
        for i in range(4, len(parts) - 2, 3):
            try:
                kind = ParameterKind.from_value(parts[i + 1]).value
            except ValueError as exc:
                errors.append(str(exc))
                continue
            params.append(EndpointParameter(name=parts[i], type=parts[i + 2], kind=kind))

        endpoints.append(
            EndpointSpec(
                path=path,
                method=method,
                use_case_method=use_case_method,
                return_type=return_type,
                parameters=tuple(params),
            )
        )
    if errors:
        raise ValidationError(errors)
    return endpoints


def resolve_package_name(
    kind: str,
    base_package: str,
    explicit: str | None = None,
    adapter_type: str | None = None,
) -> str:
    """Pick the package for a new artifact.

    An explicit package always wins.  Otherwise the package is derived from
    the project's base package: ``<base>.domain.model`` for entities,
    ``<base>.domain.port.in`` for use cases and
    ``<base>.infrastructure.drivenadapters.<type>`` for adapters.
    """
    if explicit and explicit.strip():
        return explicit.strip()
    if not base_package:
        raise ValidationError(
            "Could not determine package name. Provide --package or set "
            "project.basePackage in .cleanarch.yml"
        )
    try:
        suffix = DEFAULT_PACKAGE_SUFFIXES[kind]
    except KeyError:
        raise ValidationError(f"Unknown artifact kind: {kind}") from None

    package = f"{base_package}.{suffix}"
    if adapter_type:
        type_segment = adapter_type.strip().lower()
        if kind == "adapter" and type_segment in _ADAPTER_VALUES:
            type_segment = AdapterType.from_value(type_segment).value
        package = f"{package}.{type_segment.replace('-', '')}"
    return package


def implementation_package(port_package: str) -> str:
    """Package for a use case implementation, derived from its port package."""
    if "domain.port.in" in port_package:
        return port_package.replace("domain.port.in", "application.usecase")
    return f"{port_package}.impl"
