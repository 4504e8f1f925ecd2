"""Structural validation of generation requests.

The predicates at the top are pure and reusable.  The ``validate_*``
functions build on them and never stop at the first problem: every error for
a request is collected so the user can fix them all in one pass.
"""

from __future__ import annotations

import re
from pathlib import Path

from cleanarch.structure.models import (
    AdapterRequest,
    AdapterType,
    ArchitectureType,
    EntityRequest,
    Framework,
    InitRequest,
    InputAdapterRequest,
    InputAdapterType,
    MethodSpec,
    Paradigm,
    UseCaseRequest,
    ValidationResult,
)


PASCAL_CASE = re.compile(r"^[A-Z][a-zA-Z0-9]*$")
CAMEL_CASE = re.compile(r"^[a-z][a-zA-Z0-9]*$")
JAVA_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
PACKAGE_SEGMENT = re.compile(r"^[a-z][a-z0-9_]*$")
PROJECT_NAME = re.compile(r"^[A-Za-z][A-Za-z0-9._-]*$")

VALID_ID_TYPES = ("String", "Long", "UUID")

JAVA_KEYWORDS = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "final", "finally", "float", "for", "goto", "if", "implements",
    "import", "instanceof", "int", "interface", "long", "native", "new",
    "package", "private", "protected", "public", "return", "short", "static",
    "strictfp", "super", "switch", "synchronized", "this", "throw", "throws",
    "transient", "try", "void", "volatile", "while", "true", "false", "null",
})


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_pascal_case(name: str) -> bool:
    return bool(name) and bool(PASCAL_CASE.match(name))


def is_camel_case(name: str) -> bool:
    return bool(name) and bool(CAMEL_CASE.match(name))


def is_java_identifier(name: str) -> bool:
    return bool(name) and bool(JAVA_IDENTIFIER.match(name)) and name not in JAVA_KEYWORDS


def package_errors(package_name: str) -> list[str]:
    """Syntax problems with a dotted Java package name (empty list if valid)."""
    if not package_name or not package_name.strip():
        return ["Package name cannot be null or empty"]
    if package_name.startswith(".") or package_name.endswith("."):
        return [f"Package name cannot start or end with a dot: {package_name}"]

    segments = package_name.split(".")
    errors: list[str] = []
    if len(segments) < 2:
        errors.append(f"Package name must contain at least two segments: {package_name}")
    for position, segment in enumerate(segments, start=1):
        if not segment:
            errors.append(f"Package name contains empty segment at position {position}: {package_name}")
        elif not PACKAGE_SEGMENT.match(segment):
            errors.append(f"Invalid package segment '{segment}' in {package_name}")
        elif segment in JAVA_KEYWORDS:
            errors.append(
                f"Package segment cannot be a Java reserved keyword: '{segment}' in {package_name}"
            )
    return errors


def is_valid_package(package_name: str) -> bool:
    return not package_errors(package_name)


def base_package_errors(package_name: str, base_package: str) -> list[str]:
    if not base_package:
        return []
    if package_name == base_package:
        return [f"Package cannot be exactly the base package: {package_name}"]
    if not package_name.startswith(base_package + "."):
        return [f"Package {package_name} does not start with base package {base_package}"]
    return []


# ---------------------------------------------------------------------------
# Shared checks
# ---------------------------------------------------------------------------


def _check_project(project_root: Path, errors: list[str]) -> None:
    if not Path(project_root).is_dir():
        errors.append(f"Project directory does not exist: {project_root}")


def _check_package(package_name: str, base_package: str, errors: list[str]) -> None:
    if not package_name:
        errors.append("Package name is required")
        return
    problems = package_errors(package_name)
    errors.extend(problems)
    if not problems:
        errors.extend(base_package_errors(package_name, base_package))


def _check_adapter_package(package_name: str, errors: list[str]) -> None:
    if ".adapter.out" in package_name:
        errors.append(
            "Invalid package structure: use 'drivenadapters' instead of 'adapter.out'. "
            "Example: com.company.infrastructure.drivenadapters.redis"
        )
    if ".adapter.in" in package_name:
        errors.append(
            "Invalid package structure: use 'entrypoints' instead of 'adapter.in'. "
            "Example: com.company.infrastructure.entrypoints.rest"
        )


def _check_methods(methods: tuple[MethodSpec, ...], errors: list[str]) -> None:
    for method in methods:
        if not method.name:
            errors.append("Method name is required")
        elif not is_java_identifier(method.name):
            errors.append(f"Invalid method name: {method.name}")
        if not method.return_type:
            errors.append(f"Method return type is required for method: {method.name}")
        for param in method.parameters:
            if not param.name:
                errors.append(f"Parameter name is required in method: {method.name}")
            elif not is_java_identifier(param.name):
                errors.append(f"Invalid parameter name: {param.name} in method: {method.name}")
            if not param.type:
                errors.append(f"Parameter type is required for parameter: {param.name}")


# ---------------------------------------------------------------------------
# Per-kind validators
# ---------------------------------------------------------------------------


def validate_entity(request: EntityRequest, base_package: str = "") -> ValidationResult:
    errors: list[str] = []
    _check_project(request.project_root, errors)

    if not request.name:
        errors.append("Entity name is required")
    elif not is_pascal_case(request.name):
        errors.append(
            "Entity name must be a valid Java class name (PascalCase, no spaces or special characters)"
        )
    _check_package(request.package_name, base_package, errors)

    if not request.fields:
        errors.append("Entity must have at least one field")
    for field in request.fields:
        if not field.name:
            errors.append("Field name cannot be empty")
        elif not is_camel_case(field.name):
            errors.append(f"Invalid field name: {field.name}. Must be camelCase")
        if not field.type:
            errors.append(f"Field type cannot be empty for field: {field.name}")

    if request.has_id and request.id_type not in VALID_ID_TYPES:
        errors.append(f"Invalid ID type: {request.id_type}. Valid types: {', '.join(VALID_ID_TYPES)}")

    return ValidationResult.from_messages(errors)


def validate_use_case(request: UseCaseRequest, base_package: str = "") -> ValidationResult:
    errors: list[str] = []
    _check_project(request.project_root, errors)

    if not request.name:
        errors.append("Use case name is required")
    elif not is_java_identifier(request.name):
        errors.append(f"Use case name must be a valid Java identifier: {request.name}")
    _check_package(request.package_name, base_package, errors)

    if not request.methods:
        errors.append("At least one method is required")
    if not request.generate_port and not request.generate_impl:
        errors.append("At least one of generatePort or generateImpl must be true")
    _check_methods(request.methods, errors)

    return ValidationResult.from_messages(errors)


def validate_adapter(request: AdapterRequest, base_package: str = "") -> ValidationResult:
    errors: list[str] = []
    _check_project(request.project_root, errors)

    if not request.name:
        errors.append("Adapter name is required")
    elif not is_java_identifier(request.name):
        errors.append(f"Adapter name must be a valid Java identifier: {request.name}")
    _check_package(request.package_name, base_package, errors)
    _check_adapter_package(request.package_name, errors)

    if not request.adapter_type:
        errors.append("Adapter type is required")
    else:
        try:
            AdapterType.from_value(request.adapter_type)
        except ValueError as exc:
            errors.append(str(exc))

    if not request.entity_name:
        errors.append("Entity name is required")
    elif not is_pascal_case(request.entity_name):
        errors.append(f"Entity name must be PascalCase: {request.entity_name}")
    _check_methods(request.methods, errors)

    return ValidationResult.from_messages(errors)


def validate_input_adapter(request: InputAdapterRequest, base_package: str = "") -> ValidationResult:
    errors: list[str] = []
    _check_project(request.project_root, errors)

    if not request.name:
        errors.append("Adapter name is required")
    elif not is_java_identifier(request.name):
        errors.append(f"Adapter name must be a valid Java identifier: {request.name}")
    _check_package(request.package_name, base_package, errors)
    _check_adapter_package(request.package_name, errors)

    if not request.adapter_type:
        errors.append("Adapter type is required")
    else:
        try:
            InputAdapterType.from_value(request.adapter_type)
        except ValueError as exc:
            errors.append(str(exc))

    if not request.use_case_name:
        errors.append("Use case name is required")
    if not request.endpoints:
        errors.append("At least one endpoint is required")

    for endpoint in request.endpoints:
        if not endpoint.path:
            errors.append("Endpoint path is required")
        elif not endpoint.path.startswith("/"):
            errors.append(f"Endpoint path must start with '/': {endpoint.path}")
        if not endpoint.method:
            errors.append(f"HTTP method is required for endpoint: {endpoint.path}")
        if not endpoint.use_case_method:
            errors.append(f"Use case method is required for endpoint: {endpoint.path}")
        if not endpoint.return_type:
            errors.append(f"Return type is required for endpoint: {endpoint.path}")
        for param in endpoint.parameters:
            if not param.name:
                errors.append(f"Parameter name is required in endpoint: {endpoint.path}")
            if not param.type:
                errors.append(f"Parameter type is required for parameter: {param.name}")

    return ValidationResult.from_messages(errors)


def validate_init(request: InitRequest) -> ValidationResult:
    """Check the project name, the base package and the named architecture,
    framework and paradigm.
    """
    errors: list[str] = []
    _check_project(request.project_root, errors)

    if not request.name:
        errors.append("Project name is required")
    elif not PROJECT_NAME.match(request.name):
        errors.append(
            f"Invalid project name: {request.name}. Use letters, digits, '.', '-' or '_'"
        )

    if not request.package_name:
        errors.append("Base package cannot be empty")
    else:
        problems = package_errors(request.package_name)
        errors.extend(problems)
        if problems:
            errors.append("Package name must follow Java naming conventions (e.g., com.company.service)")

    for parse, value in (
        (ArchitectureType.from_value, request.architecture),
        (Framework.from_value, request.framework),
        (Paradigm.from_value, request.paradigm),
    ):
        try:
            parse(value)
        except ValueError as exc:
            errors.append(str(exc))

    return ValidationResult.from_messages(errors)


def validate_request(request, base_package: str = "") -> ValidationResult:
    """Dispatch to the validator for the request's kind."""
    if isinstance(request, AdapterRequest):
        return validate_adapter(request, base_package)
    if isinstance(request, UseCaseRequest):
        return validate_use_case(request, base_package)
    if isinstance(request, EntityRequest):
        return validate_entity(request, base_package)
    if isinstance(request, InputAdapterRequest):
        return validate_input_adapter(request, base_package)
    if isinstance(request, InitRequest):
        return validate_init(request)
    return ValidationResult.failure(f"Unsupported request type: {type(request).__name__}")
