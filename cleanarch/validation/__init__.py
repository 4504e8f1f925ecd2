"""Request validation and command-line list parsing."""

from cleanarch.validation.parsing import (
    implementation_package,
    parse_endpoints,
    parse_fields,
    parse_methods,
    resolve_package_name,
)
from cleanarch.validation.validators import (
    is_camel_case,
    is_java_identifier,
    is_pascal_case,
    is_valid_package,
    validate_request,
)

__all__ = [
    "implementation_package",
    "is_camel_case",
    "is_java_identifier",
    "is_pascal_case",
    "is_valid_package",
    "parse_endpoints",
    "parse_fields",
    "parse_methods",
    "resolve_package_name",
    "validate_request",
]
