"""Role-to-path resolution and architectural layer checks.

Every architecture declares, in its ``structure.yml``, a path template per
logical role (``driven-adapter``, ``entity``, ``build-descriptor``...).  The
resolver fills the ``{placeholder}`` tokens of that template and can verify
that a generated path lands inside a layer the architecture knows about.
"""

from __future__ import annotations

import re
from pathlib import Path, PurePosixPath
from typing import Mapping, Protocol

from cleanarch.errors import UnknownRoleError, ValidationError
from cleanarch.structure.models import ArchitectureMetadata, ArchitectureType, ValidationResult


PLACEHOLDER_PATTERN = re.compile(r"\{([^}]+)}")

# Scanned in this order, but the leftmost occurrence in a path wins.
KNOWN_LAYERS: tuple[str, ...] = ("core", "domain", "application", "infrastructure")

# Roles whose targets are source files and therefore must sit in a layer.
SOURCE_ROLES: frozenset[str] = frozenset({
    "driven-adapter",
    "driving-adapter",
    "entity",
    "use-case-port",
    "use-case-impl",
    "configuration",
})


class ArchitectureLoader(Protocol):
    def load_architecture(self, architecture: str) -> ArchitectureMetadata: ...


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def substitute_placeholders(template: str, context: Mapping[str, str]) -> str:
    """Replace every ``{key}`` token in *template* with ``context[key]``.

    Tokens without a matching key are left in the output verbatim, so
    ``"src/{missing}/{name}"`` with ``{"name": "x"}`` yields
    ``"src/{missing}/x"``.
    """
    if template is None or context is None:
        raise TypeError("template and context are required")

    def _replace(match: re.Match[str]) -> str:
        key = match.group(1)
        value = context.get(key)
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def extract_layer(path: str | Path) -> str | None:
    """Return the leftmost known layer name found among the path segments."""
    segments = [s.lower() for s in PurePosixPath(str(path).replace("\\", "/")).parts]
    for segment in segments:
        if segment in KNOWN_LAYERS:
            return segment
    return None


# ---------------------------------------------------------------------------
# PathResolver
# ---------------------------------------------------------------------------


class PathResolver:
    """Resolve role paths and validate layers for a given architecture.

    *loader* is anything exposing ``load_architecture(architecture_id)``,
    normally the template provider.  Methods also accept an already-loaded
    :class:`ArchitectureMetadata`, in which case the loader is not consulted.
    """

    def __init__(self, loader: ArchitectureLoader) -> None:
        self.loader = loader

    def _metadata(self, architecture: ArchitectureMetadata | ArchitectureType | str) -> ArchitectureMetadata:
        if isinstance(architecture, ArchitectureMetadata):
            return architecture
        if isinstance(architecture, ArchitectureType):
            architecture = architecture.value
        return self.loader.load_architecture(architecture)

    def resolve_path(
        self,
        architecture: ArchitectureMetadata | ArchitectureType | str,
        role: str,
        name: str,
        placeholders: Mapping[str, str],
    ) -> Path:
        """Resolve the relative target path for *role* and artifact *name*.

        Raises:
            UnknownRoleError: The architecture declares no template for *role*.
            ValidationError: The template needs ``{module}`` on a multi-module
                architecture but no module was supplied.
        """
        if not role or name is None or placeholders is None:
            raise TypeError("role, name and placeholders are required")

        metadata = self._metadata(architecture)
        template = metadata.paths.get(role)
        if template is None:
            raise UnknownRoleError(role, metadata.architecture)

        context = dict(placeholders)
        context["name"] = name
        context.setdefault("role", role)

        if "{module}" in template and "module" not in context:
            if metadata.is_multi_module:
                raise ValidationError(
                    f"Architecture '{metadata.architecture}' is multi-module but no module "
                    f"was specified. Available modules: {', '.join(metadata.modules)}"
                )
            template = template.replace("{module}/", "").replace("/{module}", "")

        return Path(substitute_placeholders(template, context))

    def validate_layer(
        self,
        path: str | Path,
        architecture: ArchitectureMetadata | ArchitectureType | str,
    ) -> ValidationResult:
        """Check that *path* belongs to a layer declared by the architecture.

        With no layer-dependency graph declared, every path is accepted.
        """
        metadata = self._metadata(architecture)
        graph = metadata.layer_dependencies
        if graph is None:
            return ValidationResult.success()

        layer = extract_layer(path)
        if layer is None:
            return ValidationResult.failure(f"Could not determine layer from path: {path}")

        if not graph.has_layer(layer):
            return ValidationResult.failure(
                f"Layer '{layer}' is not defined in architecture '{metadata.architecture}'"
            )
        return ValidationResult.success()
