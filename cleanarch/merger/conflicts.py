"""Dependency conflict detection and version overrides.

Two kinds of conflict are reported:

* **Version conflicts**: the project and the incoming artifact declare the
  same ``group:artifact`` with different version strings.  Versions are
  compared as plain strings; ``3.1`` and ``3.1.0`` differ.  A declaration
  without a version (managed by a BOM or platform) never conflicts.
* **Framework conflicts**: an incoming dependency belongs to a group that is
  known to clash with the project's framework (Quarkus libraries in a Spring
  project, and so on).

Conflicts are advisory; the orchestrator turns them into warnings unless the
configuration makes them fatal.
"""

from __future__ import annotations

from typing import Mapping, Sequence

from cleanarch.structure.models import Dependency, Framework


# Group prefix -> native alternatives to suggest, per target framework.
INCOMPATIBLE_GROUPS: dict[Framework, dict[str, list[str]]] = {
    Framework.SPRING: {
        "javax.enterprise": ["spring-context", "spring-boot-starter"],
        "io.quarkus": ["spring-boot-starter"],
    },
    Framework.QUARKUS: {
        "org.springframework": ["quarkus-arc", "quarkus-resteasy"],
        "org.springframework.boot": ["quarkus-arc", "quarkus-resteasy"],
    },
    Framework.MICRONAUT: {
        "org.springframework": ["micronaut-inject"],
        "io.quarkus": ["micronaut-inject"],
    },
}


def _matching_signature(group: str, signatures: Mapping[str, list[str]]) -> list[str] | None:
    # Most specific prefix first so org.springframework.boot beats org.springframework.
    for prefix in sorted(signatures, key=len, reverse=True):
        if group == prefix or group.startswith(prefix + "."):
            return signatures[prefix]
    return None


# ---------------------------------------------------------------------------
# Detection
# ---------------------------------------------------------------------------


def detect_version_conflicts(
    existing: Sequence[Dependency], incoming: Sequence[Dependency]
) -> list[str]:
    """One message per incoming dependency whose version differs from the existing one."""
    if existing is None or incoming is None:
        raise TypeError("Dependency lists cannot be None")

    existing_versions = {dep.key: dep.version for dep in existing}
    conflicts: list[str] = []
    for dep in incoming:
        current = existing_versions.get(dep.key)
        # Versionless declarations are platform managed and never conflict.
        if not current or not dep.version:
            continue
        if current != dep.version:
            conflicts.append(
                f"Version conflict for {dep.key}: existing version {current}, "
                f"new version {dep.version}"
            )
    return conflicts


def detect_framework_conflicts(
    framework: Framework | str, incoming: Sequence[Dependency]
) -> list[str]:
    """Flag incoming dependencies from groups that clash with *framework*.

    Unknown framework names have no rules and produce no conflicts.
    """
    if framework is None or incoming is None:
        raise TypeError("Framework and dependencies are required")

    try:
        target = framework if isinstance(framework, Framework) else Framework.from_value(framework)
    except ValueError:
        return []

    signatures = INCOMPATIBLE_GROUPS.get(target, {})
    conflicts: list[str] = []
    for dep in incoming:
        alternatives = _matching_signature(dep.group, signatures)
        if alternatives is None:
            continue
        conflicts.append(
            f"Framework conflict: {dep.key} may be incompatible with {target.value} framework. "
            f"Consider using {', '.join(alternatives)} alternatives."
        )
    return conflicts


def suggest_resolution(conflicts: Sequence[str]) -> list[str]:
    """Generic remediation advice for a list of conflict messages."""
    if conflicts is None:
        raise TypeError("Conflicts cannot be None")
    if not conflicts:
        return []

    suggestions = [
        "Dependency conflicts detected. Consider the following resolutions:",
        "",
    ]
    if any("Version conflict" in c for c in conflicts):
        suggestions += [
            "- For version conflicts:",
            "  - Use dependency management to enforce a single version",
            "  - Add a version override in .cleanarch.yml under 'dependencyOverrides'",
        ]
    if any("Framework conflict" in c for c in conflicts):
        suggestions += [
            "- For framework conflicts:",
            "  - Review adapter dependencies for framework compatibility",
            "  - Use framework-specific adapter variants when available",
            "  - Consult framework documentation for compatible libraries",
        ]
    suggestions += [
        "",
        "To override dependency versions, add to .cleanarch.yml:",
        "dependencyOverrides:",
        "  'group:artifact': 'version'",
    ]
    return suggestions


# ---------------------------------------------------------------------------
# Overrides
# ---------------------------------------------------------------------------


def get_version_override(dep: Dependency, overrides: Mapping[str, str] | None) -> str | None:
    if dep is None:
        raise TypeError("Dependency cannot be None")
    if not overrides:
        return None
    value = overrides.get(dep.key)
    return None if value is None else str(value)


def apply_version_overrides(
    dependencies: Sequence[Dependency], overrides: Mapping[str, str] | None
) -> list[Dependency]:
    """Return a new list with overridden versions substituted, keyed by ``group:artifact``."""
    if dependencies is None:
        raise TypeError("Dependencies cannot be None")
    if not overrides:
        return list(dependencies)

    result: list[Dependency] = []
    for dep in dependencies:
        version = get_version_override(dep, overrides)
        result.append(dep if version is None else dep.model_copy(update={"version": version}))
    return result
