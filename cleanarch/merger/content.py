"""Non-destructive merge of tree-shaped configuration documents.

Used for ``application.yml``: properties an adapter needs are added, while
anything the project already sets is left exactly as it is.  When both sides
define a key with different values the existing value wins and the clash is
reported as a conflict string.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping

import yaml

from cleanarch.errors import MergeError
from cleanarch.structure.models import MergeResult


CONFLICT_MESSAGE = (
    "Property '{path}' already exists with value '{old}', "
    "keeping existing value (new value: '{new}')"
)


def _require_mappings(base: Any, overlay: Any) -> None:
    if base is None:
        raise TypeError("Base document cannot be None")
    if overlay is None:
        raise TypeError("Overlay document cannot be None")


def _merge_into(
    target: dict[str, Any],
    overlay: Mapping[str, Any],
    prefix: str,
    conflicts: list[str],
    added: list[str],
) -> None:
    for key, new_value in overlay.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if key not in target:
            target[key] = copy.deepcopy(new_value)
            added.append(path)
            continue

        old_value = target[key]
        if isinstance(old_value, dict) and isinstance(new_value, Mapping):
            _merge_into(old_value, new_value, path, conflicts, added)
        elif old_value != new_value:
            conflicts.append(CONFLICT_MESSAGE.format(path=path, old=old_value, new=new_value))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> MergeResult:
    """Merge *overlay* into a copy of *base* and report what happened.

    Nested mappings are merged recursively; scalars and lists are compared
    as whole values.  Neither argument is mutated.

    Raises:
        TypeError: Either document is ``None``.
    """
    _require_mappings(base, overlay)
    merged = copy.deepcopy(dict(base))
    conflicts: list[str] = []
    added: list[str] = []
    _merge_into(merged, overlay, "", conflicts, added)
    return MergeResult(merged=merged, conflicts=conflicts, added_keys=added)


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Like :func:`merge` but returns only the merged document."""
    return merge(base, overlay).merged


def has_conflict(base: Mapping[str, Any] | None, overlay: Mapping[str, Any] | None, key: str) -> bool:
    """True iff both documents define *key* with unequal values.

    For two nested mappings this means "some nested key conflicts", so a
    mapping that only adds new sub-keys does not conflict.
    """
    if base is None or overlay is None or key is None:
        return False
    if key not in base or key not in overlay:
        return False

    old_value, new_value = base[key], overlay[key]
    if isinstance(old_value, Mapping) and isinstance(new_value, Mapping):
        return any(has_conflict(old_value, new_value, nested) for nested in new_value)
    return old_value != new_value


# ---------------------------------------------------------------------------
# YAML text helpers
# ---------------------------------------------------------------------------


def load_yaml_mapping(text: str, source: str = "document") -> dict[str, Any]:
    """Parse YAML *text* into a mapping; an empty document becomes ``{}``."""
    try:
        data = yaml.safe_load(text) if text and text.strip() else None
    except yaml.YAMLError as exc:
        raise MergeError(f"Could not parse {source} as YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise MergeError(f"Expected a mapping at the root of {source}, got {type(data).__name__}")
    return data


def dump_yaml(data: Mapping[str, Any]) -> str:
    return yaml.safe_dump(dict(data), sort_keys=False, default_flow_style=False, allow_unicode=True)


def merge_yaml_text(
    existing: str, incoming: str, source: str = "application.yml"
) -> tuple[str | None, MergeResult]:
    """Merge two YAML documents given as text.

    Returns ``(new_text, result)``.  ``new_text`` is ``None`` when the merge
    added nothing, which tells the caller to leave the file untouched.
    """
    base = load_yaml_mapping(existing, source)
    overlay = load_yaml_mapping(incoming, f"{source} template output")
    result = merge(base, overlay)
    if not result.has_changes:
        return None, result
    return dump_yaml(result.merged), result
