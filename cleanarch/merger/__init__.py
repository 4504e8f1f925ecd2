"""Merging generated output into existing project files.

Quick usage::

    from cleanarch.merger import merge, merge_dependencies

    result = merge(existing_yaml, adapter_properties)
    descriptor = merge_dependencies(build_text, metadata.all_dependencies)
    if descriptor.changed:
        build_file.write_text(descriptor.content)
"""

from cleanarch.merger.conflicts import (
    apply_version_overrides,
    detect_framework_conflicts,
    detect_version_conflicts,
    get_version_override,
    suggest_resolution,
)
from cleanarch.merger.content import deep_merge, has_conflict, merge, merge_yaml_text
from cleanarch.merger.descriptor import (
    DescriptorMergeResult,
    merge_dependencies,
    parse_declared_dependencies,
)

__all__ = [
    "DescriptorMergeResult",
    "apply_version_overrides",
    "deep_merge",
    "detect_framework_conflicts",
    "detect_version_conflicts",
    "get_version_override",
    "has_conflict",
    "merge",
    "merge_dependencies",
    "merge_yaml_text",
    "parse_declared_dependencies",
    "suggest_resolution",
]
