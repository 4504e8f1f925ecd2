"""Architecture structure: data models, role paths and layer checks."""

from cleanarch.structure.models import (
    AdapterRequest,
    AdapterType,
    ArchitectureMetadata,
    ArchitectureType,
    ArtifactMetadata,
    BackupManifest,
    ConfigurationClass,
    Dependency,
    EntityRequest,
    Framework,
    GeneratedFile,
    GenerationRequest,
    GenerationResult,
    InputAdapterRequest,
    LayerDependencies,
    MergeResult,
    Paradigm,
    UseCaseRequest,
    ValidationResult,
)
from cleanarch.structure.paths import PathResolver, substitute_placeholders

__all__ = [
    "AdapterRequest",
    "AdapterType",
    "ArchitectureMetadata",
    "ArchitectureType",
    "ArtifactMetadata",
    "BackupManifest",
    "ConfigurationClass",
    "Dependency",
    "EntityRequest",
    "Framework",
    "GeneratedFile",
    "GenerationRequest",
    "GenerationResult",
    "InputAdapterRequest",
    "LayerDependencies",
    "MergeResult",
    "Paradigm",
    "PathResolver",
    "UseCaseRequest",
    "ValidationResult",
]
