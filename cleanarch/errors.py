"""Exception hierarchy for the cleanarch scaffolder.

Pre-flight problems are collected into a single ``ValidationError`` so the
user sees every issue at once.  Errors raised after the backup has been taken
funnel into rollback; only ``RollbackFailure`` carries a filesystem location,
because it is the one case that needs manual intervention.
"""

from __future__ import annotations

from pathlib import Path


class CleanArchError(Exception):
    """Base class for every error raised by the scaffolder."""


class ValidationError(CleanArchError):
    """Raised when pre-flight validation fails.

    Carries the full, ordered list of problems rather than the first one.
    """

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class TemplateNotFoundError(CleanArchError):
    """Raised when a template id cannot be resolved by the provider."""

    def __init__(self, template_id: str, message: str = "") -> None:
        self.template_id = template_id
        super().__init__(message or f"Template not found: {template_id}")


class TemplateSyntaxError(CleanArchError):
    """Raised when a template exists but does not parse."""

    def __init__(self, template_id: str, message: str = "", lineno: int | None = None) -> None:
        self.template_id = template_id
        self.lineno = lineno
        location = f" (line {lineno})" if lineno else ""
        super().__init__(f"Template syntax error in {template_id}{location}: {message}")


class UnknownRoleError(CleanArchError):
    """Raised when an architecture declares no path template for a role."""

    def __init__(self, role: str, architecture: str) -> None:
        self.role = role
        self.architecture = architecture
        super().__init__(
            f"No path defined for role '{role}' in architecture '{architecture}'"
        )


class MergeError(CleanArchError):
    """Raised when an existing document cannot be merged (e.g. not a mapping)."""


class BackupError(CleanArchError):
    """Raised when a backup operation fails."""

    def __init__(self, message: str, backup_path: Path | None = None) -> None:
        self.backup_path = backup_path
        super().__init__(message)


class BackupNotFoundError(BackupError):
    """Raised when restoring a backup id that has no directory on disk."""


class BackupCreationError(BackupError):
    """Raised by the orchestrator when the pre-generation snapshot fails."""


class GenerationError(CleanArchError):
    """Raised while writing or merging files; triggers a rollback."""


class RollbackFailure(CleanArchError):
    """Raised when restoring a backup after a failed generation also fails."""

    def __init__(self, message: str, backup_path: Path) -> None:
        self.backup_path = backup_path
        super().__init__(message)


def error_messages(exc: Exception) -> list[str]:
    """Flatten an error into user-facing messages."""
    if isinstance(exc, ValidationError):
        return list(exc.errors)
    return [str(exc)]
