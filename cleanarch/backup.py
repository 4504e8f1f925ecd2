"""File snapshots taken before a generation run mutates the project.

A backup lives at ``<project>/.cleanarch/backups/<backup_id>/`` and mirrors
the relative layout of the captured files, next to a ``manifest.json`` that
lists exactly which files were captured.  Restoring copies every captured
file back byte-for-byte; deleting removes the directory and is idempotent.
"""

from __future__ import annotations

import itertools
import secrets
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError as PydanticValidationError

from cleanarch.errors import BackupError, BackupNotFoundError
from cleanarch.structure.models import BackupManifest
from cleanarch.utils import console


MANIFEST_NAME = "manifest.json"

_counter = itertools.count(1)


def generate_backup_id() -> str:
    """``backup_<timestamp>_<counter>_<token>``, unique within the process."""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    return f"backup_{timestamp}_{next(_counter)}_{secrets.token_hex(4)}"


class BackupService:
    """Create, restore, inspect and delete backups under a project root."""

    def __init__(self, state_dir: str = ".cleanarch", backups_subdir: str = "backups") -> None:
        self.state_dir = state_dir
        self.backups_subdir = backups_subdir

    # -- Paths -------------------------------------------------------------

    def backups_root(self, root: Path) -> Path:
        return Path(root) / self.state_dir / self.backups_subdir

    def backup_path(self, root: Path, backup_id: str) -> Path:
        return self.backups_root(root) / backup_id

    # -- Create ------------------------------------------------------------

    def create_backup(self, root: Path, paths: Iterable[str | Path] | None) -> str:
        """Snapshot the existing subset of *paths* (relative to *root*).

        Files that do not exist are skipped silently.  If anything goes wrong
        the partial backup directory is removed before the error propagates.

        Raises:
            BackupError: *paths* is ``None`` or empty, or copying failed.
        """
        if paths is None:
            raise BackupError("No files specified for backup")
        relative = [Path(p) for p in paths]
        if not relative:
            raise BackupError("No files specified for backup")

        root = Path(root)
        backup_id = generate_backup_id()
        target = self.backup_path(root, backup_id)

        try:
            target.mkdir(parents=True, exist_ok=False)
            captured: list[str] = []
            for rel in relative:
                source = root / rel
                if not source.is_file():
                    continue
                destination = target / rel
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
                captured.append(rel.as_posix())

            manifest = BackupManifest(backup_id=backup_id, files=captured)
            tmp = target / (MANIFEST_NAME + ".tmp")
            tmp.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
            tmp.replace(target / MANIFEST_NAME)
        except OSError as exc:
            shutil.rmtree(target, ignore_errors=True)
            raise BackupError(f"Failed to create backup: {exc}", target) from exc

        console.print(f"  [dim]Backed up {len(captured)} file(s) to {target}[/dim]")
        return backup_id

    # -- Inspect -----------------------------------------------------------

    def read_manifest(self, root: Path, backup_id: str) -> BackupManifest:
        target = self.backup_path(root, backup_id)
        manifest_file = target / MANIFEST_NAME
        if not target.is_dir():
            raise BackupNotFoundError(f"Backup not found: {backup_id} at {target}", target)
        if not manifest_file.is_file():
            raise BackupError(f"Backup manifest not found: {manifest_file}", target)
        return BackupManifest.model_validate_json(manifest_file.read_text(encoding="utf-8"))

    def list_backups(self, root: Path) -> list[BackupManifest]:
        """Every backup with a readable manifest, oldest first."""
        base = self.backups_root(root)
        if not base.is_dir():
            return []
        manifests: list[BackupManifest] = []
        for entry in sorted(base.iterdir()):
            if not entry.is_dir():
                continue
            try:
                manifests.append(self.read_manifest(root, entry.name))
            except (BackupError, PydanticValidationError) as exc:
                console.print(f"  [yellow]Skipping unreadable backup {entry.name}: {exc}[/yellow]")
        return sorted(manifests, key=lambda m: m.created_at)

    # -- Restore -----------------------------------------------------------

    def restore_backup(self, root: Path, backup_id: str) -> list[Path]:
        """Copy every captured file back to its original location.

        Returns the restored paths.  The backup itself is left in place.

        Raises:
            BackupNotFoundError: No directory exists for *backup_id*.
            BackupError: Any read or copy failed; the message names the
                backup location for manual recovery.
        """
        root = Path(root)
        target = self.backup_path(root, backup_id)
        if not target.is_dir():
            raise BackupNotFoundError(f"Backup not found: {backup_id} at {target}", target)

        restored: list[Path] = []
        try:
            manifest = self.read_manifest(root, backup_id)
            for rel in manifest.files:
                source = target / rel
                destination = root / rel
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
                restored.append(destination)
        except (OSError, BackupError, PydanticValidationError) as exc:
            raise BackupError(
                f"Failed to restore backup: {backup_id}. "
                f"Manual recovery may be required. Backup location: {target}",
                target,
            ) from exc

        console.print(f"  [dim]Restored {len(restored)} file(s) from {backup_id}[/dim]")
        return restored

    # -- Delete ------------------------------------------------------------

    def delete_backup(self, root: Path, backup_id: str) -> None:
        """Remove the backup directory; a missing backup is not an error."""
        target = self.backup_path(root, backup_id)
        if not target.exists():
            return
        try:
            shutil.rmtree(target)
        except OSError as exc:
            raise BackupError(f"Failed to delete backup: {backup_id}", target) from exc
