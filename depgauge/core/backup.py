"""Backup and restore of ``package.json`` / ``package-lock.json``.

A backup is a directory ``.depgauge-backup-<timestamp>`` inside the
project holding verbatim copies of the two files plus
``backup-info.json``::

    {
      "timestamp": "2024-05-01T12:00:00.000000+00:00",
      "packageJsonHash": "<sha256>",
      "packageLockHash": "<sha256>",
      "tool": "depgauge",
      "version": "0.3.0"
    }

Restoring copies the files back byte-for-byte and verifies the result,
so a backup followed by a restore reproduces the original content.
"""

from __future__ import annotations

import json
from pathlib import Path
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

from depgauge.__version__ import __version__
from depgauge.models.update import BackupRecord
from depgauge.utils.logger import get_logger
from depgauge.utils.filesystem import (
    copy_file,
    file_exists,
    file_sha256,
    remove_tree,
    safe_read_file,
    safe_write_file,
)
from depgauge.exceptions import (
    FileOperationError,
    InvalidProjectError,
    RestoreError,
)
from depgauge.constants import (
    BACKUP_DIR_PREFIX,
    BACKUP_METADATA_FILE,
    BACKUP_TIMESTAMP_FORMAT,
    DEFAULT_BACKUP_KEEP,
    LOCKFILE_FILE,
    MANIFEST_FILE,
)

logger = get_logger("backup")

BACKED_UP_FILES = (MANIFEST_FILE, LOCKFILE_FILE)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _is_json(path: Path) -> bool:
    try:
        json.loads(safe_read_file(path))
    except (FileOperationError, ValueError):
        return False
    return True


class BackupManager:
    """Create, list, restore and prune backups for one project.

    Args:
        project_dir: Project directory; backups are created inside it.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        project_dir: Union[str, Path] = ".",
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.project_dir = Path(project_dir)
        self._clock = clock

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def _new_backup_dir(self, now: datetime) -> Path:
        base = f"{BACKUP_DIR_PREFIX}{now.strftime(BACKUP_TIMESTAMP_FORMAT)}"
        candidate = self.project_dir / base
        counter = 1
        while candidate.exists():
            candidate = self.project_dir / f"{base}-{counter}"
            counter += 1
        return candidate

    def create_backup(self) -> BackupRecord:
        """Copy the manifest and lockfile into a new backup directory.

        Raises:
            InvalidProjectError: Neither file exists.
            FileOperationError: A file could not be copied; the partial
                backup directory is removed.
        """
        present = [name for name in BACKED_UP_FILES if file_exists(self.project_dir / name)]
        if not present:
            raise InvalidProjectError(str(self.project_dir))

        now = self._clock()
        backup_dir = self._new_backup_dir(now)

        try:
            backup_dir.mkdir(parents=True)
            hashes: Dict[str, Optional[str]] = {}
            for name in BACKED_UP_FILES:
                source = self.project_dir / name
                if name in present:
                    copy_file(source, backup_dir / name, operation="backup")
                    hashes[name] = file_sha256(backup_dir / name)
                else:
                    hashes[name] = None

            record = BackupRecord(
                path=str(backup_dir),
                timestamp=now.isoformat(),
                manifest_hash=hashes[MANIFEST_FILE],
                lockfile_hash=hashes[LOCKFILE_FILE],
                version=__version__,
            )
            safe_write_file(
                backup_dir / BACKUP_METADATA_FILE,
                json.dumps(record.to_json(), indent=2) + "\n",
            )
        except OSError as exc:
            remove_tree(backup_dir)
            raise FileOperationError(
                f"Failed to create backup: {exc}",
                file_path=str(backup_dir),
                operation="backup",
                original_error=exc,
            ) from exc
        except FileOperationError:
            remove_tree(backup_dir)
            raise

        logger.info("Backup created: %s", backup_dir)
        return record

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    def _read_metadata(self, backup_dir: Path) -> Dict[str, object]:
        metadata_path = backup_dir / BACKUP_METADATA_FILE
        data = json.loads(safe_read_file(metadata_path))
        if not isinstance(data, dict):
            raise ValueError(f"{BACKUP_METADATA_FILE} must contain a JSON object")
        return data

    def _record_from(self, backup_dir: Path, data: Dict[str, object]) -> BackupRecord:
        timestamp = data.get("timestamp")
        if not isinstance(timestamp, str):
            raise ValueError("backup metadata has no timestamp")
        _parse_timestamp(timestamp)

        manifest_hash = data.get("packageJsonHash")
        lockfile_hash = data.get("packageLockHash")
        tool = data.get("tool")
        version = data.get("version")
        return BackupRecord(
            path=str(backup_dir),
            timestamp=timestamp,
            manifest_hash=manifest_hash if isinstance(manifest_hash, str) else None,
            lockfile_hash=lockfile_hash if isinstance(lockfile_hash, str) else None,
            tool=tool if isinstance(tool, str) else "depgauge",
            version=version if isinstance(version, str) else None,
        )

    def validate_backup(self, backup_path: Union[str, Path]) -> None:
        """Check that a backup can be restored.

        Raises:
            RestoreError: The directory or its metadata is missing or
                unreadable, it holds neither file, or a held file is not
                valid JSON.
        """
        backup_dir = Path(backup_path)
        if not backup_dir.is_dir():
            raise RestoreError(f"Backup not found: {backup_dir}", backup_path=str(backup_dir))

        try:
            self._record_from(backup_dir, self._read_metadata(backup_dir))
        except (FileOperationError, ValueError) as exc:
            raise RestoreError(
                f"Backup metadata is missing or invalid: {exc}",
                backup_path=str(backup_dir),
            ) from exc

        held = [name for name in BACKED_UP_FILES if file_exists(backup_dir / name)]
        if not held:
            raise RestoreError(
                "Backup contains neither package.json nor package-lock.json",
                backup_path=str(backup_dir),
            )

        for name in held:
            if not _is_json(backup_dir / name):
                raise RestoreError(
                    f"Backup copy of {name} is not valid JSON",
                    backup_path=str(backup_dir),
                )

    def get_backup_info(self, backup_path: Union[str, Path]) -> Optional[BackupRecord]:
        """Return the metadata of a valid backup, or ``None``."""
        backup_dir = Path(backup_path)
        try:
            self.validate_backup(backup_dir)
            return self._record_from(backup_dir, self._read_metadata(backup_dir))
        except (RestoreError, FileOperationError, ValueError) as exc:
            logger.debug("Not a usable backup %s: %s", backup_dir, exc)
            return None

    def list_backups(self) -> List[BackupRecord]:
        """Backups in the project directory, newest first.

        Directories with unreadable metadata are not listed.
        """
        if not self.project_dir.is_dir():
            return []

        records: List[BackupRecord] = []
        for entry in self.project_dir.iterdir():
            if not entry.is_dir() or not entry.name.startswith(BACKUP_DIR_PREFIX):
                continue
            try:
                records.append(self._record_from(entry, self._read_metadata(entry)))
            except (FileOperationError, ValueError) as exc:
                logger.debug("Skipping backup %s: %s", entry, exc)

        records.sort(key=lambda record: _parse_timestamp(record.timestamp), reverse=True)
        return records

    def has_changes_since_backup(self, backup_path: Union[str, Path]) -> bool:
        """Whether the live files differ from the hashes a backup recorded.

        An unusable backup counts as changed.
        """
        record = self.get_backup_info(backup_path)
        if record is None:
            return True

        for name in BACKED_UP_FILES:
            live = self.project_dir / name
            if not file_exists(live):
                continue
            expected = record.manifest_hash if name == MANIFEST_FILE else record.lockfile_hash
            if file_sha256(live) != expected:
                return True
        return False

    # ------------------------------------------------------------------
    # Restore and cleanup
    # ------------------------------------------------------------------

    def restore_backup(self, backup_path: Union[str, Path]) -> BackupRecord:
        """Copy a backup's files back into the project.

        Raises:
            RestoreError: The backup fails validation, a copy fails, or
                the restored files are not byte-identical to the backup.
        """
        backup_dir = Path(backup_path)
        self.validate_backup(backup_dir)
        record = self._record_from(backup_dir, self._read_metadata(backup_dir))

        restored: List[str] = []
        for name in BACKED_UP_FILES:
            source = backup_dir / name
            if not file_exists(source):
                continue
            try:
                copy_file(source, self.project_dir / name, operation="restore")
            except FileOperationError as exc:
                raise RestoreError(
                    f"Failed to restore {name}: {exc.message}",
                    backup_path=str(backup_dir),
                ) from exc
            restored.append(name)

        for name in restored:
            target = self.project_dir / name
            if not _is_json(target):
                raise RestoreError(
                    f"Restored {name} is not valid JSON",
                    backup_path=str(backup_dir),
                )
            if file_sha256(target) != file_sha256(backup_dir / name):
                raise RestoreError(
                    f"Restored {name} does not match the backup",
                    backup_path=str(backup_dir),
                )

        logger.info("Restored %s from %s", ", ".join(restored), backup_dir)
        return record

    def cleanup_backups(self, keep: int = DEFAULT_BACKUP_KEEP) -> List[str]:
        """Delete all but the ``keep`` newest backups; return removed paths."""
        removed: List[str] = []
        for record in self.list_backups()[max(keep, 0) :]:
            remove_tree(record.path)
            removed.append(record.path)
            logger.debug("Removed old backup %s", record.path)
        return removed
