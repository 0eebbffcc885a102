"""File snapshots and manifests taken before destructive operations."""

import hashlib
import json
import logging
import os
import uuid
from dataclasses import asdict
from datetime import datetime
from pathlib import Path

from ..exceptions import BackupIntegrityError
from ..models import BackupEntry, BackupManifest

logger = logging.getLogger(__name__)


def file_hash(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


class BackupManager:
    """Stores exact byte copies of files plus JSON manifests grouping them.

    Blobs live at ``<backup_dir>/<entry id>`` and manifests at
    ``<backup_dir>/<manifest id>.json``. Manifests are written once.
    """

    def __init__(self, backup_dir: str | Path):
        self.backup_dir = Path(backup_dir)

    def _ensure_dir(self) -> None:
        self.backup_dir.mkdir(parents=True, exist_ok=True)

    def backup_file(self, file_path: str | Path, operation: str = "modify") -> BackupEntry:
        """Snapshot one file. Raises BackupIntegrityError if it cannot be copied."""
        self._ensure_dir()
        source = Path(file_path).resolve()
        entry_id = str(uuid.uuid4())
        try:
            data = source.read_bytes()
            stats = source.stat()
            (self.backup_dir / entry_id).write_bytes(data)
        except OSError as e:
            raise BackupIntegrityError(f"Could not back up {source}: {e}") from e

        return BackupEntry(
            id=entry_id,
            timestamp=datetime.now().isoformat(),
            operation=operation,
            source_path=str(source),
            size=stats.st_size,
            mode=stats.st_mode & 0o777,
            sha256=hashlib.sha256(data).hexdigest(),
        )

    def create_manifest(self, entries: list[BackupEntry]) -> BackupManifest:
        self._ensure_dir()
        manifest = BackupManifest(
            id=str(uuid.uuid4()),
            timestamp=datetime.now().isoformat(),
            entries=list(entries),
            reversible=True,
        )
        manifest_path = self.backup_dir / f"{manifest.id}.json"
        try:
            with open(manifest_path, "x", encoding="utf-8") as f:
                json.dump(asdict(manifest), f, indent=2)
        except OSError as e:
            raise BackupIntegrityError(f"Could not write manifest {manifest_path}: {e}") from e
        return manifest

    def confirm(self, entry: BackupEntry) -> bool:
        """True when the stored blob exists and still matches the file on disk."""
        blob = self.backup_dir / entry.id
        if not blob.is_file() or file_hash(blob) != entry.sha256:
            return False
        source = Path(entry.source_path)
        if source.exists() and file_hash(source) != entry.sha256:
            return False
        return True

    def load_manifest(self, manifest_id: str) -> BackupManifest:
        manifest_path = self.backup_dir / f"{manifest_id}.json"
        if not manifest_path.exists():
            raise BackupIntegrityError(f"Unknown backup manifest: {manifest_id}")
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
        entries = [BackupEntry(**e) for e in data.get("entries", [])]
        return BackupManifest(
            id=data["id"],
            timestamp=data["timestamp"],
            entries=entries,
            reversible=data.get("reversible", True),
        )

    def restore(self, manifest_id: str) -> list[Path]:
        """Write every file in a manifest back to its original location."""
        manifest = self.load_manifest(manifest_id)
        restored = []
        for entry in manifest.entries:
            blob = self.backup_dir / entry.id
            if not blob.is_file():
                raise BackupIntegrityError(f"Backup blob missing for {entry.source_path}")
            target = Path(entry.source_path)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(blob.read_bytes())
            os.chmod(target, entry.mode)
            restored.append(target)
            logger.info(f"Restored {target}")
        return restored

    def list_backups(self) -> list[BackupManifest]:
        """All manifests, newest first."""
        if not self.backup_dir.exists():
            return []
        manifests = []
        for manifest_path in self.backup_dir.glob("*.json"):
            try:
                manifests.append(self.load_manifest(manifest_path.stem))
            except (json.JSONDecodeError, KeyError, TypeError) as e:
                logger.warning(f"Ignoring unreadable manifest {manifest_path.name}: {e}")
        manifests.sort(key=lambda m: m.timestamp, reverse=True)
        return manifests
