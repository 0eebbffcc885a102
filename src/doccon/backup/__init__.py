"""Backups taken before files are changed or removed."""

from .index import append_backup_entry
from .manager import BackupManager, file_hash

__all__ = ["BackupManager", "append_backup_entry", "file_hash"]
