"""List independently rooted repositories below a directory."""

import logging
import os
from pathlib import Path

from .config import STATE_DIR

logger = logging.getLogger(__name__)

SKIP_DIRS = {".git", "node_modules", STATE_DIR}


def detect_repositories(root: str | Path) -> list[Path]:
    """Every directory under root (root included) that contains a .git entry."""
    root = Path(root).resolve()
    repositories = []

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error}")

    for current, dirnames, filenames in os.walk(root, onerror=on_error):
        if ".git" in dirnames or ".git" in filenames:
            repositories.append(Path(current))
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
    return repositories


def list_boundaries(root: str | Path, respect_git_boundaries: bool = True) -> list[Path]:
    """Roots to process independently; the root itself when none are found."""
    root = Path(root).resolve()
    if not respect_git_boundaries:
        return [root]
    return detect_repositories(root) or [root]
