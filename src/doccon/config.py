"""Configuration management for doccon."""

import os
from pathlib import Path
from typing import Any

import yaml


STATE_DIR = ".doccon"

DEFAULT_CONFIG = {
    "ai": {
        "model": "claude-sonnet-4-20250514",
        "timeout": 60,
        "max_tokens": 4000,
    },
    "scan": {"exclude_patterns": [], "include_hidden": False},
    "consolidation": {
        "max_output_files": 5,
        "preserve_originals": True,
        "create_super_readme": False,
        "archive_stale": False,
    },
    "auto": {
        "mode": "compress",
        "max_output_files": 5,
        "suppress_toc": False,
        "respect_git_boundaries": True,
        "include_related": False,
        "parallel": False,
        "max_workers": 4,
    },
    "protected_files": [
        "readme.md", "license", "license.md", "license.txt", "changelog.md",
        "contributing.md", "code_of_conduct.md", "security.md", "authors.md",
        "notice", "notice.md", "support.md", "governance.md",
    ],
    "logging": {"level": "INFO"},
}

VALID_MODES = ("compress", "document-archive")


def is_protected(filename: str, protected: set[str] | list[str]) -> bool:
    """Match a basename against protected names by full name or by stem.

    ``changelog.md`` protects ``CHANGELOG.txt`` and ``changelog`` too.
    """
    name = filename.lower()
    stems = {Path(p).stem for p in protected}
    return name in protected or Path(name).stem in stems


def _find_config_file() -> Path | None:
    """Look for doccon.yaml in standard locations."""
    candidates = [
        Path.cwd() / "config" / "doccon.yaml",
        Path.cwd() / "doccon.yaml",
        Path.home() / ".doccon" / "config.yaml",
    ]
    for p in candidates:
        if p.exists():
            return p
    return None


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration, merging defaults with file and env vars."""
    cfg = _copy(DEFAULT_CONFIG)

    path = Path(config_path) if config_path else _find_config_file()
    if path and path.exists():
        with open(path) as f:
            file_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, file_cfg)

    # Env overrides
    if api_key := os.environ.get("ANTHROPIC_API_KEY"):
        cfg["ai"]["api_key"] = api_key
    if level := os.environ.get("DOCCON_LOG_LEVEL"):
        cfg["logging"]["level"] = level.upper()

    mode = cfg["auto"].get("mode", "compress")
    if mode not in VALID_MODES:
        raise ValueError(f"Unknown auto.mode: {mode} (expected one of {', '.join(VALID_MODES)})")

    cfg["protected_files"] = [name.lower() for name in cfg.get("protected_files", [])]
    return cfg


def _copy(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _copy(v) for k, v in value.items()}
    if isinstance(value, list):
        return list(value)
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override into base in-place."""
    for k, v in override.items():
        if k in base and isinstance(base[k], dict) and isinstance(v, dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
