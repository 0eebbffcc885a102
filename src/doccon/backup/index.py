"""The dated, newest-first backup index document."""

import re
from datetime import datetime
from pathlib import Path

INDEX_FILENAME = "BACKUP_INDEX.md"
SECTION_RE = re.compile(r"^## Backup: ", re.MULTILINE)


def render_entry(
    when: datetime,
    files: list[str],
    description: str,
    manifest_ids: list[str] | None = None,
) -> str:
    lines = [
        f"## Backup: {when.strftime('%Y-%m-%d %H:%M:%S')}",
        "",
        f"**Files backed up**: {len(files)}",
        "",
    ]
    if description:
        lines += [f"**Description**: {description}", ""]
    if manifest_ids:
        lines.append("**Manifests**:")
        lines += [f"- `{manifest_id}`" for manifest_id in manifest_ids]
        lines.append("")
    if files:
        lines.append("**Files**:")
        lines += [f"- {name}" for name in files]
        lines.append("")
    lines += ["---", ""]
    return "\n".join(lines)


def existing_entries(content: str) -> list[str]:
    """Raw text of each previous backup section, in file order."""
    starts = [m.start() for m in SECTION_RE.finditer(content)]
    sections = []
    for i, start in enumerate(starts):
        end = starts[i + 1] if i + 1 < len(starts) else len(content)
        section = content[start:end]
        footer = section.find("\n*Generated by doccon")
        if footer != -1:
            section = section[:footer]
        sections.append(section.rstrip("\n") + "\n")
    return sections


def append_backup_entry(
    backup_dir: Path,
    files: list[str],
    description: str = "Auto-consolidation backup",
    manifest_ids: list[str] | None = None,
    when: datetime | None = None,
) -> Path:
    """Prepend a new entry to the backup index, creating it if needed."""
    backup_dir.mkdir(parents=True, exist_ok=True)
    index_path = backup_dir / INDEX_FILENAME
    previous = existing_entries(index_path.read_text(encoding="utf-8")) if index_path.exists() else []

    entries = [render_entry(when or datetime.now(), files, description, manifest_ids)] + previous
    lines = ["# Backup Index", "", f"Total backups: {len(entries)}", "", "---", ""]
    content = "\n".join(lines) + "\n".join(entries) + "\n*Generated by doccon auto-consolidate*\n"
    index_path.write_text(content, encoding="utf-8")
    return index_path
