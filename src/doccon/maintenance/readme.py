"""Maintain the auto-generated consolidation section in README.md."""

import re
from datetime import date
from pathlib import Path

SECTION_START = "<!-- doccon:consolidated-docs:start -->"
SECTION_END = "<!-- doccon:consolidated-docs:end -->"
SECTION_RE = re.compile(re.escape(SECTION_START) + r".*?" + re.escape(SECTION_END), re.DOTALL)


def render_section(
    root: Path,
    consolidated_files: list[Path],
    archive_dir: str | None = None,
    today: date | None = None,
) -> str:
    count = len(consolidated_files)
    lines = [
        SECTION_START,
        "",
        "## 📚 Consolidated Documentation",
        "",
        f"Project markdown files have been organized and consolidated into {count} "
        f"summary file{'s' if count != 1 else ''}.",
        "",
        "### Summary Files",
        "",
    ]
    for path in consolidated_files:
        rel = path.relative_to(root).as_posix() if path.is_relative_to(root) else path.name
        lines.append(f"- [{path.stem}]({rel})")
    lines += ["", "### Original Documentation", ""]
    if archive_dir:
        lines.append(f"All original markdown files are preserved in the [`{archive_dir}/`]({archive_dir}/) directory.")
    else:
        lines.append("Original markdown files were backed up under `.doccon/backups/` "
                     "(see `BACKUP_INDEX.md` there) and can be restored with `doccon restore`.")
    lines += ["", f"*Last updated: {(today or date.today()).isoformat()}*", "", SECTION_END]
    return "\n".join(lines)


def update_readme(
    root: Path,
    consolidated_files: list[Path],
    archive_dir: str | None = None,
    today: date | None = None,
) -> bool:
    """Replace the marker section in place, or append it; create README if missing.

    Returns True if README.md changed on disk.
    """
    readme_path = root / "README.md"
    if readme_path.exists():
        content = readme_path.read_text(encoding="utf-8")
    else:
        content = f"# {root.name}\n"

    section = render_section(root, consolidated_files, archive_dir, today)
    if SECTION_RE.search(content):
        updated = SECTION_RE.sub(lambda _: section, content, count=1)
    else:
        updated = content.rstrip("\n") + "\n\n" + section + "\n"

    if readme_path.exists() and updated == content:
        return False
    readme_path.write_text(updated, encoding="utf-8")
    return True
