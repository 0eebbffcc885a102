"""Check that consolidation kept its outputs, content and links intact."""

import re
from pathlib import Path
from urllib.parse import unquote

from ..models import MarkdownDocument, ValidationResult

LINK_TARGET_RE = re.compile(r"\[[^\]]*\]\(([^)]*)\)")
SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)

ERROR_LOSS = 0.30
WARNING_LOSS = 0.10


class ConsolidationValidator:
    """Validates consolidated files against the documents they came from."""

    def validate(self, original_docs: list[MarkdownDocument], consolidated_paths: list[str | Path]) -> ValidationResult:
        result = ValidationResult()
        paths = [Path(p) for p in consolidated_paths]

        consolidated_words = 0
        existing = []
        for path in paths:
            if not path.is_file():
                result.errors.append(f"Consolidated file not created: {path}")
                continue
            existing.append(path)
            consolidated_words += len(path.read_text(encoding="utf-8", errors="replace").split())

        original_words = sum(doc.word_count for doc in original_docs)
        loss = (original_words - consolidated_words) / original_words if original_words else 0.0
        if loss > ERROR_LOSS:
            result.errors.append(f"Significant content loss: {round(loss * 100)}%")
        elif loss > WARNING_LOSS:
            result.warnings.append(f"Moderate content reduction: {round(loss * 100)}%")

        for path in existing:
            for target in find_broken_links(path):
                result.warnings.append(f"Broken link in {path.name}: {target}")

        return result


def find_broken_links(file_path: Path) -> list[str]:
    """Relative link targets in a markdown file that do not exist on disk."""
    content = file_path.read_text(encoding="utf-8", errors="replace")
    broken = []
    for raw in LINK_TARGET_RE.findall(content):
        target = raw.strip().strip("<>")
        if " " in target:
            target = target.split(" ", 1)[0]
        if not target or target.startswith("#") or SCHEME_RE.match(target) or target.startswith("//"):
            continue
        local = unquote(target.split("#", 1)[0].split("?", 1)[0])
        if not local:
            continue
        if not (file_path.parent / local).exists() and target not in broken:
            broken.append(target)
    return broken
