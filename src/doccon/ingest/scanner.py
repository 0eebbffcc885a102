"""Discover markdown files and extract structural metadata."""

import logging
import re
from datetime import datetime
from fnmatch import fnmatch
from pathlib import Path
from typing import Any

import yaml

from ..config import STATE_DIR
from ..exceptions import ScanError
from ..models import DocumentMetadata, MarkdownDocument

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = [
    "node_modules/**",
    ".git/**",
    "dist/**",
    "build/**",
    "coverage/**",
    ".venv/**",
    "venv/**",
    "__pycache__/**",
    f"{STATE_DIR}/**",
]

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
CODE_FENCE_RE = re.compile(r"```.*?```", re.DOTALL)
LINK_RE = re.compile(r"\[.*?\]\(.*?\)")
IMAGE_RE = re.compile(r"!\[.*?\]\(.*?\)")
HEADING_RE = re.compile(r"^#{1,6}\s+(.+)$", re.MULTILINE)
TITLE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def split_frontmatter(text: str) -> tuple[dict[str, Any] | None, str]:
    """Split a leading YAML frontmatter block from the body.

    Returns (frontmatter or None, body). Invalid or non-mapping YAML is
    treated as body text.
    """
    fm_match = FRONTMATTER_RE.match(text)
    if not fm_match:
        return None, text
    try:
        fm = yaml.safe_load(fm_match.group(1))
    except yaml.YAMLError:
        return None, text
    if not isinstance(fm, dict):
        return None, text
    return (fm or None), text[fm_match.end():]


def count_words(text: str) -> int:
    """Whitespace tokens with fenced code blocks and link syntax removed."""
    without_code = CODE_FENCE_RE.sub("", text)
    without_links = LINK_RE.sub("", without_code)
    return len(without_links.split())


def extract_metadata(text: str) -> tuple[DocumentMetadata, str]:
    """Extract metadata from raw markdown. Returns (metadata, body)."""
    frontmatter, body = split_frontmatter(text)
    prose = CODE_FENCE_RE.sub("", body)

    title = None
    if frontmatter and frontmatter.get("title"):
        title = str(frontmatter["title"]).strip()
    if not title:
        title_match = TITLE_RE.search(prose)
        title = title_match.group(1).strip() if title_match else "Untitled"

    metadata = DocumentMetadata(
        title=title,
        headings=[m.group(1).strip() for m in HEADING_RE.finditer(prose)],
        word_count=count_words(body),
        link_count=len(LINK_RE.findall(body)),
        code_block_count=body.count("```") // 2,
        image_count=len(IMAGE_RE.findall(body)),
        frontmatter=frontmatter,
    )
    return metadata, body


class MarkdownScanner:
    """Find markdown files under a directory and parse them into documents."""

    def scan(
        self,
        root_dir: str | Path,
        recursive: bool = True,
        exclude_patterns: list[str] | None = None,
        include_hidden: bool = False,
    ) -> list[MarkdownDocument]:
        root = Path(root_dir).resolve()
        if not root.is_dir():
            return []

        patterns = DEFAULT_EXCLUDES + list(exclude_patterns or [])
        candidates = root.rglob("*.md") if recursive else root.glob("*.md")

        docs: dict[Path, MarkdownDocument] = {}
        for file_path in candidates:
            if not file_path.is_file():
                continue
            rel = file_path.relative_to(root).as_posix()
            if not include_hidden and any(part.startswith(".") for part in Path(rel).parts):
                continue
            if is_excluded(rel, patterns):
                continue
            resolved = file_path.resolve()
            if resolved in docs:
                continue
            try:
                docs[resolved] = self.load_document(file_path, root)
            except ScanError as e:
                logger.warning(f"Skipping {e}")

        return sorted(docs.values(), key=lambda d: d.relative_path)

    def load_document(self, file_path: Path, root: Path) -> MarkdownDocument:
        """Read and analyze one file. Raises ScanError if it cannot be read."""
        try:
            stats = file_path.stat()
            text = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise ScanError(f"unreadable file {file_path}: {e}") from e

        metadata, body = extract_metadata(text)
        return MarkdownDocument(
            path=file_path.absolute(),
            relative_path=file_path.absolute().relative_to(root.resolve()).as_posix(),
            name=file_path.name,
            size=stats.st_size,
            last_modified=datetime.fromtimestamp(stats.st_mtime),
            content=text,
            metadata=metadata,
            body=body,
        )


def is_excluded(relative_path: str, patterns: list[str]) -> bool:
    """Match a relative path against fnmatch patterns at any depth."""
    name = relative_path.rsplit("/", 1)[-1]
    for pattern in patterns:
        if fnmatch(relative_path, pattern) or fnmatch(relative_path, f"*/{pattern}"):
            return True
        if "/" not in pattern and fnmatch(name, pattern):
            return True
    return False
