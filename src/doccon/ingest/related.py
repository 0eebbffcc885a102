"""Find plain text files that belong with the markdown documentation."""

import logging
from pathlib import Path

from ..ai.prompts import RELATED_FILES_PROMPT
from ..ai.provider import RelatedFileJudge, RelatedFilesRequest, extract_json_object, is_list_index
from ..config import is_protected
from ..exceptions import ScanError
from ..models import MarkdownDocument
from .scanner import MarkdownScanner

logger = logging.getLogger(__name__)

RELATED_EXTENSIONS = {".txt", ".log"}
MAX_RELATED_SIZE = 1024 * 1024


def find_related_candidates(root: Path, protected: set[str]) -> list[Path]:
    """Non-recursive list of small .txt/.log files in root."""
    candidates = []
    for file_path in sorted(root.iterdir()):
        if not file_path.is_file() or file_path.name.startswith("."):
            continue
        if file_path.suffix.lower() not in RELATED_EXTENSIONS:
            continue
        if is_protected(file_path.name, protected):
            continue
        if file_path.stat().st_size > MAX_RELATED_SIZE:
            continue
        candidates.append(file_path)
    return candidates


def select_related_documents(
    root: Path,
    judge: RelatedFileJudge | None,
    scanner: MarkdownScanner,
    protected: set[str],
) -> list[MarkdownDocument]:
    """Load the candidates the judge considers documentation.

    Without a judge, or when it fails, nothing is selected.
    """
    if judge is None:
        return []
    candidates = find_related_candidates(root, protected)
    if not candidates:
        return []

    listing = []
    for i, path in enumerate(candidates, 1):
        preview = path.read_text(encoding="utf-8", errors="replace")[:200].replace("\n", " ")
        listing.append(f"{i}. {path.name} ({path.stat().st_size} bytes)\n   Preview: {preview}")
    request = RelatedFilesRequest(
        prompt=RELATED_FILES_PROMPT.format(files="\n".join(listing)),
        candidate_count=len(candidates),
    )

    try:
        response = judge.judge_related(request)
        data = extract_json_object(response.text)
        indices = data.get("related", [])
    except Exception as e:
        logger.warning(f"Related file analysis failed, skipping text files: {e}")
        return []

    selected = []
    for index in indices:
        if not is_list_index(index, len(candidates)):
            continue
        try:
            doc = scanner.load_document(candidates[index - 1], root)
        except ScanError as e:
            logger.warning(f"Skipping related {e}")
            continue
        if doc not in selected:
            selected.append(doc)
    return selected
