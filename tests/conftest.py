"""Shared fixtures."""

from datetime import datetime
from pathlib import Path, PurePosixPath

import pytest

from doccon.ingest.scanner import extract_metadata
from doccon.models import MarkdownDocument

NOW = datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture
def make_doc():
    """Build an in-memory MarkdownDocument without touching the filesystem."""

    def _make(content, relative_path="doc.md", modified=NOW, root=Path("/docs")):
        metadata, body = extract_metadata(content)
        return MarkdownDocument(
            path=root / relative_path,
            relative_path=relative_path,
            name=PurePosixPath(relative_path).name,
            size=len(content.encode("utf-8")),
            last_modified=modified,
            content=content,
            metadata=metadata,
            body=body,
        )

    return _make


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    monkeypatch.delenv("DOCCON_LOG_LEVEL", raising=False)
