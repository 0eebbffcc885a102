"""Tests for markdown discovery and metadata extraction."""

import os
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from doccon.exceptions import ScanError
from doccon.ingest.scanner import MarkdownScanner, extract_metadata, is_excluded, split_frontmatter


SAMPLE = """---
title: Front Title
tags: [a]
---
# Heading One

Some words here [link](other.md).

```
# not a heading
code
```

## Second
"""


def test_frontmatter_title_wins():
    meta, body = extract_metadata(SAMPLE)
    assert meta.title == "Front Title"
    assert meta.frontmatter == {"title": "Front Title", "tags": ["a"]}
    assert body.startswith("# Heading One")


def test_headings_skip_fenced_code():
    meta, _ = extract_metadata(SAMPLE)
    assert meta.headings == ["Heading One", "Second"]
    assert meta.code_block_count == 1
    assert meta.link_count == 1


def test_word_count_ignores_code_and_links():
    meta, _ = extract_metadata(SAMPLE)
    # "# Heading One", "Some words here .", "## Second"
    assert meta.word_count == 9


def test_title_falls_back_to_h1_then_untitled():
    meta, _ = extract_metadata("intro\n\n# Real Title\n\ntext")
    assert meta.title == "Real Title"
    meta, _ = extract_metadata("no headings at all")
    assert meta.title == "Untitled"
    assert meta.headings == []


def test_invalid_frontmatter_is_body():
    text = "---\n: [unclosed\n---\n# T\n"
    fm, body = split_frontmatter(text)
    assert fm is None
    assert body == text


def test_images_counted():
    meta, _ = extract_metadata("# T\n\n![diagram](arch.png)\n")
    assert meta.image_count == 1


def test_scan_walks_and_excludes():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "README.md").write_text("# Readme\n")
        (root / "guides").mkdir()
        (root / "guides" / "setup.md").write_text("# Setup\n")
        (root / "node_modules" / "pkg").mkdir(parents=True)
        (root / "node_modules" / "pkg" / "README.md").write_text("# Vendored\n")
        (root / ".hidden").mkdir()
        (root / ".hidden" / "secret.md").write_text("# Secret\n")
        (root / "notes.txt").write_text("not markdown")

        docs = MarkdownScanner().scan(root)
        assert [d.relative_path for d in docs] == ["README.md", "guides/setup.md"]
        assert docs[1].name == "setup.md"
        assert docs[1].title == "Setup"
        assert docs[1].root == root.resolve()


def test_scan_non_recursive_and_patterns():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "a.md").write_text("# A\n")
        (root / "draft.md").write_text("# Draft\n")
        (root / "sub").mkdir()
        (root / "sub" / "b.md").write_text("# B\n")

        scanner = MarkdownScanner()
        assert [d.name for d in scanner.scan(root, recursive=False)] == ["a.md", "draft.md"]
        assert [d.name for d in scanner.scan(root, exclude_patterns=["draft.md"])] == ["a.md", "b.md"]


def test_scan_include_hidden():
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / ".notes").mkdir()
        (root / ".notes" / "todo.md").write_text("# Todo\n")
        assert MarkdownScanner().scan(root, include_hidden=True)[0].relative_path == ".notes/todo.md"


def test_scan_missing_directory():
    assert MarkdownScanner().scan("/nonexistent/path/for/doccon") == []


def test_is_excluded():
    assert is_excluded("node_modules/x/readme.md", ["node_modules/**"])
    assert is_excluded("packages/app/node_modules/x.md", ["node_modules/**"])
    assert is_excluded("docs/CHANGELOG.md", ["CHANGELOG.md"])
    assert not is_excluded("docs/guide.md", ["node_modules/**", "CHANGELOG.md"])


def test_last_modified_from_mtime(tmp_path):
    path = tmp_path / "old.md"
    path.write_text("# Old\n")
    stamp = datetime(2023, 1, 15, 8, 30).timestamp()
    os.utime(path, (stamp, stamp))
    doc = MarkdownScanner().scan(tmp_path)[0]
    assert doc.last_modified == datetime(2023, 1, 15, 8, 30)
    assert doc.size == len("# Old\n")


def test_load_document_unreadable(tmp_path):
    with pytest.raises(ScanError):
        MarkdownScanner().load_document(tmp_path / "gone.md", tmp_path)
