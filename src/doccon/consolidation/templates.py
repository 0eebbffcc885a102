"""Markdown templates for consolidated documents."""

import re
from datetime import date
from pathlib import PurePosixPath

from ..models import MarkdownDocument

DEFAULT_TITLE = "Consolidated Documentation"
LEADING_H1_RE = re.compile(r"^#\s+.+$", re.MULTILINE)


def slugify(text: str) -> str:
    """Anchor-safe form of a heading."""
    return re.sub(r"\s+", "-", re.sub(r"[^\w\s-]", "", text.lower()).strip())


def strip_title(content: str) -> str:
    """Remove the first level-1 heading."""
    return LEADING_H1_RE.sub("", content, count=1).strip()


def extract_preview(content: str, limit: int = 200) -> str:
    """First real paragraph (not a heading or list), truncated to limit."""
    for paragraph in strip_title(content).split("\n\n"):
        paragraph = paragraph.strip()
        if len(paragraph) > 20 and not paragraph.startswith(("#", "-", "*", "```")):
            return paragraph[:limit] + "..." if len(paragraph) > limit else paragraph
    return ""


def infer_topic_title(docs: list[MarkdownDocument]) -> str:
    """Words longer than three letters shared by at least half the titles."""
    counts: dict[str, int] = {}
    for doc in docs:
        for word in dict.fromkeys(doc.title.lower().split()):
            if len(word) > 3:
                counts[word] = counts.get(word, 0) + 1

    threshold = len(docs) / 2
    common = [word for word, count in counts.items() if count >= threshold][:3]
    if not common:
        return DEFAULT_TITLE
    return " ".join(word[:1].upper() + word[1:] for word in common)


def sort_by_size(docs: list[MarkdownDocument]) -> list[MarkdownDocument]:
    return sorted(docs, key=lambda d: (-d.word_count, d.relative_path))


def render_merge_by_topic(docs: list[MarkdownDocument], today: date) -> str:
    """Combine the full content of every document under one title."""
    ordered = sort_by_size(docs)
    parts = [
        f"# {infer_topic_title(docs)}",
        "",
        f"*Consolidated from {len(docs)} files on {today.isoformat()}*",
        "",
        "---",
        "",
        "## Table of Contents",
        "",
    ]
    for doc in ordered:
        parts.append(f"- [{doc.title}](#{slugify(doc.title)})")
    parts += ["", "---", ""]

    for doc in ordered:
        parts += [
            f"## {doc.title}",
            "",
            f"*Originally from: {doc.name}*",
            "",
            strip_title(doc.body),
            "",
            "---",
            "",
        ]

    parts += ["## Source Files", "", "This document was consolidated from:", ""]
    for doc in ordered:
        parts.append(
            f"- `{doc.relative_path}` ({doc.word_count} words, "
            f"modified {doc.last_modified.date().isoformat()})"
        )
    return "\n".join(parts) + "\n"


def render_merge_by_folder(docs: list[MarkdownDocument]) -> str:
    """An index page linking every document of one folder."""
    folder = PurePosixPath(docs[0].relative_path).parent.name or docs[0].root.name
    parts = [
        f"# {folder} Documentation",
        "",
        f"*Index of {len(docs)} documents*",
        "",
        "---",
        "",
    ]
    for doc in docs:
        parts += [f"## [{doc.title}](./{doc.name})", ""]
        preview = extract_preview(doc.body)
        if preview:
            parts += [preview, ""]
        if doc.metadata.headings:
            parts.append("**Contents:**")
            parts += [f"- {heading}" for heading in doc.metadata.headings[:5]]
            parts.append("")
    return "\n".join(parts) + "\n"


def render_summary(docs: list[MarkdownDocument]) -> str:
    """Overview bullets followed by the opening paragraphs of each document."""
    parts = [
        f"# Summary: {infer_topic_title(docs)}",
        "",
        f"*Summary of {len(docs)} documents*",
        "",
        "---",
        "",
        "## Overview",
        "",
        f"This document summarizes key information from {len(docs)} related markdown files:",
        "",
    ]
    for doc in docs:
        parts.append(f"- **{doc.title}**: {extract_preview(doc.body)}")
    parts += ["", "---", "", "## Detailed Content", ""]

    for doc in docs:
        paragraphs = [p for p in strip_title(doc.body).split("\n\n") if p.strip()][:3]
        parts += [
            f"### {doc.title}",
            "",
            f"*Source: {doc.name}*",
            "",
            "\n\n".join(paragraphs),
            "",
        ]
    return "\n".join(parts) + "\n"


def remove_table_of_contents(content: str) -> str:
    """Drop a '## Table of Contents' section and the separator after it."""
    lines = content.split("\n")
    kept: list[str] = []
    in_toc = False
    skip_separator = False
    for line in lines:
        if re.match(r"^## Table of Contents\s*$", line, re.IGNORECASE):
            in_toc = True
            skip_separator = True
            continue
        if in_toc:
            if line.startswith("## "):
                in_toc = False
                kept.append(line)
            elif line.strip() == "---":
                in_toc = False
                skip_separator = False
            continue
        if skip_separator and line.strip() == "---":
            skip_separator = False
            continue
        kept.append(line)
    return "\n".join(kept)
