"""Categorized documentation hub generation."""

import os
from datetime import datetime
from pathlib import Path

from .models import MarkdownDocument

OTHER = "Other"

# Ordered taxonomy: (category, icon)
CATEGORIES = [
    ("Architecture & Design", "🏗️"),
    ("Guides & Tutorials", "📚"),
    ("API Reference", "🔌"),
    ("Development", "💻"),
    ("Planning & Notes", "📝"),
    (OTHER, "📄"),
]

PATH_RULES = [
    ("/specs/", "Architecture & Design"),
    ("/guides/", "Guides & Tutorials"),
    ("/api/", "API Reference"),
]

TITLE_RULES = [
    (("architecture", "design"), "Architecture & Design"),
    (("guide", "tutorial"), "Guides & Tutorials"),
    (("api", "reference"), "API Reference"),
    (("development", "coding"), "Development"),
    (("note", "planning"), "Planning & Notes"),
]


class NavigationGenerator:
    """Builds a documentation hub that links every known document by category."""

    def __init__(self, now: datetime | None = None):
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now()

    def generate(
        self,
        all_docs: list[MarkdownDocument],
        existing_readme: MarkdownDocument | None = None,
        base_dir: Path | None = None,
    ) -> str:
        """Render the hub. Links are relative to base_dir, or to the scan root when it is None."""
        parts = [
            "# Documentation Hub",
            "",
            "*Consolidated navigation for all project documentation*",
            "",
            "---",
            "",
        ]

        if existing_readme is not None:
            parts += [
                "## Main Documentation",
                "",
                f"📖 [Project README]({_dot(link_target(existing_readme, base_dir))}) - Start here for overview",
                "",
                "---",
                "",
            ]

        categorized = self.categorize(all_docs)
        for name, icon in CATEGORIES:
            docs = categorized[name]
            if not docs:
                continue
            parts += [f"## {icon} {name}", ""]
            for doc in docs:
                parts += [
                    f"### [{doc.title}]({link_target(doc, base_dir)})",
                    "",
                    f"*{doc.word_count} words · {self.age_label(doc.last_modified)}*",
                    "",
                ]

        parts += ["---", "", f"*This index was automatically generated on {self.now.date().isoformat()}*"]
        return "\n".join(parts) + "\n"

    def categorize(self, docs: list[MarkdownDocument]) -> dict[str, list[MarkdownDocument]]:
        categorized: dict[str, list[MarkdownDocument]] = {name: [] for name, _ in CATEGORIES}
        for doc in docs:
            categorized[determine_category(doc)].append(doc)
        return categorized

    def age_label(self, modified: datetime) -> str:
        days = (self.now - modified).total_seconds() / 86400
        if days < 1:
            return "Today"
        if days < 7:
            return f"{int(days)} days ago"
        if days < 30:
            return f"{int(days // 7)} weeks ago"
        return modified.date().isoformat()


def determine_category(doc: MarkdownDocument) -> str:
    """Path substrings win over title keywords; anything else is Other."""
    path = "/" + doc.relative_path.lower()
    for fragment, category in PATH_RULES:
        if fragment in path:
            return category

    title = doc.title.lower()
    for keywords, category in TITLE_RULES:
        if any(keyword in title for keyword in keywords):
            return category
    return OTHER


def link_target(doc: MarkdownDocument, base_dir: Path | None = None) -> str:
    """Markdown link path to doc from a file living in base_dir."""
    if base_dir is None:
        return doc.relative_path
    return os.path.relpath(doc.path, Path(base_dir).absolute()).replace(os.sep, "/")


def _dot(target: str) -> str:
    return target if target.startswith("../") else f"./{target}"
