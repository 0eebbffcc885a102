"""Group documents into topic clusters.

Clusters come from the AI topic suggester when one is available. Without one,
or whenever it fails, documents are grouped by their top-level directory,
which is fully deterministic.
"""

import logging
import re
from datetime import datetime
from typing import Any

from ..ai.prompts import CLUSTERING_PROMPT, FILE_SUMMARY_TEMPLATE
from ..ai.provider import ClusteringRequest, TopicSuggester, extract_json_object, is_list_index
from ..exceptions import AIClusteringFailure
from ..models import ClusterStrategy, MarkdownDocument, TopicCluster

logger = logging.getLogger(__name__)


class TopicClusterer:
    """Clusters markdown documents by topic."""

    def __init__(self, suggester: TopicSuggester | None = None, now: datetime | None = None):
        self.suggester = suggester
        self._now = now

    def cluster_by_topic(self, docs: list[MarkdownDocument]) -> list[TopicCluster]:
        if not docs:
            return []
        if self.suggester is None:
            return self.fallback_clusters(docs)

        try:
            return self._ai_clusters(docs)
        except AIClusteringFailure as e:
            logger.warning(f"AI clustering unusable, grouping by directory: {e}")
        except Exception as e:
            logger.warning(f"AI clustering failed, grouping by directory: {e}")
        return self.fallback_clusters(docs)

    def _ai_clusters(self, docs: list[MarkdownDocument]) -> list[TopicCluster]:
        request = ClusteringRequest(prompt=self.build_prompt(docs), document_count=len(docs))
        response = self.suggester.suggest_topics(request)
        try:
            data = extract_json_object(response.text)
        except ValueError as e:
            raise AIClusteringFailure(str(e)) from e

        clusters = self.parse_clusters(data, docs)
        if not clusters:
            raise AIClusteringFailure("response contained no usable clusters")
        return clusters

    def build_prompt(self, docs: list[MarkdownDocument]) -> str:
        summaries = []
        for i, doc in enumerate(docs, 1):
            headings = doc.metadata.headings
            summaries.append(FILE_SUMMARY_TEMPLATE.format(
                index=i,
                name=doc.name,
                words=doc.word_count,
                title=doc.title,
                age=self.format_age(doc.last_modified),
                headings=", ".join(headings[:3]) + ("..." if len(headings) > 3 else ""),
                preview=doc.content[:200],
            ))
        return CLUSTERING_PROMPT.format(count=len(docs), files="\n\n".join(summaries))

    def format_age(self, modified: datetime) -> str:
        days = ((self._now or datetime.now()) - modified).total_seconds() / 86400
        if days < 7:
            return f"{int(days)} days"
        if days < 30:
            return f"{int(days // 7)} weeks"
        if days < 365:
            return f"{int(days // 30)} months"
        return f"{int(days // 365)} years"

    @staticmethod
    def parse_clusters(data: dict[str, Any], docs: list[MarkdownDocument]) -> list[TopicCluster]:
        """Map an AI clustering payload back onto documents.

        Indices are 1-based; ones that do not resolve to a document are
        dropped, and clusters left empty are skipped.
        """
        raw_clusters = data.get("clusters")
        if not isinstance(raw_clusters, list):
            raise AIClusteringFailure("'clusters' is missing or not a list")

        clusters = []
        for raw in raw_clusters:
            if not isinstance(raw, dict):
                continue
            members: list[MarkdownDocument] = []
            for index in raw.get("fileIndices") or []:
                if not is_list_index(index, len(docs)) or docs[index - 1] in members:
                    continue
                members.append(docs[index - 1])
            if not members:
                continue

            name = str(raw.get("name") or "Documentation")
            try:
                strategy = ClusterStrategy(raw.get("consolidationStrategy", "merge"))
            except ValueError:
                logger.warning(f"Unknown strategy {raw.get('consolidationStrategy')!r} for {name}, using merge")
                strategy = ClusterStrategy.MERGE

            filename = str(raw.get("suggestedFilename") or "").strip()
            if not filename:
                filename = _filename_from_name(name)
            elif not filename.lower().endswith(".md"):
                filename += ".md"

            clusters.append(TopicCluster(
                name=name,
                description=str(raw.get("description") or ""),
                documents=members,
                suggested_filename=filename,
                strategy=strategy,
                reasoning=str(raw.get("reasoning") or ""),
            ))
        return clusters

    @staticmethod
    def fallback_clusters(docs: list[MarkdownDocument]) -> list[TopicCluster]:
        """Group by first path segment of the relative path ("root" if none)."""
        groups: dict[str, list[MarkdownDocument]] = {}
        for doc in docs:
            parts = doc.relative_path.split("/")
            key = parts[0] if len(parts) > 1 else "root"
            groups.setdefault(key, []).append(doc)

        return [
            TopicCluster(
                name=key[:1].upper() + key[1:],
                description=f"Files from {key} directory",
                documents=members,
                suggested_filename=f"{key.upper()}.md",
                strategy=ClusterStrategy.MERGE,
            )
            for key, members in groups.items()
        ]


def _filename_from_name(name: str) -> str:
    slug = re.sub(r"[^a-zA-Z0-9]+", "_", name).strip("_").upper()
    return f"{slug or 'CONSOLIDATED'}.md"
