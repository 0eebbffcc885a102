"""Four-factor relevance scoring for markdown documents."""

import re
from datetime import datetime

from ..models import MarkdownDocument, RelevanceFactors, RelevanceScore

LINK_TARGET_RE = re.compile(r"\[.*?\]\((.*?)\)")
MAX_FACTOR = 25


class RelevanceAnalyzer:
    """Scores recency, content quality, connectivity and uniqueness.

    Each factor is worth 0-25 points; the total classifies a document as
    highly-relevant, relevant, marginal or stale.
    """

    def __init__(self, now: datetime | None = None):
        self._now = now

    @property
    def now(self) -> datetime:
        return self._now or datetime.now()

    def analyze_relevance(self, doc: MarkdownDocument, all_docs: list[MarkdownDocument]) -> RelevanceScore:
        factors = RelevanceFactors(
            recency=self.score_recency(doc),
            content_quality=self.score_content_quality(doc),
            connectivity=self.score_connectivity(doc, all_docs),
            uniqueness=self.score_uniqueness(doc, all_docs),
        )
        return RelevanceScore(document=doc, factors=factors, reasoning=self._reasoning(factors))

    def analyze_all(self, docs: list[MarkdownDocument]) -> list[RelevanceScore]:
        return [self.analyze_relevance(doc, docs) for doc in docs]

    def score_recency(self, doc: MarkdownDocument) -> int:
        age_days = (self.now - doc.last_modified).total_seconds() / 86400
        if age_days <= 7:
            return 25
        if age_days <= 30:
            return 20
        if age_days <= 90:
            return 15
        if age_days <= 180:
            return 10
        return 5

    def score_content_quality(self, doc: MarkdownDocument) -> int:
        meta = doc.metadata
        score = 0

        if meta.word_count >= 500:
            score += 10
        elif meta.word_count >= 200:
            score += 7
        elif meta.word_count >= 50:
            score += 4
        else:
            score += 1

        headings = len(meta.headings)
        if headings >= 5:
            score += 8
        elif headings >= 3:
            score += 5
        elif headings >= 1:
            score += 3

        if meta.code_block_count >= 3:
            score += 4
        elif meta.code_block_count >= 1:
            score += 2

        if meta.link_count >= 5:
            score += 3
        elif meta.link_count >= 1:
            score += 2

        return min(MAX_FACTOR, score)

    def score_connectivity(self, doc: MarkdownDocument, all_docs: list[MarkdownDocument]) -> int:
        inbound = self.count_inbound_links(doc, all_docs)
        outbound = self.count_outbound_links(doc)
        return min(MAX_FACTOR, min(15, inbound * 3) + min(10, outbound * 2))

    def score_uniqueness(self, doc: MarkdownDocument, all_docs: list[MarkdownDocument]) -> int:
        similar = len(self.find_similar(doc, all_docs))
        if similar == 0:
            return 25
        if similar == 1:
            return 20
        if similar <= 3:
            return 15
        if similar <= 5:
            return 10
        return 5

    @staticmethod
    def count_inbound_links(doc: MarkdownDocument, all_docs: list[MarkdownDocument]) -> int:
        """Other documents whose text mentions this file's name or path."""
        count = 0
        for other in all_docs:
            if other.path == doc.path:
                continue
            if doc.name in other.content or doc.relative_path in other.content:
                count += 1
        return count

    @staticmethod
    def count_outbound_links(doc: MarkdownDocument) -> int:
        """Links from this document to local markdown files."""
        count = 0
        for target in LINK_TARGET_RE.findall(doc.content):
            target = target.strip().split("#", 1)[0]
            if target.endswith(".md") and not re.match(r"^[a-z][a-z0-9+.-]*://", target, re.I):
                count += 1
        return count

    def find_similar(self, doc: MarkdownDocument, all_docs: list[MarkdownDocument]) -> list[MarkdownDocument]:
        return [
            other for other in all_docs
            if other.path != doc.path and title_similarity(doc.title, other.title) > 0.7
        ]

    @staticmethod
    def _reasoning(factors: RelevanceFactors) -> str:
        low, high = MAX_FACTOR * 0.4, MAX_FACTOR * 0.8
        reasons = []

        if factors.recency < low:
            reasons.append("Not modified in 6+ months (low recency)")
        elif factors.recency >= high:
            reasons.append("Recently modified (high recency)")

        if factors.content_quality < low:
            reasons.append("Minimal content or structure (low quality)")
        elif factors.content_quality >= high:
            reasons.append("Well-structured with good content (high quality)")

        if factors.connectivity < low:
            reasons.append("Rarely referenced by other files (low connectivity)")
        elif factors.connectivity >= high:
            reasons.append("Well-connected to other documentation (high connectivity)")

        if factors.uniqueness < low:
            reasons.append("Content duplicated elsewhere (low uniqueness)")
        elif factors.uniqueness >= high:
            reasons.append("Contains unique information (high uniqueness)")

        return "; ".join(reasons) if reasons else "Standard documentation file"


def title_similarity(title_a: str, title_b: str) -> float:
    """Jaccard similarity of lowercase title word sets."""
    words_a = set(title_a.lower().split())
    words_b = set(title_b.lower().split())
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)
