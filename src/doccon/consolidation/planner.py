"""Turn topic clusters into executable consolidation plans."""

import logging
from pathlib import Path, PurePosixPath

from ..analysis.relevance import RelevanceAnalyzer
from ..clustering.topics import TopicClusterer
from ..models import (
    ClusterStrategy,
    ConsolidationOptions,
    ConsolidationPlan,
    MarkdownDocument,
    PlanStrategy,
    RelevanceStatus,
)

logger = logging.getLogger(__name__)

HUB_FILENAME = "DOCS_HUB.md"
ARCHIVE_DIRNAME = "archive"
FOLDER_INDEX_FILENAME = "INDEX.md"


class ConsolidationPlanner:
    """Creates an ordered list of plans bounded by ``max_output_files``."""

    def __init__(self, clusterer: TopicClusterer, analyzer: RelevanceAnalyzer | None = None):
        self.clusterer = clusterer
        self.analyzer = analyzer or RelevanceAnalyzer()

    def create_plan(self, docs: list[MarkdownDocument], options: ConsolidationOptions) -> list[ConsolidationPlan]:
        if not docs:
            return []
        output_dir = Path(options.output_dir) if options.output_dir else docs[0].root
        used: set[Path] = set()
        plans = []

        clusters = self.clusterer.cluster_by_topic(docs)
        for cluster in clusters[:options.max_output_files]:
            match cluster.strategy:
                case ClusterStrategy.MERGE:
                    strategy, confidence = PlanStrategy.MERGE_BY_TOPIC, 0.85
                    reasoning = f"Merge {len(cluster.documents)} files on topic: {cluster.description}"
                case ClusterStrategy.SUMMARIZE:
                    strategy, confidence = PlanStrategy.SUMMARIZE_CLUSTER, 0.90
                    reasoning = f"Summarize {len(cluster.documents)} similar files: {cluster.description}"
                case ClusterStrategy.LINK_ONLY:
                    logger.debug(f"Cluster {cluster.name} is link-only, no plan")
                    continue

            plans.append(ConsolidationPlan(
                strategy=strategy,
                inputs=list(cluster.documents),
                output_file=unique_path(output_dir / PurePosixPath(cluster.suggested_filename).name, used),
                preserve_originals=options.preserve_originals,
                confidence=confidence,
                reasoning=reasoning,
            ))

        if options.archive_stale:
            stale = [
                score.document for score in self.analyzer.analyze_all(docs)
                if score.status == RelevanceStatus.STALE
            ]
            if stale:
                plans.append(ConsolidationPlan(
                    strategy=PlanStrategy.ARCHIVE_STALE,
                    inputs=stale,
                    output_file=output_dir / ARCHIVE_DIRNAME,
                    preserve_originals=options.preserve_originals,
                    confidence=0.75,
                    reasoning=f"Archive {len(stale)} stale files",
                ))

        if options.create_super_readme:
            plans.append(ConsolidationPlan(
                strategy=PlanStrategy.CREATE_SUPER_README,
                inputs=list(docs),
                output_file=unique_path(output_dir / HUB_FILENAME, used),
                preserve_originals=True,
                confidence=0.95,
                reasoning=f"Navigation hub for {len(docs)} files",
            ))

        return plans

    def plan_folder_indexes(self, docs: list[MarkdownDocument], options: ConsolidationOptions) -> list[ConsolidationPlan]:
        """One merge-by-folder index per directory containing documents."""
        folders: dict[Path, list[MarkdownDocument]] = {}
        for doc in docs:
            if doc.name.lower() == FOLDER_INDEX_FILENAME.lower():
                continue
            folders.setdefault(doc.path.parent, []).append(doc)

        used: set[Path] = set()
        return [
            ConsolidationPlan(
                strategy=PlanStrategy.MERGE_BY_FOLDER,
                inputs=members,
                output_file=unique_path(folder / FOLDER_INDEX_FILENAME, used),
                preserve_originals=True,
                confidence=0.95,
                reasoning=f"Index {len(members)} files in {folder.name}",
            )
            for folder, members in sorted(folders.items())
        ]


def unique_path(path: Path, used: set[Path]) -> Path:
    """Return path, or path with a numeric suffix, not yet in used or on disk."""
    candidate = path
    counter = 2
    while candidate in used or candidate.exists():
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        counter += 1
    used.add(candidate)
    return candidate
