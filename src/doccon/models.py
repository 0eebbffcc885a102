"""Data models used throughout doccon."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any


class ClusterStrategy(str, Enum):
    MERGE = "merge"
    SUMMARIZE = "summarize"
    LINK_ONLY = "link-only"


class PlanStrategy(str, Enum):
    MERGE_BY_TOPIC = "merge-by-topic"
    MERGE_BY_FOLDER = "merge-by-folder"
    SUMMARIZE_CLUSTER = "summarize-cluster"
    CREATE_SUPER_README = "create-super-readme"
    ARCHIVE_STALE = "archive-stale"


class RelevanceStatus(str, Enum):
    HIGHLY_RELEVANT = "highly-relevant"
    RELEVANT = "relevant"
    MARGINAL = "marginal"
    STALE = "stale"


class ConsolidateMode(str, Enum):
    COMPRESS = "compress"
    DOCUMENT_ARCHIVE = "document-archive"


@dataclass(frozen=True)
class DocumentMetadata:
    """Structural metadata extracted from a markdown document."""
    title: str
    headings: list[str] = field(default_factory=list)
    word_count: int = 0
    link_count: int = 0
    code_block_count: int = 0
    image_count: int = 0
    frontmatter: dict[str, Any] | None = None


@dataclass(frozen=True, eq=False)
class MarkdownDocument:
    """A markdown file discovered by the scanner.

    Identity is the absolute path; instances are never mutated after a scan.
    """
    path: Path
    relative_path: str
    name: str
    size: int
    last_modified: datetime
    content: str
    metadata: DocumentMetadata
    body: str = ""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MarkdownDocument):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def title(self) -> str:
        return self.metadata.title

    @property
    def word_count(self) -> int:
        return self.metadata.word_count

    @property
    def root(self) -> Path:
        """The directory this document was scanned from."""
        depth = len(PurePosixPath(self.relative_path).parts)
        return self.path.parents[depth - 1] if depth else self.path.parent


@dataclass
class RelevanceFactors:
    """Four independent relevance factors, each in [0, 25]."""
    recency: int
    content_quality: int
    connectivity: int
    uniqueness: int

    def total(self) -> int:
        return self.recency + self.content_quality + self.connectivity + self.uniqueness


def status_for_score(score: int) -> RelevanceStatus:
    if score >= 75:
        return RelevanceStatus.HIGHLY_RELEVANT
    if score >= 50:
        return RelevanceStatus.RELEVANT
    if score >= 30:
        return RelevanceStatus.MARGINAL
    return RelevanceStatus.STALE


@dataclass
class RelevanceScore:
    document: MarkdownDocument
    factors: RelevanceFactors
    reasoning: str = ""

    @property
    def score(self) -> int:
        return self.factors.total()

    @property
    def status(self) -> RelevanceStatus:
        return status_for_score(self.score)


@dataclass
class TopicCluster:
    """A named group of documents destined for one consolidated output."""
    name: str
    description: str
    documents: list[MarkdownDocument]
    suggested_filename: str
    strategy: ClusterStrategy = ClusterStrategy.MERGE
    reasoning: str = ""


@dataclass
class ConsolidationOptions:
    max_output_files: int = 5
    preserve_originals: bool = True
    create_super_readme: bool = False
    archive_stale: bool = False
    output_dir: Path | None = None


@dataclass
class ConsolidationPlan:
    """The executable unit turning one cluster into one output file."""
    strategy: PlanStrategy
    inputs: list[MarkdownDocument]
    output_file: Path
    preserve_originals: bool = True
    confidence: float = 0.0
    reasoning: str = ""


@dataclass
class ConsolidationResult:
    success: bool
    output_file: Path
    input_count: int
    action: str
    manifest_id: str = ""
    error: str = ""


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class BackupEntry:
    """A snapshot of one file taken before it is changed or removed."""
    id: str
    timestamp: str
    operation: str
    source_path: str
    size: int
    mode: int
    sha256: str


@dataclass
class BackupManifest:
    id: str
    timestamp: str
    entries: list[BackupEntry] = field(default_factory=list)
    reversible: bool = True


@dataclass
class AutoConsolidateOptions:
    target_directory: Path
    mode: ConsolidateMode = ConsolidateMode.COMPRESS
    max_output_files: int = 5
    suppress_toc: bool = False
    respect_git_boundaries: bool = True
    include_related: bool = False
    parallel: bool = False
    max_workers: int = 4
    exclude_patterns: list[str] = field(default_factory=list)


@dataclass
class BoundaryResult:
    """Outcome of one auto-consolidate run over a single repository boundary."""
    root: Path
    success: bool = True
    files_processed: int = 0
    files_deleted: int = 0
    files_archived: int = 0
    consolidated_files: list[Path] = field(default_factory=list)
    readme_updated: bool = False
    backup_index_created: bool = False
    legacy_artifacts_removed: int = 0
    manifest_ids: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.consolidated_files or self.files_deleted or self.files_archived)


@dataclass
class AutoConsolidateSummary:
    success: bool
    mode: ConsolidateMode
    repositories_processed: int = 0
    files_processed: int = 0
    files_deleted: int = 0
    files_archived: int = 0
    consolidated_files: list[Path] = field(default_factory=list)
    readme_updated: bool = False
    backup_index_created: bool = False
    manifest_ids: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    boundaries: list[BoundaryResult] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(b.changed for b in self.boundaries)
