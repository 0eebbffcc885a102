"""Automated consolidation workflow across repository boundaries.

Each boundary runs through the same stages::

    SCANNING -> FILTERING -> CLUSTER_PLANNING -> EXECUTING
             -> BACKUP_INDEXING -> DELETING | ARCHIVING -> DONE

A failure in any stage is logged and the run skips ahead to backup indexing
with whatever it has. Originals are only ever removed after their backup has
been confirmed (compress) or their archived copy verified (document-archive).
"""

import logging
import re
import shutil
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Any

from .ai.provider import RelatedFileJudge, TopicSuggester, get_ai_provider
from .backup.index import append_backup_entry
from .backup.manager import BackupManager, file_hash
from .boundaries import list_boundaries
from .clustering.topics import TopicClusterer
from .config import DEFAULT_CONFIG, STATE_DIR, is_protected
from .consolidation.executor import ConsolidationExecutor
from .consolidation.planner import ConsolidationPlanner
from .consolidation.templates import remove_table_of_contents, sort_by_size
from .consolidation.validator import ConsolidationValidator
from .exceptions import BackupIntegrityError, PlanExecutionError
from .ingest.related import select_related_documents
from .ingest.scanner import MarkdownScanner
from .maintenance.readme import update_readme
from .models import (
    AutoConsolidateOptions,
    AutoConsolidateSummary,
    BoundaryResult,
    ConsolidateMode,
    ConsolidationOptions,
    ConsolidationPlan,
    ConsolidationResult,
    MarkdownDocument,
)

logger = logging.getLogger(__name__)

GENERATED_PREFIX = "CONSOLIDATED_"
ARCHIVE_DIRNAME = "documents"
LEGACY_ARTIFACT_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


class Stage(str, Enum):
    SCANNING = "scanning"
    FILTERING = "filtering"
    CLUSTER_PLANNING = "cluster-planning"
    EXECUTING = "executing"
    BACKUP_INDEXING = "backup-indexing"
    DELETING = "deleting"
    ARCHIVING = "archiving"
    DONE = "done"


class AutoConsolidateOrchestrator:
    """Runs the compress or document-archive workflow for each boundary."""

    def __init__(
        self,
        suggester: TopicSuggester | None = None,
        related_judge: RelatedFileJudge | None = None,
        protected_files: list[str] | None = None,
        scanner: MarkdownScanner | None = None,
        today: date | None = None,
    ):
        self.scanner = scanner or MarkdownScanner()
        self.clusterer = TopicClusterer(suggester)
        self.related_judge = related_judge
        self.protected = {name.lower() for name in (protected_files or DEFAULT_CONFIG["protected_files"])}
        self.validator = ConsolidationValidator()
        self._today = today

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "AutoConsolidateOrchestrator":
        provider = get_ai_provider(config)
        return cls(suggester=provider, related_judge=provider, protected_files=config.get("protected_files"))

    def run(self, options: AutoConsolidateOptions) -> AutoConsolidateSummary:
        boundaries = list_boundaries(options.target_directory, options.respect_git_boundaries)
        logger.info(f"Consolidating {len(boundaries)} boundary(ies) in {options.mode.value} mode")

        if options.parallel and len(boundaries) > 1:
            with ThreadPoolExecutor(max_workers=options.max_workers) as pool:
                results = list(pool.map(lambda root: self.run_boundary(root, options), boundaries))
        else:
            results = [self.run_boundary(root, options) for root in boundaries]

        summary = AutoConsolidateSummary(
            success=all(r.success for r in results),
            mode=options.mode,
            repositories_processed=len(results),
            boundaries=results,
        )
        for r in results:
            summary.files_processed += r.files_processed
            summary.files_deleted += r.files_deleted
            summary.files_archived += r.files_archived
            summary.consolidated_files.extend(r.consolidated_files)
            summary.readme_updated = summary.readme_updated or r.readme_updated
            summary.backup_index_created = summary.backup_index_created or r.backup_index_created
            summary.manifest_ids.extend(r.manifest_ids)
            summary.warnings.extend(r.warnings)
            summary.errors.extend(r.errors)
        return summary

    def run_boundary(self, root: Path, options: AutoConsolidateOptions) -> BoundaryResult:
        root = Path(root).resolve()
        result = BoundaryResult(root=root)
        backup = BackupManager(root / STATE_DIR / "backups")
        archive_mode = options.mode == ConsolidateMode.DOCUMENT_ARCHIVE
        executed: list[tuple[ConsolidationPlan, ConsolidationResult]] = []
        backups_confirmable = True

        try:
            self._enter(result, Stage.SCANNING)
            docs = self.scanner.scan(root, recursive=False, exclude_patterns=options.exclude_patterns)

            self._enter(result, Stage.FILTERING)
            candidates = self.filter_candidates(docs)
            if options.include_related:
                candidates += select_related_documents(root, self.related_judge, self.scanner, self.protected)
            if not candidates:
                logger.info(f"{root}: nothing to consolidate")
                self._enter(result, Stage.DONE)
                return result

            self._enter(result, Stage.CLUSTER_PLANNING)
            planner = ConsolidationPlanner(self.clusterer)
            plans = planner.create_plan(candidates, ConsolidationOptions(
                max_output_files=options.max_output_files,
                preserve_originals=archive_mode,
                output_dir=root,
            ))
            used: set[Path] = set()
            for plan in plans:
                plan.output_file = self.output_filename(root, plan, len(plans), used)

            self._enter(result, Stage.EXECUTING)
            executor = ConsolidationExecutor(backup, today=self._today)
            for plan in plans:
                try:
                    outcome = executor.execute_plan(plan)
                except PlanExecutionError as e:
                    logger.error(str(e))
                    result.errors.append(str(e))
                    continue
                except BackupIntegrityError as e:
                    logger.error(str(e))
                    result.errors.append(str(e))
                    backups_confirmable = False
                    continue
                if options.suppress_toc:
                    output = outcome.output_file
                    output.write_text(remove_table_of_contents(output.read_text(encoding="utf-8")), encoding="utf-8")
                executed.append((plan, outcome))
                result.consolidated_files.append(outcome.output_file)
                result.manifest_ids.append(outcome.manifest_id)

            if executed:
                self._validate(result, executed)
                result.readme_updated = update_readme(
                    root,
                    result.consolidated_files,
                    archive_dir=ARCHIVE_DIRNAME if archive_mode else None,
                    today=self._today,
                )
        except Exception as e:
            logger.error(f"{root}: consolidation failed during {result.stages[-1]}: {e}")
            result.errors.append(f"Consolidation failed: {e}")

        inputs = _unique_inputs(executed)
        result.files_processed = len(inputs)

        self._enter(result, Stage.BACKUP_INDEXING)
        if executed:
            try:
                append_backup_entry(
                    backup.backup_dir,
                    files=[doc.name for doc in inputs],
                    description="Auto-consolidation backup" + (" (archived)" if archive_mode else ""),
                    manifest_ids=result.manifest_ids,
                )
                result.backup_index_created = True
            except OSError as e:
                logger.error(f"{root}: could not update backup index: {e}")
                result.errors.append(f"Backup index not updated: {e}")

        if archive_mode:
            self._enter(result, Stage.ARCHIVING)
            self._archive(root, inputs, result)
        else:
            self._enter(result, Stage.DELETING)
            if not backups_confirmable:
                result.success = False
                result.errors.append("Originals kept: not every backup could be confirmed")
            else:
                self._delete_originals(backup, executed, result)
            self._purge_legacy_artifacts(root, result)

        self._enter(result, Stage.DONE)
        return result

    def filter_candidates(self, docs: list[MarkdownDocument]) -> list[MarkdownDocument]:
        """Drop protected files and outputs of earlier runs."""
        return [
            doc for doc in docs
            if not is_protected(doc.name, self.protected) and not doc.name.startswith(GENERATED_PREFIX)
        ]

    @staticmethod
    def output_filename(root: Path, plan: ConsolidationPlan, total: int, used: set[Path]) -> Path:
        """CONSOLIDATED_<TITLE>[_<STRATEGY>].md named after the largest input."""
        primary = sort_by_size(plan.inputs)[0]
        title = primary.title
        if title == "Untitled":
            title = primary.metadata.headings[0] if primary.metadata.headings else primary.path.stem
        slug = re.sub(r"\s+", "_", re.sub(r"[^a-zA-Z0-9\s-]", "", title).strip()).upper()[:50] or "DOCS"
        suffix = f"_{plan.strategy.value.split('-')[0].upper()}" if total > 1 else ""

        candidate = root / f"{GENERATED_PREFIX}{slug}{suffix}.md"
        counter = 2
        while candidate in used or candidate.exists():
            candidate = root / f"{GENERATED_PREFIX}{slug}{suffix}_{counter}.md"
            counter += 1
        used.add(candidate)
        return candidate

    def _validate(self, result: BoundaryResult, executed: list[tuple[ConsolidationPlan, ConsolidationResult]]) -> None:
        validation = self.validator.validate(
            _unique_inputs(executed),
            [outcome.output_file for _, outcome in executed],
        )
        result.warnings.extend(f"Validation error: {e}" for e in validation.errors)
        result.warnings.extend(validation.warnings)
        for message in validation.errors:
            logger.warning(f"{result.root}: {message}")

    def _delete_originals(
        self,
        backup: BackupManager,
        executed: list[tuple[ConsolidationPlan, ConsolidationResult]],
        result: BoundaryResult,
    ) -> None:
        """Delete consolidated inputs, but only once every backup is confirmed."""
        to_delete: dict[Path, None] = {}
        try:
            for plan, outcome in executed:
                manifest = backup.load_manifest(outcome.manifest_id)
                entries = {entry.source_path: entry for entry in manifest.entries}
                for doc in plan.inputs:
                    entry = entries.get(str(doc.path.resolve()))
                    if entry is None or not backup.confirm(entry):
                        raise BackupIntegrityError(f"No confirmed backup for {doc.path}")
                    to_delete[doc.path] = None
        except BackupIntegrityError as e:
            logger.error(f"{result.root}: {e}; keeping all originals")
            result.errors.append(str(e))
            result.success = False
            return

        for path in to_delete:
            try:
                path.unlink()
                result.files_deleted += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not delete {path}: {e}")
                result.warnings.append(f"Could not delete {path.name}: {e}")

    def _archive(self, root: Path, inputs: list[MarkdownDocument], result: BoundaryResult) -> None:
        """Copy originals into documents/, then remove the verified root copies."""
        if not inputs:
            return
        archive_dir = root / ARCHIVE_DIRNAME
        try:
            archive_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"{root}: cannot create {ARCHIVE_DIRNAME}/, keeping originals: {e}")
            result.errors.append(f"Originals kept: cannot create {ARCHIVE_DIRNAME}/: {e}")
            result.success = False
            return
        for doc in inputs:
            if archive_dir in doc.path.parents:
                continue
            try:
                destination = _archive_destination(doc.path, archive_dir)
                if not destination.exists():
                    shutil.copy2(doc.path, destination)
                if file_hash(destination) != file_hash(doc.path):
                    raise BackupIntegrityError(f"Archived copy of {doc.name} does not match the original")
                doc.path.unlink()
                result.files_archived += 1
            except (OSError, BackupIntegrityError) as e:
                logger.error(f"{root}: could not archive {doc.name}: {e}")
                result.errors.append(f"Could not archive {doc.name}: {e}")

    @staticmethod
    def _purge_legacy_artifacts(root: Path, result: BoundaryResult) -> None:
        try:
            for path in root.iterdir():
                if path.is_file() and LEGACY_ARTIFACT_RE.match(path.name):
                    path.unlink()
                    result.legacy_artifacts_removed += 1
        except OSError as e:
            logger.warning(f"{root}: could not remove legacy backup artifacts: {e}")
            result.warnings.append(f"Legacy artifacts not removed: {e}")

    @staticmethod
    def _enter(result: BoundaryResult, stage: Stage) -> None:
        logger.debug(f"{result.root}: {stage.value}")
        result.stages.append(stage.value)


def _unique_inputs(executed: list[tuple[ConsolidationPlan, ConsolidationResult]]) -> list[MarkdownDocument]:
    return list(dict.fromkeys(doc for plan, _ in executed for doc in plan.inputs))


def _archive_destination(source: Path, archive_dir: Path) -> Path:
    """Same name in the archive unless a different file already holds it."""
    destination = archive_dir / source.name
    counter = 1
    while destination.exists() and file_hash(destination) != file_hash(source):
        destination = archive_dir / f"{source.stem}_{counter}{source.suffix}"
        counter += 1
    return destination
