"""Back up inputs, render consolidated content and write it out."""

import logging
import shutil
from datetime import date
from pathlib import Path

from ..backup.manager import BackupManager
from ..exceptions import PlanExecutionError
from ..models import ConsolidationPlan, ConsolidationResult, MarkdownDocument, PlanStrategy
from ..navigation import NavigationGenerator
from .templates import render_merge_by_folder, render_merge_by_topic, render_summary

logger = logging.getLogger(__name__)


class ConsolidationExecutor:
    """Executes consolidation plans one at a time.

    Every input is backed up before anything is written. The executor never
    deletes originals or restores backups itself, except that archive-stale
    plans relocate their inputs.
    """

    def __init__(
        self,
        backup: BackupManager,
        navigation: NavigationGenerator | None = None,
        today: date | None = None,
    ):
        self.backup = backup
        self.navigation = navigation or NavigationGenerator()
        self._today = today

    def execute_plan(self, plan: ConsolidationPlan) -> ConsolidationResult:
        entries = [self.backup.backup_file(doc.path, "modify") for doc in plan.inputs]
        manifest = self.backup.create_manifest(entries)
        logger.debug(f"Backed up {len(entries)} file(s) under manifest {manifest.id}")

        output = Path(plan.output_file)
        try:
            match plan.strategy:
                case PlanStrategy.MERGE_BY_TOPIC:
                    self._write(output, render_merge_by_topic(plan.inputs, self._today or date.today()))
                case PlanStrategy.MERGE_BY_FOLDER:
                    self._write(output, render_merge_by_folder(plan.inputs))
                case PlanStrategy.SUMMARIZE_CLUSTER:
                    self._write(output, render_summary(plan.inputs))
                case PlanStrategy.CREATE_SUPER_README:
                    readme = next((d for d in plan.inputs if d.name.lower() == "readme.md"), None)
                    self._write(output, self.navigation.generate(plan.inputs, readme, base_dir=output.parent))
                case PlanStrategy.ARCHIVE_STALE:
                    self._relocate(plan.inputs, output, plan.preserve_originals)
        except OSError as e:
            raise PlanExecutionError(f"Failed to execute {plan.strategy.value} into {output}: {e}") from e

        logger.info(f"{plan.strategy.value}: {len(plan.inputs)} file(s) -> {output}")
        return ConsolidationResult(
            success=True,
            output_file=output,
            input_count=len(plan.inputs),
            action=plan.strategy.value,
            manifest_id=manifest.id,
        )

    def execute_all(self, plans: list[ConsolidationPlan]) -> list[ConsolidationResult]:
        """Run plans in order; a failed plan does not stop its siblings."""
        results = []
        for plan in plans:
            try:
                results.append(self.execute_plan(plan))
            except PlanExecutionError as e:
                logger.error(str(e))
                results.append(ConsolidationResult(
                    success=False,
                    output_file=Path(plan.output_file),
                    input_count=len(plan.inputs),
                    action=plan.strategy.value,
                    error=str(e),
                ))
        return results

    @staticmethod
    def _write(output: Path, content: str) -> None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")

    @staticmethod
    def _relocate(docs: list[MarkdownDocument], target_dir: Path, preserve_originals: bool) -> None:
        target_dir.mkdir(parents=True, exist_ok=True)
        for doc in docs:
            destination = target_dir / doc.name
            counter = 1
            while destination.exists():
                destination = target_dir / f"{doc.path.stem}_{counter}{doc.path.suffix}"
                counter += 1
            if preserve_originals:
                shutil.copy2(doc.path, destination)
            else:
                shutil.move(str(doc.path), destination)
