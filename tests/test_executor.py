"""Tests for plan execution and the consolidated document templates."""

from datetime import date

from doccon.backup.manager import BackupManager
from doccon.consolidation.executor import ConsolidationExecutor
from doccon.consolidation.templates import infer_topic_title, remove_table_of_contents, render_merge_by_topic
from doccon.ingest.scanner import MarkdownScanner
from doccon.models import ConsolidationPlan, PlanStrategy

TODAY = date(2024, 1, 2)


def _setup(tmp_path):
    docs_dir = tmp_path / "docs"
    docs_dir.mkdir()
    (docs_dir / "small.md").write_text("# Deployment Checklist\n\nCheck the servers before release.\n")
    (docs_dir / "large.md").write_text(
        "# Deployment Guide\n\nThe full deployment procedure lives here and is long.\n\n"
        "## Steps\n\nBuild, test, release and verify every stage of the rollout.\n"
    )
    docs = MarkdownScanner().scan(docs_dir)
    executor = ConsolidationExecutor(BackupManager(tmp_path / "backups"), today=TODAY)
    return docs_dir, docs, executor


def test_merge_by_topic(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    plan = ConsolidationPlan(PlanStrategy.MERGE_BY_TOPIC, docs, docs_dir / "MERGED.md")
    result = executor.execute_plan(plan)

    assert result.success
    assert result.input_count == 2
    assert result.action == "merge-by-topic"
    content = (docs_dir / "MERGED.md").read_text()
    assert content.startswith("# Deployment")
    assert "*Consolidated from 2 files on 2024-01-02*" in content
    assert "## Table of Contents" in content
    assert "*Originally from: large.md*" in content
    assert "## Source Files" in content
    # largest document first
    assert content.index("## Deployment Guide") < content.index("## Deployment Checklist")


def test_every_input_backed_up_before_write(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    result = executor.execute_plan(ConsolidationPlan(PlanStrategy.MERGE_BY_TOPIC, docs, docs_dir / "MERGED.md"))

    manifest = executor.backup.load_manifest(result.manifest_id)
    assert sorted(entry.source_path for entry in manifest.entries) == sorted(str(d.path.resolve()) for d in docs)
    assert all(entry.operation == "modify" for entry in manifest.entries)
    assert all(executor.backup.confirm(entry) for entry in manifest.entries)
    # originals untouched
    assert (docs_dir / "small.md").exists()
    assert (docs_dir / "large.md").exists()


def test_summarize_cluster(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    executor.execute_plan(ConsolidationPlan(PlanStrategy.SUMMARIZE_CLUSTER, docs, docs_dir / "SUMMARY.md"))
    content = (docs_dir / "SUMMARY.md").read_text()
    assert content.startswith("# Summary: Deployment")
    assert "## Overview" in content
    assert "## Detailed Content" in content
    assert "*Source: small.md*" in content


def test_merge_by_folder(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    executor.execute_plan(ConsolidationPlan(PlanStrategy.MERGE_BY_FOLDER, docs, docs_dir / "INDEX.md"))
    content = (docs_dir / "INDEX.md").read_text()
    assert content.startswith("# docs Documentation")
    assert "## [Deployment Guide](./large.md)" in content
    assert "- Steps" in content


def test_super_readme(tmp_path):
    docs_dir, _, executor = _setup(tmp_path)
    (docs_dir / "README.md").write_text("# Project\n")
    docs = MarkdownScanner().scan(docs_dir)
    executor.execute_plan(ConsolidationPlan(PlanStrategy.CREATE_SUPER_README, docs, docs_dir / "DOCS_HUB.md"))
    content = (docs_dir / "DOCS_HUB.md").read_text()
    assert content.startswith("# Documentation Hub")
    assert "## Main Documentation" in content
    assert "(./README.md)" in content


def test_super_readme_links_resolve_from_hub_location(tmp_path):
    docs_dir, _, executor = _setup(tmp_path)
    (docs_dir / "README.md").write_text("# Project\n")
    docs = MarkdownScanner().scan(docs_dir)
    hub = tmp_path / "out" / "DOCS_HUB.md"
    executor.execute_plan(ConsolidationPlan(PlanStrategy.CREATE_SUPER_README, docs, hub))

    content = hub.read_text()
    assert "(../docs/README.md)" in content
    assert "(../docs/large.md)" in content
    assert "(large.md)" not in content


def test_archive_stale_copies_or_moves(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    archive = docs_dir / "archive"
    executor.execute_plan(ConsolidationPlan(PlanStrategy.ARCHIVE_STALE, docs[:1], archive, preserve_originals=True))
    assert (archive / docs[0].name).exists()
    assert docs[0].path.exists()

    executor.execute_plan(ConsolidationPlan(PlanStrategy.ARCHIVE_STALE, docs[:1], archive, preserve_originals=False))
    assert not docs[0].path.exists()
    stem = docs[0].path.stem
    assert (archive / f"{stem}_1.md").exists()


def test_failed_plan_does_not_stop_siblings(tmp_path):
    docs_dir, docs, executor = _setup(tmp_path)
    blocker = docs_dir / "blocker"
    blocker.write_text("a file, not a directory")
    plans = [
        ConsolidationPlan(PlanStrategy.MERGE_BY_TOPIC, docs, blocker / "OUT.md"),
        ConsolidationPlan(PlanStrategy.MERGE_BY_TOPIC, docs, docs_dir / "OK.md"),
    ]
    results = executor.execute_all(plans)

    assert [r.success for r in results] == [False, True]
    assert "merge-by-topic" in results[0].error
    assert (docs_dir / "OK.md").exists()


def test_infer_topic_title(make_doc):
    docs = [make_doc("# Deployment Guide\n", "a.md"), make_doc("# Deployment Checklist\n", "b.md")]
    assert infer_topic_title(docs).startswith("Deployment")
    assert infer_topic_title([make_doc("# A b\n", "c.md")]) == "Consolidated Documentation"


def test_remove_table_of_contents(make_doc):
    docs = [make_doc("# One\n\nFirst body.\n", "one.md"), make_doc("# Two\n\nSecond body.\n", "two.md")]
    content = remove_table_of_contents(render_merge_by_topic(docs, TODAY))
    assert "Table of Contents" not in content
    assert "- [One](#one)" not in content
    assert "## One" in content
    assert "## Two" in content
    assert "## Source Files" in content
