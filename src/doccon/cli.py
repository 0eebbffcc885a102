"""CLI entry point for doccon."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import DEFAULT_CONFIG, STATE_DIR, load_config
from .exceptions import DocconError

console = Console()


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Path to config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, config_path, verbose):
    """doccon - Consolidate scattered markdown documentation."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def _get_config(ctx) -> dict:
    try:
        config = load_config(ctx.obj.get("config_path"))
    except ValueError as e:
        console.print(f"[red]{e}[/]")
        raise click.Abort()
    level = "DEBUG" if ctx.obj.get("verbose") else config["logging"]["level"]
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return config


def _scan(config: dict, path: str, recursive: bool = True):
    from .ingest.scanner import MarkdownScanner

    scan_cfg = config["scan"]
    return MarkdownScanner().scan(
        path,
        recursive=recursive,
        exclude_patterns=scan_cfg.get("exclude_patterns", []),
        include_hidden=scan_cfg.get("include_hidden", False),
    )


@cli.command()
@click.option("--path", default=".", help="Directory to write doccon.yaml into")
def init(path):
    """Write a starter doccon.yaml."""
    import yaml

    config_file = Path(path).expanduser().resolve() / "doccon.yaml"
    if config_file.exists():
        console.print(f"[yellow]Config already exists: {config_file}[/]")
        return
    header = (
        "# Claude API key for topic clustering (or set ANTHROPIC_API_KEY env var)\n"
        "# ai:\n"
        "#   api_key: sk-ant-your-key-here\n\n"
    )
    config_file.write_text(header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False))
    console.print(f"[bold green]✓ Created config: {config_file}[/]")


@cli.command()
@click.argument("path", default=".")
@click.option("--no-recursive", is_flag=True, help="Only scan the top-level directory")
@click.pass_context
def scan(ctx, path, no_recursive):
    """List markdown files and their structure."""
    config = _get_config(ctx)
    docs = _scan(config, path, recursive=not no_recursive)
    if not docs:
        console.print("[yellow]No markdown files found.[/]")
        return

    table = Table(title=f"{len(docs)} markdown file(s)")
    table.add_column("File", style="cyan")
    table.add_column("Title")
    table.add_column("Words", justify="right")
    table.add_column("Headings", justify="right")
    table.add_column("Links", justify="right")
    for doc in docs:
        meta = doc.metadata
        table.add_row(doc.relative_path, meta.title, str(meta.word_count), str(len(meta.headings)), str(meta.link_count))
    console.print(table)


@cli.command()
@click.argument("path", default=".")
@click.pass_context
def analyze(ctx, path):
    """Score every markdown file for relevance."""
    from .analysis.relevance import RelevanceAnalyzer

    config = _get_config(ctx)
    docs = _scan(config, path)
    scores = sorted(RelevanceAnalyzer().analyze_all(docs), key=lambda s: s.score, reverse=True)

    colors = {"highly-relevant": "green", "relevant": "cyan", "marginal": "yellow", "stale": "red"}
    table = Table(title="Relevance")
    table.add_column("File", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    table.add_column("Reasoning", max_width=60)
    for s in scores:
        color = colors[s.status.value]
        table.add_row(s.document.relative_path, str(s.score), f"[{color}]{s.status.value}[/]", s.reasoning)
    console.print(table)


def _planner(config: dict):
    from .ai.provider import get_ai_provider
    from .clustering.topics import TopicClusterer
    from .consolidation.planner import ConsolidationPlanner

    return ConsolidationPlanner(TopicClusterer(get_ai_provider(config)))


def _options(config: dict, path: str, **overrides):
    from .models import ConsolidationOptions

    cons = dict(config["consolidation"])
    cons.update({k: v for k, v in overrides.items() if v})
    return ConsolidationOptions(
        max_output_files=cons["max_output_files"],
        preserve_originals=cons["preserve_originals"],
        create_super_readme=cons["create_super_readme"],
        archive_stale=cons["archive_stale"],
        output_dir=Path(path).resolve(),
    )


@cli.command()
@click.argument("path", default=".")
@click.option("--max-output-files", type=int, default=None, help="Maximum number of consolidated files")
@click.pass_context
def plan(ctx, path, max_output_files):
    """Show the consolidation plan without writing anything."""
    config = _get_config(ctx)
    docs = _scan(config, path)
    if not docs:
        console.print("[yellow]No markdown files found.[/]")
        return

    plans = _planner(config).create_plan(docs, _options(config, path, max_output_files=max_output_files))
    if not plans:
        console.print("[yellow]Nothing to consolidate.[/]")
        return
    for p in plans:
        console.print(f"[bold cyan]{p.strategy.value}[/] → {p.output_file} [dim](confidence {p.confidence:.2f})[/]")
        console.print(f"  {p.reasoning}")
        for doc in p.inputs:
            console.print(f"    • {doc.relative_path} ({doc.word_count} words)")


def _execute(config: dict, path: str, plans, docs):
    from .backup.manager import BackupManager
    from .consolidation.executor import ConsolidationExecutor
    from .consolidation.validator import ConsolidationValidator

    backup = BackupManager(Path(path).resolve() / STATE_DIR / "backups")
    try:
        results = ConsolidationExecutor(backup).execute_all(plans)
    except DocconError as e:
        console.print(f"[red]Backup failed: {e}[/]")
        return

    written = [r.output_file for r in results if r.success]
    for r in results:
        if r.success:
            console.print(f"  [green]✓ {r.action}: {r.input_count} file(s) → {r.output_file}[/] [dim](backup {r.manifest_id})[/]")
        else:
            console.print(f"  [red]✗ {r.action}: {r.error}[/]")

    markdown_outputs = [p for p in written if p.suffix == ".md"]
    if markdown_outputs:
        validation = ConsolidationValidator().validate(docs, markdown_outputs)
        for error in validation.errors:
            console.print(f"  [red]✗ {error}[/]")
        for warning in validation.warnings:
            console.print(f"  [yellow]! {warning}[/]")
        if validation.valid:
            console.print("[green]✓ Validation passed[/]")


@cli.command()
@click.argument("path", default=".")
@click.option("--max-output-files", type=int, default=None, help="Maximum number of consolidated files")
@click.option("--super-readme", is_flag=True, help="Also write a DOCS_HUB.md navigation page")
@click.option("--archive-stale", is_flag=True, help="Move stale files into archive/")
@click.pass_context
def consolidate(ctx, path, max_output_files, super_readme, archive_stale):
    """Consolidate markdown files, keeping the originals."""
    config = _get_config(ctx)
    docs = _scan(config, path)
    if not docs:
        console.print("[yellow]No markdown files found.[/]")
        return

    options = _options(
        config, path,
        max_output_files=max_output_files,
        create_super_readme=super_readme,
        archive_stale=archive_stale,
    )
    plans = _planner(config).create_plan(docs, options)
    console.print(f"[blue]Executing {len(plans)} plan(s)...[/]")
    _execute(config, path, plans, docs)


@cli.command()
@click.argument("path", default=".")
@click.pass_context
def index(ctx, path):
    """Write an INDEX.md into every folder that holds markdown files."""
    config = _get_config(ctx)
    docs = _scan(config, path)
    plans = _planner(config).plan_folder_indexes(docs, _options(config, path))
    if not plans:
        console.print("[yellow]No markdown files found.[/]")
        return
    console.print(f"[blue]Writing {len(plans)} folder index(es)...[/]")
    _execute(config, path, plans, [])


@cli.command()
@click.argument("path", default=".")
@click.option("--output", "-o", default=None, help="Write the hub to this file instead of printing it")
@click.pass_context
def navigate(ctx, path, output):
    """Generate a categorized documentation hub."""
    from .navigation import NavigationGenerator

    config = _get_config(ctx)
    docs = _scan(config, path)
    readme = next((d for d in docs if d.relative_path.lower() == "readme.md"), None)
    base_dir = Path(output).absolute().parent if output else None
    content = NavigationGenerator().generate([d for d in docs if d is not readme], readme, base_dir=base_dir)
    if output:
        Path(output).write_text(content, encoding="utf-8")
        console.print(f"[green]✓ Wrote {output}[/]")
    else:
        console.print(content, markup=False, highlight=False)


@cli.command()
@click.argument("path", default=".")
@click.option("--mode", type=click.Choice(["compress", "document-archive"]), default=None,
              help="compress deletes backed-up originals; document-archive moves them into documents/")
@click.option("--max-output-files", type=int, default=None, help="Maximum consolidated files per repository")
@click.option("--suppress-toc", is_flag=True, help="Leave out the table of contents")
@click.option("--no-git-boundaries", is_flag=True, help="Treat the whole tree as one repository")
@click.option("--include-related", is_flag=True, help="Let AI pick related .txt/.log files")
@click.option("--parallel", is_flag=True, help="Process repositories in parallel")
@click.pass_context
def auto(ctx, path, mode, max_output_files, suppress_toc, no_git_boundaries, include_related, parallel):
    """Consolidate root markdown files of each repository automatically."""
    from .models import AutoConsolidateOptions, ConsolidateMode
    from .orchestrator import AutoConsolidateOrchestrator

    config = _get_config(ctx)
    auto_cfg = config["auto"]
    options = AutoConsolidateOptions(
        target_directory=Path(path).resolve(),
        mode=ConsolidateMode(mode or auto_cfg["mode"]),
        max_output_files=max_output_files or auto_cfg["max_output_files"],
        suppress_toc=suppress_toc or auto_cfg["suppress_toc"],
        respect_git_boundaries=False if no_git_boundaries else auto_cfg["respect_git_boundaries"],
        include_related=include_related or auto_cfg["include_related"],
        parallel=parallel or auto_cfg["parallel"],
        max_workers=auto_cfg["max_workers"],
        exclude_patterns=config["scan"].get("exclude_patterns", []),
    )

    if not config["ai"].get("api_key"):
        console.print("[dim]No API key set, clustering by directory[/]")

    console.print(f"[bold blue]Auto-consolidating {options.target_directory} ({options.mode.value})...[/]")
    summary = AutoConsolidateOrchestrator.from_config(config).run(options)

    console.print(f"  Repositories processed: {summary.repositories_processed}")
    console.print(f"  Files consolidated: {summary.files_processed}")
    if options.mode == ConsolidateMode.COMPRESS:
        console.print(f"  Originals deleted (backed up): {summary.files_deleted}")
    else:
        console.print(f"  Originals archived: {summary.files_archived}")
    for path_ in summary.consolidated_files:
        console.print(f"  [green]→ {path_}[/]")
    if summary.readme_updated:
        console.print("  [green]✓ README.md updated[/]")
    for warning in summary.warnings:
        console.print(f"  [yellow]! {warning}[/]")
    for error in summary.errors:
        console.print(f"  [red]✗ {error}[/]")

    if not summary.changed:
        console.print("[dim]Nothing to do.[/]")
    if summary.success:
        console.print("[bold green]✓ Done![/]")
    else:
        console.print("[bold red]✗ Originals were kept because backups could not be confirmed[/]")
        ctx.exit(1)


@cli.command()
@click.argument("path", default=".")
def backups(path):
    """List backup manifests for a repository."""
    from .backup.manager import BackupManager

    manifests = BackupManager(Path(path).resolve() / STATE_DIR / "backups").list_backups()
    if not manifests:
        console.print("[yellow]No backups found.[/]")
        return

    table = Table(title="Backups")
    table.add_column("Manifest", style="cyan")
    table.add_column("Created")
    table.add_column("Files", justify="right")
    for m in manifests:
        table.add_row(m.id, m.timestamp[:19], str(len(m.entries)))
    console.print(table)


@cli.command()
@click.argument("manifest_id")
@click.option("--path", default=".", help="Repository the backup belongs to")
def restore(manifest_id, path):
    """Restore every file recorded in a backup manifest."""
    from .backup.manager import BackupManager

    manager = BackupManager(Path(path).resolve() / STATE_DIR / "backups")
    try:
        restored = manager.restore(manifest_id)
    except DocconError as e:
        console.print(f"[red]{e}[/]")
        return
    for p in restored:
        console.print(f"  [green]✓ {p}[/]")
    console.print(f"[bold green]✓ Restored {len(restored)} file(s)[/]")


if __name__ == "__main__":
    cli()
