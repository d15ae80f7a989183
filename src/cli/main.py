"""Main CLI Module - Command-line interface for the Repository Health Checker."""

import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from ..checks import create_default_registry
from ..core.cache import ResultCache
from ..core.check import Category, CheckResult
from ..core.config import ScannerConfig, ensure_valid_config, load_config, validate_config
from ..core.context import RepoContext
from ..core.engine import ScanEngine
from ..core.exceptions import ConfigError, HealthCheckError
from ..core.readiness import ReadinessEvaluator
from ..core.report import ScanReport
from ..core.scorer import Scorer
from ..fixers import FixStatus, RemediationManager
from ..reporters import REPORTERS, get_reporter
from ..utils.logging import setup_logging

console = Console()

EXIT_READY = 0
EXIT_NOT_READY = 1
EXIT_ERROR = 2


def get_score_color(score: float) -> str:
    """Get color for score value."""
    if score >= 80:
        return "green"
    elif score >= 70:
        return "yellow"
    elif score >= 60:
        return "orange1"
    else:
        return "red"


def _read_structured_file(path: str) -> Any:
    """Load a JSON or YAML file."""
    with open(path, "r", encoding="utf-8") as f:
        if Path(path).suffix.lower() in (".yml", ".yaml"):
            return yaml.safe_load(f)
        return json.load(f)


def load_context(context_file: str) -> RepoContext:
    """Load a pre-built repository context.

    A missing ``path`` defaults to the directory holding the context file,
    and a relative ``path`` is resolved against it.
    """
    data = _read_structured_file(context_file) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{context_file} does not contain a context object")

    base_dir = Path(context_file).resolve().parent
    repo_path = Path(data.get("path") or base_dir)
    if not repo_path.is_absolute():
        repo_path = (base_dir / repo_path).resolve()
    data["path"] = str(repo_path)

    return RepoContext.from_dict(data)


def load_report(report_file: str) -> ScanReport:
    """Load a report written by the JSON reporter."""
    return ScanReport.from_dict(_read_structured_file(report_file))


@click.group()
@click.version_option(version="1.0.0", prog_name="rhc")
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to a YAML or JSON config file")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs")
@click.option("--log-json", is_flag=True, help="Write logs as JSON lines")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool, log_json: bool):
    """Repository Health Checker - Score a repository's production readiness."""
    ctx.ensure_object(dict)
    config = load_config(config_path)
    setup_logging(verbose=verbose or config.verbose, json_output=log_json)
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


@cli.command("scan")
@click.argument("context_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--category", "categories", multiple=True,
              type=click.Choice([c.value for c in Category]), help="Only run checks of these categories")
@click.option("--exclude", "excludes", multiple=True, help="Check ids to skip")
@click.option("--sequential", is_flag=True, help="Run checks one at a time")
@click.option("--max-concurrency", type=int, help="Maximum checks running at once")
@click.option("--no-cache", is_flag=True, help="Disable the shared read cache")
@click.option("--timeout", type=float, help="Per-check timeout in seconds")
@click.option("--format", "-f", "formats", multiple=True, default=["json"],
              type=click.Choice(sorted(REPORTERS)), help="Report formats (default: json)")
@click.option("--output", "-o", type=click.Path(), help="Output directory for reports")
@click.pass_context
def scan(
    ctx: click.Context,
    context_file: str,
    categories: tuple,
    excludes: tuple,
    sequential: bool,
    max_concurrency: Optional[int],
    no_cache: bool,
    timeout: Optional[float],
    formats: tuple,
    output: Optional[str],
):
    """Scan a repository described by CONTEXT_FILE.

    Exits with 1 when the repository is not production-ready.
    """
    config: ScannerConfig = ctx.obj["config"]
    if categories:
        config.enabled_categories = list(categories)
    if excludes:
        config.disabled_checks = list(config.disabled_checks) + list(excludes)
    if sequential:
        config.parallel = False
    if max_concurrency is not None:
        config.max_concurrency = max_concurrency
    if no_cache:
        config.enable_cache = False
    if timeout is not None:
        config.check_timeout = timeout

    try:
        ensure_valid_config(config)
    except ConfigError as e:
        for error in e.errors:
            console.print(f"[red]Config error: {error}[/red]")
        sys.exit(EXIT_ERROR)

    try:
        context = load_context(context_file)
    except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
        console.print(f"[red]Could not load context: {e}[/red]")
        sys.exit(EXIT_ERROR)

    console.print(Panel.fit(
        f"[bold blue]Repository Health Checker[/bold blue]\n"
        f"Scanning: [cyan]{context.path}[/cyan]",
        title="RHC Scan",
        border_style="blue",
    ))

    engine = ScanEngine(
        registry=create_default_registry(),
        cache=ResultCache(ttl=config.cache_ttl),
        scorer=Scorer(config.to_scoring_policy()),
        evaluator=ReadinessEvaluator(config.to_readiness_policy()),
    )
    options = config.to_scan_options()
    scan_start_time = time.time()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        scan_task = progress.add_task("[cyan]Running checks...", total=None)

        def on_check_complete(completed: int, total: int, check_id: str):
            progress.update(
                scan_task,
                total=total,
                completed=completed,
                description=f"[cyan]Completed {check_id} ({completed}/{total})",
            )

        try:
            report = asyncio.run(engine.run(context, options, on_check_complete))
        except HealthCheckError as e:
            console.print(f"[red]Error during scan: {e}[/red]")
            sys.exit(EXIT_ERROR)

    elapsed = time.time() - scan_start_time

    report_paths = {}
    for fmt in formats:
        reporter = get_reporter(fmt, output or Path.cwd() / "rhc_reports")
        report_paths[fmt] = reporter.save(report)

    _display_report(report, report_paths)
    console.print(f"\n  [cyan]Total scan time:[/cyan] {elapsed:.2f}s")

    sys.exit(EXIT_READY if report.production_ready else EXIT_NOT_READY)


@cli.command("evaluate")
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--overall-threshold", type=float, help="Minimum overall score")
@click.option("--high-threshold", type=float,
              help="Minimum score of a category with a failing high-severity check")
@click.option("--rescore", is_flag=True, help="Recompute scores from the stored results")
@click.pass_context
def evaluate(
    ctx: click.Context,
    report_file: str,
    overall_threshold: Optional[float],
    high_threshold: Optional[float],
    rescore: bool,
):
    """Re-evaluate readiness of a stored REPORT_FILE without running checks."""
    config: ScannerConfig = ctx.obj["config"]
    if overall_threshold is not None:
        config.overall_threshold = overall_threshold
    if high_threshold is not None:
        config.high_category_threshold = high_threshold

    try:
        ensure_valid_config(config)
    except ConfigError as e:
        for error in e.errors:
            console.print(f"[red]Config error: {error}[/red]")
        sys.exit(EXIT_ERROR)

    try:
        report = load_report(report_file)
    except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
        console.print(f"[red]Could not load report: {e}[/red]")
        sys.exit(EXIT_ERROR)

    evaluator = ReadinessEvaluator(config.to_readiness_policy())
    scorer = Scorer(config.to_scoring_policy()) if rescore else None
    report = evaluator.reevaluate(report, scorer=scorer)

    _display_report(report, {})
    sys.exit(EXIT_READY if report.production_ready else EXIT_NOT_READY)


@cli.command("checks")
@click.argument("context_file", required=False, type=click.Path(exists=True, dir_okay=False))
def checks(context_file: Optional[str]):
    """List the check catalog, with applicability for CONTEXT_FILE if given."""
    registry = create_default_registry()
    context = None
    if context_file:
        try:
            context = load_context(context_file)
        except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
            console.print(f"[red]Could not load context: {e}[/red]")
            sys.exit(EXIT_ERROR)
    applicable_ids = {c.id for c in registry.applicable(context)} if context else set()

    table = Table(title="Check Catalog")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Severity")
    table.add_column("Auto-fix", justify="center")
    if context:
        table.add_column("Applies", justify="center")

    for check in registry:
        metadata = check.get_metadata()
        row = [
            check.id,
            check.title,
            metadata["category"],
            f"[{check.severity.color}]{metadata['severity']}[/{check.severity.color}]",
            "yes" if metadata["remediable"] else "",
        ]
        if context:
            row.append("[green]yes[/green]" if check.id in applicable_ids else "[dim]no[/dim]")
        table.add_row(*row)

    console.print(table)


@cli.command("fix")
@click.argument("context_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("report_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dry-run", is_flag=True, help="Show what would be fixed without writing")
def fix(context_file: str, report_file: str, dry_run: bool):
    """Apply automatic remediations for failures in REPORT_FILE."""
    try:
        context = load_context(context_file)
        report = load_report(report_file)
    except (OSError, ValueError, KeyError, yaml.YAMLError) as e:
        console.print(f"[red]Could not load input: {e}[/red]")
        sys.exit(EXIT_ERROR)

    manager = RemediationManager(create_default_registry())
    planned = manager.plan(report)
    if not planned:
        console.print("[green]Nothing to fix.[/green]")
        return

    results = asyncio.run(manager.apply(report, context, dry_run=dry_run))

    table = Table(title="Remediation" + (" (dry run)" if dry_run else ""))
    table.add_column("Check", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    status_colors = {
        FixStatus.APPLIED: "green",
        FixStatus.PENDING: "yellow",
        FixStatus.SKIPPED: "dim",
        FixStatus.FAILED: "red",
    }
    for result in results:
        color = status_colors[result.status]
        table.add_row(result.check_id, f"[{color}]{result.status.value}[/{color}]", result.error or "")
    console.print(table)

    summary = manager.get_fix_summary()
    console.print(
        f"\nApplied: {summary['applied']} | Failed: {summary['failed']} | "
        f"Skipped: {summary['skipped']} | Pending: {summary['pending']}"
    )
    if summary["failed"]:
        sys.exit(EXIT_NOT_READY)


@cli.command("config")
@click.pass_context
def config(ctx: click.Context):
    """Show the effective configuration."""
    config: ScannerConfig = ctx.obj["config"]
    source = ctx.obj.get("config_path") or "defaults"

    console.print(Panel.fit(
        f"[bold blue]Effective Configuration[/bold blue]\nSource: [cyan]{source}[/cyan] + environment",
        border_style="blue",
    ))

    table = Table()
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, json.dumps(value) if isinstance(value, (dict, list)) else str(value))
    console.print(table)

    errors = validate_config(config)
    if errors:
        console.print("\n[bold red]Validation errors:[/bold red]")
        for error in errors:
            console.print(f"  - {error}")
        sys.exit(EXIT_ERROR)
    console.print("\n[green]Configuration is valid.[/green]")


def _display_report(report: ScanReport, report_paths: Dict[str, str]):
    """Display a scan report in the terminal."""
    score_color = get_score_color(report.score)
    status_color = "green" if report.production_ready else "red"

    console.print(Panel.fit(
        f"[bold {score_color}]{report.score:.1f}[/bold {score_color}] / 100\n"
        f"Grade: [bold]{report.grade}[/bold]",
        title="Overall Score",
        border_style=score_color,
    ))
    console.print(f"\nStatus: [{status_color}]{report.status}[/{status_color}]")
    console.print(
        f"\nChecks: {len(report.results)} | [green]Passed: {report.passed_count}[/green] | "
        f"[red]Failed: {report.failed_count}[/red] | [yellow]Errors: {report.error_count}[/yellow]"
    )

    if report.readiness_reasons:
        console.print("\n[bold]Readiness Issues:[/bold]")
        for reason in report.readiness_reasons:
            console.print(f"  - {reason}")

    if report.category_scores:
        console.print("\n[bold]Category Scores:[/bold]")
        for category, score in report.category_scores.items():
            color = get_score_color(score)
            console.print(f"  {category.value}: [{color}]{score:.1f}[/{color}]")

    failures = _failures_by_severity(report.results)
    if failures:
        table = Table(title="Failed Checks")
        table.add_column("Severity")
        table.add_column("ID", style="cyan")
        table.add_column("Title")
        table.add_column("Details")
        for result in failures:
            color = result.severity.color
            table.add_row(
                f"[{color}]{result.severity.value}[/{color}]",
                result.check_id,
                result.title,
                result.error or result.message or "",
            )
        console.print()
        console.print(table)

    if report.quick_wins:
        console.print("\n[bold]Quick Wins:[/bold]")
        for win in report.quick_wins:
            console.print(
                f"  [green]+{win.points:.1f}[/green] {win.check.title} "
                f"[dim]({win.effort.value} effort)[/dim]"
            )

    if report_paths:
        console.print("\n[bold]Reports Generated:[/bold]")
        for fmt, path in report_paths.items():
            console.print(f"  {fmt.upper()}: [cyan]{path}[/cyan]")


def _failures_by_severity(results) -> List[CheckResult]:
    failed = [r for r in results if not r.passed]
    return sorted(failed, key=lambda r: -r.severity.rank)


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
