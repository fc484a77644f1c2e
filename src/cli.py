"""CLI interface for hugoship."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from hugoship.build import HugoBuilder, check_determinism, check_drafts_excluded, check_links
from hugoship.config import (
    DeployTargetKind,
    HugoshipConfig,
    InvalidationMode,
    load_config,
    merge_cli_overrides,
)
from hugoship.content import (
    Severity,
    ValidationReport,
    build_series_index,
    load_content,
    new_post,
    validate_content,
)
from hugoship.deploy import load_deploy_state
from hugoship.pipeline import PublishResult, deploy_site, publish_site
from hugoship.shared.errors import HugoshipError, PipelineReport
from hugoship.workflow import DEFAULT_WORKFLOW_PATH, render_workflow, write_workflow

app = typer.Typer(
    name="hugoship",
    help="Check, build and publish a Hugo blog to S3 and CloudFront.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

SourceOption = Annotated[
    Optional[Path],
    typer.Option("--source", "-s", help="Hugo project root (defaults to config / CWD)."),
]
DestinationOption = Annotated[
    Optional[Path],
    typer.Option("--destination", "-d", help="Build output directory (default: public/)."),
]
DryRunOption = Annotated[
    bool,
    typer.Option("--dry-run", help="Plan uploads and invalidations without changing anything."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from hugoship import __version__

        console.print(f"hugoship {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    config_path: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to a .hugoship.toml file."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging."),
    ] = False,
) -> None:
    """hugoship - publish a Hugo blog."""
    _configure_logging(verbose)
    ctx.obj = {"config_path": config_path}


def _config(ctx: typer.Context, **overrides: object) -> HugoshipConfig:
    config_path = (ctx.obj or {}).get("config_path")
    cleaned = {k: (str(v) if isinstance(v, Path) else v) for k, v in overrides.items()}
    try:
        return merge_cli_overrides(load_config(config_path), **cleaned)
    except ValidationError as exc:
        err_console.print("[red]Error:[/red] invalid configuration")
        for error in exc.errors():
            location = ".".join(str(p) for p in error["loc"])
            err_console.print(f"  {location}: {error['msg']}", markup=False)
        raise typer.Exit(1) from exc


def _fail(exc: HugoshipError) -> None:
    err_console.print(f"[red]Error:[/red] {exc}")
    raise typer.Exit(1)


def _print_issues(report: ValidationReport) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Path")
    table.add_column("Code")
    table.add_column("Message")
    for issue in report.issues:
        style = "red" if issue.severity == Severity.ERROR else "yellow"
        table.add_row(f"[{style}]{issue.severity}[/{style}]", issue.path, issue.code, issue.message)
    console.print(table)


def _print_report(report: PipelineReport) -> None:
    for error in report.errors:
        err_console.print(f"  [red]{error.stage}[/red]: {error.message}")


@app.command()
def check(
    ctx: typer.Context,
    source: SourceOption = None,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Treat warnings as errors."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Print the report as JSON."),
    ] = False,
) -> None:
    """Validate post front-matter and series ordering."""
    config = _config(ctx, source_dir=source)
    try:
        index = load_content(config.site.content_path)
    except HugoshipError as exc:
        _fail(exc)
    report = validate_content(index, build_future=config.build.build_future)

    if json_output:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    elif report.issues:
        _print_issues(report)

    failed = bool(report.errors or (strict and report.warnings))
    if not json_output:
        color = "red" if failed else "green"
        console.print(
            f"[{color}]{len(index.posts) + len(index.load_issues)} post(s) checked: "
            f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)[/{color}]"
        )
    if failed:
        raise typer.Exit(1)


@app.command()
def series(
    ctx: typer.Context,
    source: SourceOption = None,
    drafts: Annotated[
        bool,
        typer.Option("--drafts/--no-drafts", help="Include draft posts."),
    ] = False,
) -> None:
    """List every series in reading order."""
    config = _config(ctx, source_dir=source)
    try:
        index = load_content(config.site.content_path)
    except HugoshipError as exc:
        _fail(exc)

    grouped = build_series_index(index.posts, include_drafts=drafts)
    if not grouped:
        console.print("[yellow]No series found.[/yellow]")
        return
    for name, entry in grouped.items():
        console.print(f"[bold]{name}[/bold] ({len(entry.posts)} post(s))")
        for post in entry.posts:
            weight = post.weight if post.weight is not None else "-"
            marker = " [dim](draft)[/dim]" if post.draft else ""
            console.print(f"  {weight:>3}  {post.title}  [dim]{post.permalink}[/dim]{marker}")


@app.command()
def new(
    ctx: typer.Context,
    title: Annotated[str, typer.Argument(help="Post title.")],
    source: SourceOption = None,
    section: Annotated[str, typer.Option("--section", help="Content section.")] = "posts",
    series_name: Annotated[
        Optional[str],
        typer.Option("--series", help="Append the post to this series."),
    ] = None,
    tags: Annotated[
        Optional[list[str]],
        typer.Option("--tag", "-t", help="Tag (repeatable)."),
    ] = None,
    bundle: Annotated[
        bool,
        typer.Option("--bundle", help="Create a page bundle (<slug>/index.md)."),
    ] = False,
) -> None:
    """Create a new draft post."""
    config = _config(ctx, source_dir=source)
    try:
        path = new_post(
            config.site.content_path,
            title,
            section=section,
            series=series_name,
            tags=tags or [],
            bundle=bundle,
        )
    except HugoshipError as exc:
        _fail(exc)
    console.print(f"[green]Created[/green] {path}")


@app.command()
def build(
    ctx: typer.Context,
    source: SourceOption = None,
    destination: DestinationOption = None,
    base_url: Annotated[
        Optional[str], typer.Option("--base-url", help="Override the site base URL.")
    ] = None,
    drafts: Annotated[
        Optional[bool], typer.Option("--drafts/--no-drafts", help="Render draft posts.")
    ] = None,
    determinism: Annotated[
        bool,
        typer.Option("--check-determinism", help="Build twice and compare the output."),
    ] = False,
) -> None:
    """Build the site with Hugo."""
    config = _config(
        ctx,
        source_dir=source,
        output_dir=destination,
        base_url=base_url,
        build_drafts=drafts,
    )
    builder = HugoBuilder(
        config.build.hugo_binary,
        timeout=config.build.timeout,
        extra_args=config.build.extra_args,
    )
    options = {
        "base_url": config.site.base_url or None,
        "environment": config.site.environment,
        "minify": config.build.minify,
        "build_drafts": config.build.build_drafts,
        "build_future": config.build.build_future,
    }

    try:
        if determinism:
            diff = check_determinism(builder, config.site.source_path, **options)
            if not diff.is_empty:
                console.print("[red]Build output differs between runs:[/red]")
                for label, paths in (
                    ("added", diff.added),
                    ("removed", diff.removed),
                    ("changed", diff.changed),
                ):
                    for p in paths:
                        console.print(f"  {label}: {p}")
                raise typer.Exit(1)
            console.print("[green]Build is deterministic.[/green]")
            return
        result = builder.build(config.site.source_path, config.site.output_path, **options)
    except HugoshipError as exc:
        _fail(exc)

    console.print(
        f"[green]Built {len(result.manifest)} file(s)[/green] into {result.destination} "
        f"in {result.duration_seconds:.1f}s"
    )


@app.command()
def verify(
    ctx: typer.Context,
    source: SourceOption = None,
    destination: DestinationOption = None,
) -> None:
    """Check a build output for leaked drafts and broken links."""
    config = _config(ctx, source_dir=source, output_dir=destination)
    output_dir = config.site.output_path
    if not output_dir.is_dir():
        err_console.print(f"[red]Error:[/red] build output not found: {output_dir}")
        raise typer.Exit(1)
    try:
        index = load_content(config.site.content_path)
    except HugoshipError as exc:
        _fail(exc)

    leaked = check_drafts_excluded(index.posts, output_dir)
    broken = check_links(output_dir, base_url=config.site.base_url)

    for issue in leaked:
        console.print(f"[red]draft published[/red] {issue.path}: {issue.message}")
    for link in broken:
        console.print(f"[red]broken link[/red] {link.page} -> {link.target}")

    if leaked or broken:
        raise typer.Exit(1)
    console.print("[green]Output verified.[/green]")


def _print_publish_result(result: PublishResult, dry_run: bool) -> None:
    prefix = "[yellow]Dry run:[/yellow] would" if dry_run else "[bold green]Published:[/bold green]"
    sync_result = result.sync
    if sync_result is None:
        return
    plan = sync_result.plan
    if plan.is_empty:
        console.print("[green]Target is up to date, nothing to publish.[/green]")
        return
    console.print(
        f"{prefix} upload {len(plan.uploads)}, delete {len(plan.deletes)}, "
        f"keep {len(plan.unchanged)} file(s)"
    )
    if result.invalidation_paths:
        paths = ", ".join(result.invalidation_paths[:5])
        more = len(result.invalidation_paths) - 5
        suffix = f" (+{more} more)" if more > 0 else ""
        console.print(f"  Invalidate: {paths}{suffix}")
    if result.invalidation_id:
        console.print(f"  Invalidation: {result.invalidation_id}")
    if result.record is not None:
        console.print(f"  Destination: {result.record.destination}")


@app.command()
def deploy(
    ctx: typer.Context,
    source: SourceOption = None,
    destination: DestinationOption = None,
    dry_run: DryRunOption = False,
    target: Annotated[
        Optional[DeployTargetKind], typer.Option("--target", help="Deploy target.")
    ] = None,
    bucket: Annotated[Optional[str], typer.Option("--bucket", help="S3 bucket.")] = None,
    local_dir: Annotated[
        Optional[Path], typer.Option("--local-dir", help="Directory for the local target.")
    ] = None,
    distribution_id: Annotated[
        Optional[str], typer.Option("--distribution", help="CloudFront distribution id.")
    ] = None,
    invalidation: Annotated[
        Optional[InvalidationMode],
        typer.Option("--invalidate", help="Which CDN paths to invalidate."),
    ] = None,
) -> None:
    """Upload an existing build and invalidate the CDN."""
    config = _config(
        ctx,
        source_dir=source,
        output_dir=destination,
        target=target,
        bucket=bucket,
        local_dir=local_dir,
        distribution_id=distribution_id,
        invalidation=invalidation,
    )
    report = PipelineReport()
    try:
        result = deploy_site(config, dry_run=dry_run, report=report)
    except HugoshipError as exc:
        _print_report(report)
        _fail(exc)
    _print_publish_result(result, dry_run)


@app.command()
def publish(
    ctx: typer.Context,
    source: SourceOption = None,
    dry_run: DryRunOption = False,
    skip_checks: Annotated[
        bool,
        typer.Option("--skip-checks", help="Skip content validation and link checking."),
    ] = False,
    base_url: Annotated[
        Optional[str], typer.Option("--base-url", help="Override the site base URL.")
    ] = None,
    bucket: Annotated[Optional[str], typer.Option("--bucket", help="S3 bucket.")] = None,
    distribution_id: Annotated[
        Optional[str], typer.Option("--distribution", help="CloudFront distribution id.")
    ] = None,
) -> None:
    """Validate, build, verify, upload and invalidate in one run."""
    config = _config(
        ctx,
        source_dir=source,
        base_url=base_url,
        bucket=bucket,
        distribution_id=distribution_id,
    )
    report = PipelineReport()
    try:
        result = publish_site(
            config, dry_run=dry_run, skip_checks=skip_checks, report=report
        )
    except HugoshipError as exc:
        issues = getattr(exc, "issues", None)
        if issues:
            _print_issues(ValidationReport(issues=issues))
        _print_report(report)
        _fail(exc)
    _print_publish_result(result, dry_run)


@app.command()
def status(
    ctx: typer.Context,
    source: SourceOption = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Deploys to show.")] = 10,
) -> None:
    """Show recent deploys."""
    config = _config(ctx, source_dir=source)
    state = load_deploy_state(config.site.source_path)
    if not state.deploys:
        console.print("[yellow]No deploys recorded.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("When")
    table.add_column("Destination")
    table.add_column("Uploaded", justify="right")
    table.add_column("Deleted", justify="right")
    table.add_column("Invalidation")
    table.add_column("Digest")
    for record in reversed(state.deploys[-limit:]):
        when = record.deployed_at.strftime("%Y-%m-%d %H:%M")
        if record.dry_run:
            when += " (dry run)"
        table.add_row(
            when,
            record.destination,
            str(record.uploaded),
            str(record.deleted),
            record.invalidation_id or "-",
            record.digest[:12],
        )
    console.print(table)


@app.command()
def workflow(
    ctx: typer.Context,
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Where to write the workflow file.")
    ] = DEFAULT_WORKFLOW_PATH,
    branch: Annotated[str, typer.Option("--branch", help="Branch that triggers deploys.")] = "main",
    force: Annotated[bool, typer.Option("--force", help="Overwrite an existing file.")] = False,
    install_spec: Annotated[
        Optional[str],
        typer.Option("--install", help="pip requirement the job installs hugoship from."),
    ] = None,
    print_only: Annotated[
        bool, typer.Option("--print", help="Print the workflow instead of writing it.")
    ] = False,
) -> None:
    """Generate a GitHub Actions workflow that publishes on push."""
    config = _config(ctx, install_spec=install_spec)
    if print_only:
        typer.echo(render_workflow(config, branch=branch))
        return
    try:
        path = write_workflow(output, config, branch=branch, force=force)
    except HugoshipError as exc:
        _fail(exc)
    console.print(f"[green]Wrote[/green] {path}")


if __name__ == "__main__":
    app()
