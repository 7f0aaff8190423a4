"""buildrelay CLI (Typer).

Commands:
- `run`: execute the full stage list for the current workspace.
- `audit`: evaluate an existing audit report.
- `dockerfile`: print or write the generated Dockerfile.
- `image-refs`: print the image references a build would produce.
- `variants`: list pipeline variants.
- `doctor`: environment diagnostics and registry setup.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from adapters.dockerfile_renderer import render_dockerfile
from adapters.json_exporter import export_run_json, render_run_json
from adapters.npm_audit import describe_counts, evaluate_audit, load_audit_report
from adapters.shell_runner import SubprocessRunner
from cli import doctor
from cli.ui_components import (
    build_counts_table,
    build_stages_table,
    build_status_panel,
    build_variants_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import BuildStatus, StageStatus, image_references
from core.domain.variants import get_variant, list_variants
from core.errors import BuildRelayError
from core.interfaces.runner import CommandRunner
from core.logging_config import configure_logging
from core.services.build_pipeline import PipelineHooks, run_pipeline

app = typer.Typer(
    no_args_is_help=True,
    help="Sequential CI pipeline runner: checkout, install, test, audit, image build and push.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


def build_runner(settings: AppSettings) -> CommandRunner:
    return SubprocessRunner(timeout_seconds=settings.command_timeout_seconds)


def load_settings(**overrides: Any) -> AppSettings:
    """Settings from env/.env with CLI overrides on top (None means "not given")."""

    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        return AppSettings(**values)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command(name="run")
def run_build(
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Project directory."),
    variant: Optional[str] = typer.Option(None, "--variant", "-v", help="standard, strict, lenient or local."),
    build_number: Optional[str] = typer.Option(None, "--build-number", "-b", help="Image tag for this build."),
    branch: Optional[str] = typer.Option(None, "--branch", help="Branch being built."),
    repo_url: Optional[str] = typer.Option(None, "--repo-url", help="Clone this repository into the workspace."),
    registry: Optional[str] = typer.Option(None, "--registry", help="Registry host."),
    image_name: Optional[str] = typer.Option(None, "--image-name", help="Image repository name."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the run record as JSON."),
    as_json: bool = typer.Option(False, "--json", help="Print the run record as JSON instead of tables."),
    fail_on_unstable: bool = typer.Option(False, "--fail-on-unstable", help="Exit 1 on UNSTABLE builds."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR."),
) -> None:
    """Run the pipeline stages in order and report the build status."""

    settings = load_settings(
        workspace=workspace,
        variant=variant,
        build_number=build_number,
        branch=branch,
        repo_url=repo_url,
        registry=registry,
        image_name=image_name,
    )
    configure_logging(log_level or settings.log_level)

    if not as_json:
        print_banner(_console)

    hooks = PipelineHooks(
        stage_end=None if as_json else lambda r: _console.print(f"[dim]•[/dim] {r.name}: {r.status.value}"),
    )

    try:
        result = run_pipeline(settings=settings, runner=build_runner(settings), hooks=hooks)
    except BuildRelayError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    if output:
        export_run_json(run=result, output_path=output)

    if as_json:
        typer.echo(render_run_json(result), nl=False)
    else:
        _console.print(build_stages_table(result))
        _console.print(build_status_panel(result))
        if output:
            _console.print(f"[green]Run record saved to:[/green] {output}")

    if result.status is BuildStatus.FAILURE:
        raise typer.Exit(code=1)
    if result.status is BuildStatus.UNSTABLE and fail_on_unstable:
        raise typer.Exit(code=1)


@app.command()
def audit(
    report: Path = typer.Argument(..., help="Path to an `npm audit --json` report."),
    variant: Optional[str] = typer.Option(None, "--variant", "-v", help="Variant whose audit policy applies."),
    as_json: bool = typer.Option(False, "--json", help="Print counts as JSON."),
) -> None:
    """Evaluate an audit report. Exit 1 when the variant's policy fails it."""

    settings = load_settings(variant=variant)
    try:
        policy = get_variant(settings.variant).audit_policy
        counts = load_audit_report(report)
    except BuildRelayError as exc:
        _console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=2) from exc

    status = evaluate_audit(counts, policy)
    if as_json:
        typer.echo(json.dumps({"status": status.value, **counts.model_dump()}, sort_keys=True))
    else:
        _console.print(build_counts_table(counts))
        if status is StageStatus.PASSED:
            _console.print("[green]No high or critical vulnerabilities.[/green]")
        elif status is StageStatus.WARNED:
            _console.print(f"[yellow]WARNING:[/yellow] vulnerabilities found ({describe_counts(counts)})")
        else:
            _console.print(f"[red]FAILED:[/red] vulnerabilities found ({describe_counts(counts)})")

    if status is StageStatus.FAILED:
        raise typer.Exit(code=1)


@app.command()
def dockerfile(
    base_image: Optional[str] = typer.Option(None, "--base-image", help="FROM image."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this path instead of stdout."),
) -> None:
    """Render the generated Dockerfile."""

    settings = load_settings(base_image=base_image)
    content = render_dockerfile(base_image=settings.base_image)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(content, encoding="utf-8")
        _console.print(f"[green]Dockerfile written to:[/green] {output}")
    else:
        typer.echo(content, nl=False)


@app.command(name="image-refs")
def image_refs(
    build_number: Optional[str] = typer.Option(None, "--build-number", "-b"),
    registry: Optional[str] = typer.Option(None, "--registry"),
    image_name: Optional[str] = typer.Option(None, "--image-name"),
) -> None:
    """Print the image references a build produces, one per line."""

    settings = load_settings(build_number=build_number, registry=registry, image_name=image_name)
    try:
        refs = image_references(
            registry=settings.registry,
            name=settings.image_name,
            build_number=settings.build_number,
        )
    except BuildRelayError as exc:
        raise typer.BadParameter(str(exc)) from exc
    for ref in refs:
        typer.echo(str(ref))


@app.command()
def variants() -> None:
    """List the pipeline variants."""

    settings = load_settings()
    _console.print(build_variants_table(list_variants(), selected=settings.variant))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
