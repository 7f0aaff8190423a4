"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Tables and panels are reused by `run`, `audit` and `variants`.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import BuildStatus, PipelineRun, StageStatus, VulnerabilityCounts
from core.domain.variants import PipelineVariant


_STATUS_STYLE = {
    BuildStatus.SUCCESS: "green",
    BuildStatus.UNSTABLE: "yellow",
    BuildStatus.FAILURE: "red",
}

_STAGE_STYLE = {
    StageStatus.PASSED: "green",
    StageStatus.WARNED: "yellow",
    StageStatus.FAILED: "red",
    StageStatus.SKIPPED: "dim",
}


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Skipped in non-interactive modes (`--json`).
    """

    title = Text("buildrelay", style="bold cyan")
    subtitle = Text("checkout • install • test • audit • image • push", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_stages_table(run: PipelineRun) -> Table:
    table = Table(title=f"Build {run.build_number} ({run.variant})")
    table.add_column("Stage", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Policy", style="dim")
    table.add_column("Time", justify="right", style="dim")
    table.add_column("Message", style="white")
    for stage in run.stages:
        style = _STAGE_STYLE[stage.status]
        table.add_row(
            stage.name,
            Text(stage.status.value, style=style),
            stage.policy.value,
            f"{stage.duration_seconds:.1f}s",
            stage.message,
        )
    return table


def build_status_panel(run: PipelineRun) -> Panel:
    style = _STATUS_STYLE[run.status]
    body = Text()
    body.append(run.status.value, style=f"bold {style}")
    if run.branch:
        body.append(f"\nBranch: {run.branch}")
    for image in run.images:
        body.append(f"\nImage: {image}", style="magenta")
    if run.vulnerabilities is not None:
        body.append(
            f"\nVulnerabilities: high={run.vulnerabilities.high}, critical={run.vulnerabilities.critical}"
        )
    return Panel(body, title="Result", border_style=style)


def build_counts_table(counts: VulnerabilityCounts) -> Table:
    table = Table(title="Audit")
    table.add_column("Severity", style="cyan")
    table.add_column("Count", justify="right")
    for severity in ("critical", "high", "moderate", "low", "info", "total"):
        value = getattr(counts, severity)
        style = "red" if severity in ("critical", "high") and value else "white"
        table.add_row(severity, Text(str(value), style=style))
    return table


def build_variants_table(variants: list[PipelineVariant], *, selected: str | None = None) -> Table:
    table = Table(title="Pipeline variants")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Audit")
    table.add_column("Tests")
    table.add_column("Push branches")
    table.add_column("Description", style="dim")
    for variant in variants:
        if not variant.push_enabled:
            branches = "never"
        elif variant.push_branches is None:
            branches = "any"
        else:
            branches = ", ".join(sorted(variant.push_branches))
        name = f"{variant.name} *" if variant.name == selected else variant.name
        table.add_row(name, variant.audit_policy.value, variant.test_policy.value, branches, variant.description)
    return table
