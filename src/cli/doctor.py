"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from adapters.registry_probe import probe_registry
from adapters.shell_runner import SubprocessRunner
from adapters.toolchain import check_tool
from core.config import AppSettings, write_user_env_vars
from core.domain.variants import get_variant
from core.errors import UnknownVariantError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    runner = SubprocessRunner(timeout_seconds=min(settings.command_timeout_seconds, 30.0))

    table = Table(title="buildrelay Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Toolchain
    tools_ok = True
    for name, binary in (
        ("git", settings.git_bin),
        ("node", settings.node_bin),
        ("npm", settings.npm_bin),
        ("docker", settings.docker_bin),
    ):
        check = check_tool(runner, name=name, binary=binary)
        tools_ok = tools_ok and check.ok
        table.add_row(name, "OK" if check.ok else "FAIL", check.detail)

    # Config
    try:
        variant = get_variant(settings.variant)
        table.add_row("Variant", "OK", variant.name)
    except UnknownVariantError as exc:
        variant = None
        table.add_row("Variant", "FAIL", str(exc))
    table.add_row("Image", "OK", f"{settings.registry or '<local>'}/{settings.image_name}")

    push_needed = variant is not None and variant.push_enabled
    if settings.has_credentials:
        table.add_row("Credentials", "OK", f"user {settings.registry_username}")
    else:
        table.add_row(
            "Credentials",
            "MISSING" if push_needed else "OPTIONAL",
            f"Set {settings.username_env_var}/{settings.password_env_var}",
        )

    # Connectivity (best-effort)
    if settings.registry:
        ok_registry, detail_registry = probe_registry(settings.registry, settings=settings)
        table.add_row("Registry", "OK" if ok_registry else "FAIL", detail_registry)
    else:
        table.add_row("Registry", "SKIPPED", "No registry configured")

    _console.print(table)

    if not tools_ok:
        _console.print(
            "\n[yellow]Note:[/yellow] Stages whose tool is missing are logged as failed and the run continues."
        )


@app.command(name="setup-registry")
def setup_registry() -> None:
    """Interactive registry setup (stores config in the user config .env)."""

    registry = typer.prompt("Registry host", default="", show_default=False).strip()
    image_name = typer.prompt("Image name", default="app", show_default=True).strip()
    username = typer.prompt("Registry username").strip()
    password = typer.prompt("Registry password", hide_input=True, confirmation_prompt=False).strip()

    if not image_name or not username:
        raise typer.BadParameter("image name and username are required")

    env_path = write_user_env_vars(
        {
            "BUILDRELAY_REGISTRY": registry,
            "BUILDRELAY_IMAGE_NAME": image_name,
            "BUILDRELAY_REGISTRY_USERNAME": username,
            "BUILDRELAY_REGISTRY_PASSWORD": password,
        }
    )

    _console.print(f"[green]Saved registry config to:[/green] {env_path}")
