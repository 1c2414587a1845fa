"""
Hourglass CLI - Temporal workflow platform on Azure.
"""

import asyncio
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from .assembly import Substrate
from .core import HourglassCore
from .errors import DeploymentError
from .settings import get_settings

# Setup
app = typer.Typer(
    name="hourglass",
    help="Temporal workflow platform on Azure",
    add_completion=False,
)
console = Console()


def configure_logging():
    """Configure logging based on settings."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Configure logging on module import
configure_logging()


SUBSTRATE_OPTION = typer.Option(
    Substrate.STANDALONE,
    "--substrate",
    "-s",
    help="Compute substrate: standalone (container instances) or cluster (AKS)",
)
STACK_OPTION = typer.Option(None, "--stack", help="Pulumi stack name (overrides .env)")
LOCATION_OPTION = typer.Option(None, "--location", help="Azure region (overrides .env)")


def _create_command_panel(title: str, color: str, substrate: Substrate | None = None) -> Panel:
    """Create a Rich Panel for command display.

    Args:
        title: Command title (e.g., "Hourglass Up")
        color: Border color (e.g., "blue", "cyan", "red")
        substrate: Substrate shown in the panel, if the command takes one

    Returns:
        Formatted Rich Panel
    """
    settings = get_settings()
    lines = [f"[bold {color}]{title}[/bold {color}]", f"Project: {settings.project_name}"]
    if substrate is not None:
        lines.append(f"Substrate: {substrate.value}")
    return Panel.fit("\n".join(lines), border_style=color)


def _handle_command_error(e: Exception, command_type: str) -> None:
    """Handle command errors with appropriate formatting.

    Args:
        e: Exception that occurred
        command_type: Type of command (for error message context)

    Raises:
        SystemExit: Always exits with code 1
    """
    console.print(f"\n[bold red]✗ {command_type.capitalize()} failed:[/bold red] {escape(str(e))}")

    if isinstance(e, DeploymentError) and e.failed_resources:
        console.print("\n[bold red]Failed resources:[/bold red]")
        for urn in e.failed_resources:
            console.print(f"  • {escape(urn)}")
        console.print(
            "[dim]Resources created before the failure are left in place; "
            "re-run to continue.[/dim]"
        )

    raise typer.Exit(code=1)


def _print_outputs(outputs: dict) -> None:
    if outputs:
        console.print("\n[dim]Outputs:[/dim]")
        for key, value in outputs.items():
            console.print(f"  {key}: {escape(str(value))}")


def _run_command(
    command_name: str,
    panel_title: str,
    panel_color: str,
    core_method: str,
    success_handler,
    substrate: Substrate | None = None,
    stack: str | None = None,
    location: str | None = None,
):
    """Execute a Hourglass command with common setup and error handling.

    Args:
        command_name: Command name for error messages (e.g., "deployment")
        panel_title: Title for the command panel (e.g., "Hourglass Up")
        panel_color: Border color for the panel (e.g., "blue", "cyan")
        core_method: Name of the HourglassCore method to call (e.g., "apply")
        success_handler: Callable that takes result dict and prints success output
        substrate: Substrate passed to the core method, if it takes one
        stack: Optional stack name override
        location: Optional region override
    """
    console.print(_create_command_panel(panel_title, panel_color, substrate))

    try:
        core = HourglassCore(stack_name=stack, location=location)
        method = getattr(core, core_method)
        args = (substrate,) if substrate is not None else ()
        result = asyncio.run(method(*args))
        success_handler(result)
    except Exception as e:
        _handle_command_error(e, command_name)


@app.command()
def up(
    substrate: Substrate = SUBSTRATE_OPTION,
    stack: str = STACK_OPTION,
    location: str = LOCATION_OPTION,
):
    """Deploy the Temporal platform on the chosen substrate."""

    def _handle_success(result):
        console.print("\n[bold green]✓ Deployment successful![/bold green]")

        summary = result.get("summary") or {}
        console.print(f"\n[dim]Result: {summary.get('result', 'unknown')}[/dim]")
        changes = summary.get("resource_changes", {})
        if changes:
            console.print(
                f"[dim]Resources: +{changes.get('create', 0)} ~{changes.get('update', 0)} -{changes.get('delete', 0)}[/dim]"
            )

        _print_outputs(result.get("outputs"))

    _run_command(
        command_name="deployment",
        panel_title="Hourglass Up",
        panel_color="blue",
        core_method="apply",
        success_handler=_handle_success,
        substrate=substrate,
        stack=stack,
        location=location,
    )


@app.command()
def preview(
    substrate: Substrate = SUBSTRATE_OPTION,
    stack: str = STACK_OPTION,
    location: str = LOCATION_OPTION,
):
    """Preview Pulumi changes without deploying."""

    def _handle_success(result):
        summary = result.get("preview", {}).get("summary") or {}
        change_summary = summary.get("change_summary", {})

        console.print("\n[bold]Planned Changes (preview only):[/bold]")
        console.print(f"  Would create: {change_summary.get('create', 0)}")
        console.print(f"  Would update: {change_summary.get('update', 0)}")
        console.print(f"  Would delete: {change_summary.get('delete', 0)}")
        console.print(f"  Total changes: {summary.get('total_changes', 0)}")

        console.print(
            f"\n[dim]Run 'hourglass up --substrate {result.get('substrate')}' to deploy.[/dim]"
        )

    _run_command(
        command_name="preview",
        panel_title="Hourglass Preview",
        panel_color="cyan",
        core_method="plan",
        success_handler=_handle_success,
        substrate=substrate,
        stack=stack,
        location=location,
    )


@app.command()
def destroy(
    stack: str = STACK_OPTION,
    location: str = LOCATION_OPTION,
):
    """Destroy infrastructure: remove all deployed resources."""

    def _handle_success(result):
        console.print("\n[bold green]✓ Resources destroyed successfully![/bold green]")

        summary = result.get("summary") or {}
        console.print(f"\n[dim]Result: {summary.get('result', 'unknown')}[/dim]")

    _run_command(
        command_name="destroy",
        panel_title="Hourglass Destroy",
        panel_color="red",
        core_method="destroy",
        success_handler=_handle_success,
        stack=stack,
        location=location,
    )


@app.command()
def outputs(
    stack: str = STACK_OPTION,
):
    """Show the endpoints published by the deployed stack."""

    def _handle_success(result):
        if not result.get("outputs"):
            console.print("\n[yellow]⚠ No outputs published yet[/yellow]")
            return
        _print_outputs(result["outputs"])

    _run_command(
        command_name="outputs",
        panel_title="Hourglass Outputs",
        panel_color="green",
        core_method="outputs",
        success_handler=_handle_success,
        stack=stack,
    )


@app.command()
def version():
    """Show Hourglass version."""
    from . import __version__

    console.print(f"Hourglass version: [bold]{__version__}[/bold]")


if __name__ == "__main__":
    app()
