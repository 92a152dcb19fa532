"""
cozydeploy - UI Components
Standardized headers and result tables
"""

from typing import Optional

from rich.console import Console
from rich.table import Table

from cozydeploy.models.results import DeploymentOutcome, ResultStatus

BRAND = "cozydeploy"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_COLORS = {
    ResultStatus.SUCCESS: SUCCESS_COLOR,
    ResultStatus.WARNING: WARNING_COLOR,
    ResultStatus.FAILURE: ERROR_COLOR,
}


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "Render Scripts")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Deploy",
            details={"Sensor": "root@10.0.0.5", "Application": "root@10.0.0.6"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{BRAND}[/bold color(214)] [dim]›[/dim]"
    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()


def outcome_table(outcome: DeploymentOutcome) -> Table:
    """Per-role summary of a deployment."""
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("Role")
    table.add_column("Status")
    table.add_column("Completed steps", style="dim")
    table.add_column("Failed step")

    for result in outcome.results:
        color = STATUS_COLORS[result.status]
        failed = result.failed_step.value if result.failed_step else "-"
        table.add_row(
            result.role.value,
            f"[{color}]{result.status.value}[/{color}]",
            str(len(result.completed_steps)),
            failed,
        )
    return table
