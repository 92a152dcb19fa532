#!/usr/bin/env python3
"""cozydeploy - Main entry point"""

import functools
import os
import sys

from rich.console import Console

# Rich-Click: CLI help with colors
import rich_click as click

from cozydeploy import __version__
from cozydeploy.commands.deploy import deploy
from cozydeploy.commands.interfaces import interfaces
from cozydeploy.commands.render import render

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.MAX_WIDTH = 100

# COMMANDS / OPTIONS
click.rich_click.STYLE_COMMAND = "bold cyan"
click.rich_click.STYLE_OPTION = "bold magenta"
click.rich_click.STYLE_SWITCH = "bold green"
click.rich_click.STYLE_ARGUMENT = "bold yellow"

# HEADERS
click.rich_click.STYLE_HEADER_TEXT = "bold cyan"
click.rich_click.STYLE_USAGE = "bold yellow"
click.rich_click.STYLE_USAGE_COMMAND = "bold cyan"

# DEFAULTS
click.rich_click.STYLE_OPTION_DEFAULT = "dim cyan"
click.rich_click.STYLE_OPTIONS_PANEL_BORDER = "cyan"
click.rich_click.STYLE_COMMANDS_PANEL_BORDER = "cyan"
click.rich_click.ERRORS_EPILOGUE = ""

console = Console()


def handle_cli_errors(func):
    """Decorator to handle CLI errors gracefully."""
    from click.exceptions import ClickException

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClickException as e:
            # Click's built-in exceptions (already formatted)
            e.show()
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            console.print("\n\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            sys.exit(130)
        except Exception as e:
            console.print(f"\n[bold red]✗ Unexpected error:[/bold red] {e}\n")

            # Show traceback if DEBUG env var is set
            if os.environ.get("DEBUG"):
                import traceback

                console.print("[dim]Traceback:[/dim]")
                traceback.print_exc()
            sys.exit(1)

    return wrapper


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """
    cozydeploy - Provision a sensor and an application server over SSH.

    \b
    Quick Start:
      cozydeploy interfaces         # Pick capture/app interfaces
      cozydeploy render             # Review rendered scripts
      cozydeploy deploy             # Deploy both servers

    \b
    Working directory layout:
      cozydeploy.yml                # Credentials and configuration
      Sensor.tar.gz, App.tar.gz     # Server archives
      SensorDeploy.gtpl, AppDeploy.gtpl  # Script templates
    """


cli.add_command(deploy)
cli.add_command(render)
cli.add_command(interfaces)


@handle_cli_errors
def main():
    """Main entry point with error handling."""
    cli()


if __name__ == "__main__":
    main()
