"""
Base Command Class

Abstract base for all cozydeploy commands.
Provides common functionality and structure.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from rich.console import Console

from cozydeploy.exceptions import CozyDeployError
from cozydeploy.logger import DeployLogger
from cozydeploy.ui_components import show_header


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Logger initialization
    - Header display
    - Error handling
    - JSON output support
    """

    def __init__(self, work_dir: Path, verbose: bool = False, json_output: bool = False):
        self.work_dir = Path(work_dir)
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.logger: Optional[DeployLogger] = None

    def init_logger(
        self, command_name: str, secrets: Iterable[str] = ()
    ) -> DeployLogger:
        """
        Initialize command logger.

        In JSON mode console output goes to stderr so stdout stays parseable.

        Args:
            command_name: Command name (used in the log file name)
            secrets: Values to mask in all output

        Returns:
            DeployLogger instance
        """
        console = Console(stderr=True) if self.json_output else self.console
        self.logger = DeployLogger(
            self.work_dir,
            command_name,
            verbose=self.verbose,
            secrets=secrets,
            console_=console,
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit on error.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title, subtitle=subtitle, details=details, console=self.console
            )

    def print_success(self, message: str) -> None:
        """Print success message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[green]✓ {message}[/green]")

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {message}[/red]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{message}[/dim]")

    def handle_error(self, error: Any, context: Optional[str] = None) -> None:
        """
        Handle error with consistent formatting.

        Args:
            error: Exception or message
            context: Optional context message
        """
        if self.logger:
            self.logger.log_error(str(error), context=context)
        else:
            self.print_error(str(error))
            if context:
                self.print_dim(f"Context: {context}")

    def _exit(self, code: int, error: Optional[str] = None) -> None:
        if self.json_output and error:
            self.output_json({"error": error}, exit_code=code)
        if self.logger:
            self.print_dim(f"Logs saved to: {self.logger.log_path}")
        raise SystemExit(code)

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self._exit(130)
        except SystemExit:
            raise
        except CozyDeployError as e:
            self.handle_error(e.message, context=e.context)
            self._exit(1, e.format_message())
        except Exception as e:
            error_type = type(e).__name__
            self.handle_error(f"{error_type}: {e}")
            self._exit(1, f"{error_type}: {e}")
        finally:
            if self.logger:
                self.logger.close()
