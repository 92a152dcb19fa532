"""
Logging system for cozydeploy
Provides real-time logging to files with clean console output
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, TextIO

from rich.console import Console
from rich.markup import escape

from cozydeploy.constants import LOG_DATE_FORMAT, LOG_DIR_NAME, LOG_TIME_FORMAT
from cozydeploy.utils import mask_secrets, strip_ansi

console = Console()


class DeployLogger:
    """
    Manages logging for deployment operations
    - Writes all output to a log file in real-time
    - Shows clean progress lines in console (all output if verbose)
    - Masks registered secrets everywhere
    - Safe to share between the two pipeline threads
    """

    def __init__(
        self,
        work_dir: Path,
        operation: str,
        verbose: bool = False,
        secrets: Iterable[str] = (),
        console_: Optional[Console] = None,
    ):
        """
        Initialize logger

        Args:
            work_dir: Deployment working directory (logs/ is created inside)
            operation: Operation name (e.g., 'deploy', 'render')
            verbose: If True, show all output in console
            secrets: Values that must never appear in output
            console_: Rich console to print to (module console if None)
        """
        self.operation = operation
        self.verbose = verbose
        self.console = console_ or console
        self.log_file: Optional[TextIO] = None
        self.log_path: Optional[Path] = None
        self.current_step = ""
        self.has_errors = False
        self._secrets: List[str] = [s for s in secrets if s]
        self._lock = threading.RLock()

        # Structure: logs/{date}/{time}_{operation}.log
        now = datetime.now()
        logs_dir = Path(work_dir) / LOG_DIR_NAME / now.strftime(LOG_DATE_FORMAT)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.log_path = logs_dir / f"{now.strftime(LOG_TIME_FORMAT)}_{operation}.log"

        # Line buffered for real-time
        self.log_file = open(self.log_path, "w", buffering=1)

        self._write_log_header()

    def _write_log_header(self):
        """Write log file header"""
        header = f"""
{"=" * 80}
cozydeploy Deployment Log
{"=" * 80}
Operation: {self.operation}
Started: {datetime.now().isoformat()}
{"=" * 80}

"""
        self._write(header)

    def mask(self, text: str) -> str:
        return mask_secrets(text, self._secrets)

    def _write(self, text: str) -> None:
        with self._lock:
            if self.log_file:
                self.log_file.write(self.mask(text))
                self.log_file.flush()

    def _print(self, markup: str) -> None:
        with self._lock:
            self.console.print(markup)

    def log(self, message: str, level: str = "INFO"):
        """
        Log a message to file and optionally console

        Args:
            message: Message to log
            level: Log level (INFO, WARNING, ERROR, DEBUG)
        """
        message = self.mask(message)
        timestamp = datetime.now().strftime("%H:%M:%S")
        self._write(f"[{timestamp}] [{level}] {message}\n")

        if self.verbose:
            text = escape(message)
            if level == "ERROR":
                self._print(f"[red]{text}[/red]")
            elif level == "WARNING":
                self._print(f"[yellow]{text}[/yellow]")
            elif level == "DEBUG":
                self._print(f"[dim]{text}[/dim]")
            else:
                self._print(text)

    def log_command(self, command: str):
        """Log a command being executed"""
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """
        Log command output

        Always written to the log file, shown in console only if verbose.

        Args:
            output: Command output (single line or multiline)
            stream: Stream label (e.g. 'sensor', 'application')
        """
        if not output:
            return

        clean_output = self.mask(strip_ansi(output))
        self._write(
            "".join(f"  [{stream}] {line}\n" for line in clean_output.splitlines())
        )

        if self.verbose:
            self._print(f"[dim]{escape(clean_output)}[/dim]")

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Log an error with context

        Args:
            error: Error message
            context: Additional context (e.g., step that failed)
        """
        self.has_errors = True
        error = self.mask(error)

        # Clear markers for grepping
        error_block = f"""
{"!" * 80}
ERROR OCCURRED
{"!" * 80}
{error}
"""
        if context:
            context = self.mask(context)
            error_block += f"\nContext: {context}\n"

        error_block += f"{'!' * 80}\n\n"
        self._write(error_block)

        self._print(f"[bold red]✗ {escape(error)}[/bold red]")
        if context:
            self._print(f"  [color(208)]{escape(context)}[/color(208)]")

    def step(self, step_name: str):
        """
        Start a new step

        Args:
            step_name: Name of the step
        """
        self.current_step = step_name
        self.log(f"Step: {step_name}", "INFO")

        if not self.verbose:
            self._print(f"[color(214)]▶[/color(214)] [white]{escape(self.mask(step_name))}[/white]")

    def progress(self, message: str):
        """Log a progress line and always show it."""
        self.log(message, "INFO")

        if not self.verbose:
            self._print(f"  {escape(self.mask(message))}")

    def success(self, message: str):
        """Log a success message"""
        self.log(message, "INFO")

        if not self.verbose:
            self._print(f"  [dim]✓ {escape(self.mask(message))}[/dim]")

    def warning(self, message: str):
        """Log a warning message"""
        self.log(message, "WARNING")

        if not self.verbose:
            self._print(f"  [yellow]⚠[/yellow] [dim]{escape(self.mask(message))}[/dim]")

    def close(self):
        """Close log file"""
        with self._lock:
            if self.log_file:
                footer = f"""
{"=" * 80}
Completed: {datetime.now().isoformat()}
Status: {"FAILED" if self.has_errors else "SUCCESS"}
{"=" * 80}
"""
                self.log_file.write(footer)
                self.log_file.close()
                self.log_file = None

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, _exc_tb):
        """Context manager exit"""
        if exc_type is not None and exc_type != SystemExit:
            # Log unhandled exception (but not SystemExit - that's expected)
            self.log_error(
                str(exc_val) if exc_val else "Operation failed",
                context=f"{exc_type.__name__}",
            )
        self.close()
        return False  # Don't suppress exceptions
