"""
Deploy Command

Provision the sensor and application hosts.
"""

from dataclasses import dataclass
from pathlib import Path

import click

from cozydeploy.base import DeploymentCommand
from cozydeploy.constants import (
    DEFAULT_DEPLOYMENT_FILE,
    DEFAULT_TRANSFER_ATTEMPTS,
    MAX_TRANSFER_ATTEMPTS,
)
from cozydeploy.exceptions import DeploymentError
from cozydeploy.models.credentials import Role
from cozydeploy.models.results import DeploymentOutcome
from cozydeploy.services.orchestrator import Orchestrator
from cozydeploy.services.ssh_service import RemoteSession
from cozydeploy.ui_components import outcome_table
from cozydeploy.utils import resolve_work_dir


@dataclass
class DeployOptions:
    """Options for deploy command."""

    transfer_attempts: int = DEFAULT_TRANSFER_ATTEMPTS


class DeployCommand(DeploymentCommand):
    """
    Render both deployment scripts and run both pipelines.

    Features:
    - Scripts rendered before any remote activity
    - Sensor and application deployed concurrently
    - Per-role summary and exit code
    """

    def __init__(
        self,
        deployment_file: Path,
        work_dir: Path,
        options: DeployOptions,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(
            deployment_file, work_dir, verbose=verbose, json_output=json_output
        )
        self.options = options

    def execute(self) -> None:
        """Execute deploy command."""
        deployment = self.load_deployment(["password", "apppassword", "ipapassword"])
        context = deployment.build_context(self.work_dir)
        self._check_archives(context)

        sensor = context.credentials.get(Role.SENSOR)
        application = context.credentials.get(Role.APPLICATION)
        self.show_header(
            title="Deploy",
            details={
                "Sensor": sensor.connection_string,
                "Application": application.connection_string,
                "Domain": context.config.domain,
            },
        )

        logger = self.init_logger("deploy", secrets=context.secrets())
        orchestrator = Orchestrator(
            context,
            session_factory=RemoteSession,
            logger=logger,
            transfer_attempts=self.options.transfer_attempts,
        )

        logger.step("Rendering Deployment Scripts")
        orchestrator.prepare()
        logger.success("Scripts rendered")

        logger.step("Deploying Servers")
        outcome = orchestrator.start().wait()

        self._report(outcome)

    def _check_archives(self, context) -> None:
        missing = [
            str(context.plan(role).archive)
            for role in Role
            if not context.plan(role).archive.exists()
        ]
        if missing:
            raise DeploymentError(
                "Server archives not found",
                context=", ".join(missing),
            )

    def _report(self, outcome: DeploymentOutcome) -> None:
        if self.json_output:
            self.output_json(outcome.to_dict(), exit_code=outcome.exit_code)
            return

        self.console.print()
        self.console.print(outcome_table(outcome))
        self.console.print()

        for result in outcome.results:
            if not result.is_success:
                self.print_error(self.logger.mask(result.describe()))

        if outcome.is_success:
            self.print_success("Both servers deployed")
        self.print_dim(f"Logs saved to: {self.logger.log_path}")

        if not outcome.is_success:
            self.logger.has_errors = True
            raise SystemExit(outcome.exit_code)


@click.command(name="deploy")
@click.option(
    "--file",
    "-f",
    "deployment_file",
    default=DEFAULT_DEPLOYMENT_FILE,
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Deployment file",
)
@click.option(
    "--work-dir",
    "-w",
    default=".",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding archives and templates",
)
@click.option(
    "--transfer-attempts",
    default=DEFAULT_TRANSFER_ATTEMPTS,
    show_default=True,
    type=click.IntRange(1, MAX_TRANSFER_ATTEMPTS),
    help="Attempts per file transfer",
)
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def deploy(deployment_file, work_dir, transfer_attempts, verbose, json_output):
    """
    Deploy the sensor and application servers

    Renders SensorDeploy.sh and AppDeploy.sh from their templates, then
    on both hosts at once: uploads the server archive, extracts it,
    uploads the script and runs it.

    Examples:
        # Deploy using ./cozydeploy.yml
        cozydeploy deploy

        # Passwords from the environment
        COZY_SENSOR_PASSWORD=... COZY_APP_PASSWORD=... cozydeploy deploy -f site.yml
    """
    options = DeployOptions(transfer_attempts=transfer_attempts)
    cmd = DeployCommand(
        deployment_file,
        resolve_work_dir(work_dir),
        options,
        verbose=verbose,
        json_output=json_output,
    )
    cmd.run()
