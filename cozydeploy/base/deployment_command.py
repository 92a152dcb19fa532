"""
Deployment Command Base Class

Base class for commands that work from a deployment file.
"""

from pathlib import Path
from typing import Iterable, Optional

import click

from cozydeploy.core.config_loader import (
    SECRET_PROMPTS,
    DeploymentFile,
    load_deployment_file,
)
from .base_command import BaseCommand


class DeploymentCommand(BaseCommand):
    """
    Base class for commands driven by a deployment file.

    Provides:
    - Deployment file loading
    - Hidden prompts for secrets missing from file and environment
    """

    def __init__(
        self,
        deployment_file: Path,
        work_dir: Path,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(work_dir, verbose=verbose, json_output=json_output)
        self.deployment_file = Path(deployment_file)
        self.deployment: Optional[DeploymentFile] = None

    def load_deployment(self, required_secrets: Iterable[str]) -> DeploymentFile:
        """
        Load the deployment file and prompt for missing secrets.

        Args:
            required_secrets: Secret fields this command needs
                (password, apppassword, ipapassword)

        Returns:
            DeploymentFile with the required secrets filled in
        """
        deployment = load_deployment_file(self.deployment_file)

        missing = deployment.missing_secrets()
        for key in required_secrets:
            if key in missing:
                value = click.prompt(SECRET_PROMPTS[key], hide_input=True, err=True)
                deployment.set_secret(key, value)

        deployment.apply_defaults()
        self.deployment = deployment
        return deployment
