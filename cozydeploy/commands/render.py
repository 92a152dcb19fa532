"""
Render Command

Render deployment scripts locally without touching any host.
"""

from pathlib import Path
from typing import Optional

import click

from cozydeploy.base import DeploymentCommand
from cozydeploy.constants import DEFAULT_DEPLOYMENT_FILE
from cozydeploy.models.credentials import Role
from cozydeploy.models.plan import RolePlan
from cozydeploy.services.render_service import ScriptRenderer
from cozydeploy.utils import resolve_work_dir


class RenderCommand(DeploymentCommand):
    """Render one or both role scripts for review."""

    def __init__(
        self,
        deployment_file: Path,
        work_dir: Path,
        role: Optional[Role] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        super().__init__(
            deployment_file, work_dir, verbose=verbose, json_output=json_output
        )
        self.roles = [role] if role else list(Role)

    def execute(self) -> None:
        """Execute render command."""
        deployment = self.load_deployment(["ipapassword"])
        config = deployment.build_config()

        self.show_header(
            title="Render Scripts",
            subtitle="Rendered scripts contain secrets; remove them after review",
        )

        renderer = ScriptRenderer(self.work_dir)
        rendered = {}
        for role in self.roles:
            plan = RolePlan.for_role(role, self.work_dir)
            path = renderer.render(plan.template, config, plan.script)
            rendered[role.value] = str(path)
            self.print_success(f"{plan.template} -> {path}")

        if self.json_output:
            self.output_json({"scripts": rendered})


@click.command(name="render")
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
    help="Directory holding the templates",
)
@click.option(
    "--role",
    type=click.Choice([role.value for role in Role]),
    help="Render only this role's script",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def render(deployment_file, work_dir, role, json_output):
    """
    Render deployment scripts without deploying

    Writes SensorDeploy.sh and/or AppDeploy.sh next to their templates.
    """
    cmd = RenderCommand(
        deployment_file,
        resolve_work_dir(work_dir),
        role=Role(role) if role else None,
        json_output=json_output,
    )
    cmd.run()
