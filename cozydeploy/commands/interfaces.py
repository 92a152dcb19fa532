"""
Interfaces Command

List the network interfaces on both hosts.
"""

from pathlib import Path

import click
from rich.table import Table

from cozydeploy.base import DeploymentCommand
from cozydeploy.constants import DEFAULT_DEPLOYMENT_FILE
from cozydeploy.models.credentials import Role
from cozydeploy.services.interface_service import list_interfaces
from cozydeploy.services.ssh_service import RemoteSession
from cozydeploy.utils import resolve_work_dir


class InterfacesCommand(DeploymentCommand):
    """Show interface choices for the collection and application interfaces."""

    def execute(self) -> None:
        """Execute interfaces command."""
        deployment = self.load_deployment(["password", "apppassword"])
        credentials = deployment.build_credentials()

        self.show_header(title="Network Interfaces")

        interfaces = {}
        for role in Role:
            session = RemoteSession(credentials.get(role))
            interfaces[role.value] = list_interfaces(session)

        if self.json_output:
            self.output_json(
                {"network": deployment.configuration.get("ip"), "interfaces": interfaces}
            )
            return

        table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
        table.add_column("Role")
        table.add_column("Host")
        table.add_column("Interfaces")
        for role in Role:
            table.add_row(
                role.value,
                credentials.get(role).address,
                ", ".join(interfaces[role.value]) or "[dim]none[/dim]",
            )
        self.console.print(table)

        network = deployment.configuration.get("ip")
        if network:
            self.print_dim(f"Network prefix: {network}")


@click.command(name="interfaces")
@click.option(
    "--file",
    "-f",
    "deployment_file",
    default=DEFAULT_DEPLOYMENT_FILE,
    show_default=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Deployment file",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def interfaces(deployment_file, json_output):
    """
    List network interfaces on the sensor and application hosts

    Use the output to pick 'interface' (sensor collection interface) and
    'appinterface' in the deployment file.
    """
    cmd = InterfacesCommand(
        deployment_file, resolve_work_dir("."), json_output=json_output
    )
    cmd.run()
