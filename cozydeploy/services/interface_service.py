"""Network interface discovery on remote hosts."""

import re
from typing import List

from cozydeploy.constants import INTERFACE_LIST_COMMAND
from cozydeploy.exceptions import RemoteCommandError
from cozydeploy.services.ssh_service import RemoteSession

# "2: eth0: <BROADCAST,MULTICAST,UP> mtu 1500 ..."
INTERFACE_LINE = re.compile(r"^[0-9]*:\W([a-zA-Z0-9]+):.+$")


def parse_interfaces(output: str) -> List[str]:
    """
    Parse ``ip -o link show`` output into a sorted interface list.

    Names with characters outside [a-zA-Z0-9] (e.g. veth@if3, br-1a2b)
    are skipped.
    """
    interfaces = []
    for line in output.split("\n"):
        match = INTERFACE_LINE.match(line)
        if match:
            interfaces.append(match.group(1))
    return sorted(interfaces)


def list_interfaces(session: RemoteSession) -> List[str]:
    """
    List a host's network interfaces.

    Args:
        session: Session for the host

    Returns:
        Sorted interface names

    Raises:
        SSHConnectionError: If the host can't be reached
        RemoteCommandError: If the listing command fails
    """
    result = session.run(INTERFACE_LIST_COMMAND)
    if result.is_failure:
        raise RemoteCommandError(
            f"'{INTERFACE_LIST_COMMAND}' exited with status {result.returncode}",
            context=result.output or None,
        )
    return parse_interfaces(result.stdout)
