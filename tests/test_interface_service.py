import pytest

from cozydeploy.exceptions import RemoteCommandError
from cozydeploy.models.results import SSHResult
from cozydeploy.services.interface_service import list_interfaces, parse_interfaces

IP_LINK_OUTPUT = """\
1: lo: <LOOPBACK,UP,LOWER_UP> mtu 65536 qdisc noqueue state UNKNOWN mode DEFAULT group default qlen 1000\\    link/loopback 00:00:00:00:00:00 brd 00:00:00:00:00:00
2: eth1: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP mode DEFAULT group default qlen 1000\\    link/ether 52:54:00:12:34:57 brd ff:ff:ff:ff:ff:ff
3: eth0: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc fq_codel state UP mode DEFAULT group default qlen 1000\\    link/ether 52:54:00:12:34:56 brd ff:ff:ff:ff:ff:ff
4: veth9a1@if3: <BROADCAST,MULTICAST,UP,LOWER_UP> mtu 1500 qdisc noqueue master docker0 state UP\\    link/ether 9a:1b:2c:3d:4e:5f brd ff:ff:ff:ff:ff:ff
5: docker0: <NO-CARRIER,BROADCAST,MULTICAST,UP> mtu 1500 qdisc noqueue state DOWN\\    link/ether 02:42:ac:11:00:02 brd ff:ff:ff:ff:ff:ff
"""


def test_parse_interfaces_sorted():
    assert parse_interfaces(IP_LINK_OUTPUT) == ["docker0", "eth0", "eth1", "lo"]


def test_parse_interfaces_ignores_noise():
    assert parse_interfaces("") == []
    assert parse_interfaces("Warning: something odd\n\n") == []


def test_list_interfaces_runs_ip_link(session_factory, sensor_credential):
    session = session_factory(sensor_credential)

    def run(command, on_line=None):
        session.calls.append(("run", command))
        return SSHResult(returncode=0, stdout=IP_LINK_OUTPUT, command=command)

    session.run = run

    assert list_interfaces(session) == ["docker0", "eth0", "eth1", "lo"]
    assert session.calls == [("run", "ip -o link show")]


def test_list_interfaces_command_failure(session_factory, sensor_credential):
    session = session_factory(sensor_credential)
    session.exit_codes["ip -o link show"] = 127

    with pytest.raises(RemoteCommandError, match="status 127"):
        list_interfaces(session)
