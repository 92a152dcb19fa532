import threading
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import pytest

from cozydeploy.models.config import DeploymentConfig
from cozydeploy.models.context import DeploymentContext
from cozydeploy.models.credentials import Credential, CredentialStore, Role
from cozydeploy.models.results import SSHResult

SENSOR_TEMPLATE = """#!/bin/bash
# sensor {{.Domain}}
echo "workers={{.Workers}} iface={{.CollectionInterface}} net={{.IP}}"
"""

APP_TEMPLATE = """#!/bin/bash
DOMAIN={{.Domain}}
ES_HEAP={{.ESRam}}
IFACE={{.AppInterface}}
ipa-server-install -p '{{.IpaPassword}}'
"""


class FakeRemoteHost:
    """In-memory remote filesystem plus a command log."""

    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.commands: List[str] = []


class FakeSession:
    """
    Stand-in for RemoteSession.

    Records every call in ``calls`` as (operation, argument) and in the
    shared ``journal`` as (address, operation, argument).
    """

    def __init__(
        self,
        credential: Credential,
        host: Optional[FakeRemoteHost] = None,
        journal: Optional[list] = None,
    ):
        self.credential = credential
        self.host = host or FakeRemoteHost()
        self.journal = journal if journal is not None else []
        self.calls: List[Tuple[str, str]] = []
        # destination -> errors raised by successive transfers
        self.transfer_errors: Dict[str, List[Exception]] = {}
        self.command_errors: Dict[str, Exception] = {}
        self.exit_codes: Dict[str, int] = {}
        self.before_call: Optional[Callable[[str], None]] = None

    def _record(self, operation: str, argument: str):
        if self.before_call:
            self.before_call(operation)
        self.calls.append((operation, argument))
        self.journal.append((self.credential.address, operation, argument))

    def transfer(self, source, destination: str) -> int:
        self._record("transfer", destination)
        errors = self.transfer_errors.get(destination)
        if errors:
            raise errors.pop(0)
        data = Path(source).read_bytes()
        self.host.files[destination] = data
        return len(data)

    def fetch(self, source: str, destination) -> int:
        self._record("fetch", source)
        data = self.host.files[source]
        Path(destination).write_bytes(data)
        return len(data)

    def run(self, command: str, on_line=None) -> SSHResult:
        self._record("run", command)
        if command in self.command_errors:
            raise self.command_errors[command]
        self.host.commands.append(command)
        output = f"ran: {command}"
        if on_line:
            on_line(output)
        return SSHResult(
            returncode=self.exit_codes.get(command, 0),
            stdout=output,
            host=self.credential.address,
            command=command,
        )


class FakeSessionFactory:
    """Hands out one FakeSession per credential address."""

    def __init__(self):
        self.journal: list = []
        self.sessions: Dict[str, FakeSession] = {}
        self.lock = threading.Lock()

    def __call__(self, credential: Credential) -> FakeSession:
        with self.lock:
            session = self.sessions.get(credential.address)
            if session is None:
                session = FakeSession(credential, journal=self.journal)
                self.sessions[credential.address] = session
            return session

    def prepare(self, address: str) -> FakeSession:
        """Create the session for an address ahead of time to configure it."""
        return self(Credential(address=address, user="unused", secret="unused"))


@pytest.fixture
def sensor_credential() -> Credential:
    return Credential(address="10.1.2.10", user="sensor-admin", secret="s3nsor-pw")


@pytest.fixture
def app_credential() -> Credential:
    return Credential(address="10.1.2.20", user="app-admin", secret="app-pw-99")


@pytest.fixture
def credential_store(sensor_credential, app_credential) -> CredentialStore:
    store = CredentialStore()
    store.assign(Role.SENSOR, sensor_credential)
    store.assign(Role.APPLICATION, app_credential)
    return store


@pytest.fixture
def config_form() -> dict:
    return {
        "ip": "10.1.2",
        "workers": "4",
        "domain": "example.local",
        "interface": "eth1",
        "ipapassword": "ipa-secret-1",
        "memory": "16",
        "appinterface": "eth0",
    }


@pytest.fixture
def deployment_config(config_form) -> DeploymentConfig:
    return DeploymentConfig.from_form(config_form)


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Working directory with both archives and both templates."""
    (tmp_path / "Sensor.tar.gz").write_bytes(b"sensor-archive\x00\x01" * 100)
    (tmp_path / "App.tar.gz").write_bytes(b"app-archive\x00\x02" * 100)
    (tmp_path / "SensorDeploy.gtpl").write_text(SENSOR_TEMPLATE)
    (tmp_path / "AppDeploy.gtpl").write_text(APP_TEMPLATE)
    return tmp_path


@pytest.fixture
def context(credential_store, deployment_config, work_dir) -> DeploymentContext:
    return DeploymentContext(
        credentials=credential_store, config=deployment_config, work_dir=work_dir
    )


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()
