import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from cozydeploy.exceptions import TransferError
from cozydeploy.main import cli
from cozydeploy.models.results import SSHResult

SECRETS_ENV = {
    "COZY_SENSOR_PASSWORD": "s3nsor-pw",
    "COZY_APP_PASSWORD": "app-pw-99",
    "COZY_IPA_PASSWORD": "ipa-secret-1",
}


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    for name in SECRETS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def deployment_file(work_dir: Path) -> Path:
    path = work_dir / "cozydeploy.yml"
    path.write_text(
        yaml.safe_dump(
            {
                "credentials": {
                    "ip": "10.1.2.10",
                    "user": "sensor-admin",
                    "appip": "10.1.2.20",
                    "appuser": "app-admin",
                },
                "configuration": {
                    "workers": 4,
                    "domain": "example.local",
                    "interface": "eth1",
                    "memory": 16,
                    "appinterface": "eth0",
                },
            }
        )
    )
    return path


@pytest.fixture
def fake_remote(monkeypatch, session_factory):
    monkeypatch.setattr("cozydeploy.commands.deploy.RemoteSession", session_factory)
    monkeypatch.setattr("cozydeploy.commands.interfaces.RemoteSession", session_factory)
    return session_factory


def invoke(args, env=None, input=None):
    return CliRunner().invoke(cli, args, env=env, input=input, catch_exceptions=False)


def json_from(output: str) -> dict:
    return json.loads(output[output.index("{\n"):])


def test_render_writes_both_scripts(work_dir, deployment_file):
    result = invoke(
        ["render", "-f", str(deployment_file), "-w", str(work_dir)],
        env={"COZY_IPA_PASSWORD": "ipa-secret-1"},
    )

    assert result.exit_code == 0, result.output
    sensor_script = (work_dir / "SensorDeploy.sh").read_text()
    app_script = (work_dir / "AppDeploy.sh").read_text()
    assert "net=10.1.2" in sensor_script
    assert "DOMAIN=example.local" in app_script
    assert "ES_HEAP=16g" in app_script


def test_render_single_role_json(work_dir, deployment_file):
    result = invoke(
        ["render", "-f", str(deployment_file), "-w", str(work_dir), "--role", "sensor", "--json"],
        env={"COZY_IPA_PASSWORD": "ipa-secret-1"},
    )

    assert result.exit_code == 0, result.output
    assert list(json_from(result.output)["scripts"]) == ["sensor"]
    assert not (work_dir / "AppDeploy.sh").exists()


def test_render_prompts_for_missing_secret(work_dir, deployment_file):
    result = invoke(
        ["render", "-f", str(deployment_file), "-w", str(work_dir)],
        input="typed-ipa\n",
    )

    assert result.exit_code == 0, result.output
    assert "-p 'typed-ipa'" in (work_dir / "AppDeploy.sh").read_text()


def test_missing_deployment_file(tmp_path):
    result = invoke(["render", "-f", str(tmp_path / "absent.yml"), "-w", str(tmp_path)])

    assert result.exit_code == 1
    assert "Deployment file not found" in result.output


def test_deploy_success(work_dir, deployment_file, fake_remote):
    result = invoke(
        ["deploy", "-f", str(deployment_file), "-w", str(work_dir)], env=SECRETS_ENV
    )

    assert result.exit_code == 0, result.output
    assert "Both servers deployed" in result.output
    assert "Sensor Server Deployed." in result.output
    assert "Application Server Deployed." in result.output
    assert set(fake_remote.sessions) == {"10.1.2.10", "10.1.2.20"}
    assert not (work_dir / "SensorDeploy.sh").exists()
    assert not (work_dir / "AppDeploy.sh").exists()

    log_files = list((work_dir / "logs").glob("*/*_deploy.log"))
    assert len(log_files) == 1
    log_text = log_files[0].read_text()
    for secret in SECRETS_ENV.values():
        assert secret not in log_text
        assert secret not in result.output


def test_deploy_failure_sets_exit_code(work_dir, deployment_file, fake_remote):
    session = fake_remote.prepare("10.1.2.20")
    session.transfer_errors["/tmp/App.tar.gz"] = [
        TransferError("Copy to 10.1.2.20:/tmp/App.tar.gz failed", context="disk full")
    ]

    result = invoke(
        ["deploy", "-f", str(deployment_file), "-w", str(work_dir), "--json"],
        env=SECRETS_ENV,
    )

    assert result.exit_code == 1
    report = json_from(result.output)
    assert report["success"] is False
    sensor, application = report["results"]
    assert sensor["status"] == "success"
    assert application["failed_step"] == "transfer archive"
    assert application["steps"][0]["failure_kind"] == "transfer"
    assert not any(op == "run" for op, _ in session.calls)


def test_deploy_requires_archives(work_dir, deployment_file, fake_remote):
    (work_dir / "App.tar.gz").unlink()

    result = invoke(
        ["deploy", "-f", str(deployment_file), "-w", str(work_dir)], env=SECRETS_ENV
    )

    assert result.exit_code == 1
    assert "Server archives not found" in result.output
    assert fake_remote.journal == []


def test_deploy_rejects_bad_transfer_attempts(work_dir, deployment_file):
    result = invoke(
        ["deploy", "-f", str(deployment_file), "-w", str(work_dir), "--transfer-attempts", "9"],
        env=SECRETS_ENV,
    )

    assert result.exit_code == 2


def test_interfaces_json(work_dir, deployment_file, fake_remote):
    listings = {
        "10.1.2.10": "1: lo: <LOOPBACK> mtu 65536\n2: eth1: <UP> mtu 1500\n",
        "10.1.2.20": "1: lo: <LOOPBACK> mtu 65536\n2: eth0: <UP> mtu 1500\n",
    }
    for address, listing in listings.items():
        session = fake_remote.prepare(address)
        session.run = lambda command, on_line=None, listing=listing: SSHResult(
            returncode=0, stdout=listing, command=command
        )

    result = invoke(
        ["interfaces", "-f", str(deployment_file), "--json"],
        env=SECRETS_ENV,
    )

    assert result.exit_code == 0, result.output
    report = json_from(result.output)
    assert report["interfaces"] == {"sensor": ["eth1", "lo"], "application": ["eth0", "lo"]}
    assert report["network"] == "10.1.2"
