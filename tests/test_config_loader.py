from pathlib import Path

import pytest
import yaml

from cozydeploy.core.config_loader import build_form_context, load_deployment_file
from cozydeploy.exceptions import ConfigurationError, ValidationError
from cozydeploy.models.credentials import Role


def write_deployment(path: Path, credentials=None, configuration=None) -> Path:
    data = {
        "credentials": credentials
        if credentials is not None
        else {"ip": "192.168.50.10", "user": "root", "appip": "192.168.50.11", "appuser": "admin"},
        "configuration": configuration
        if configuration is not None
        else {
            "workers": 8,
            "domain": "lab.example",
            "interface": "ens4",
            "memory": 12,
            "appinterface": "ens3",
        },
    }
    path.write_text(yaml.safe_dump(data))
    return path


def test_load_fills_secrets_from_environment(tmp_path: Path):
    path = write_deployment(tmp_path / "cozydeploy.yml")
    environ = {
        "COZY_SENSOR_PASSWORD": "env-sensor",
        "COZY_APP_PASSWORD": "env-app",
        "COZY_IPA_PASSWORD": "env-ipa",
    }

    deployment = load_deployment_file(path, environ=environ)

    assert deployment.missing_secrets() == []
    assert deployment.credentials["password"] == "env-sensor"
    assert deployment.credentials["apppassword"] == "env-app"
    assert deployment.configuration["ipapassword"] == "env-ipa"


def test_load_reads_dotenv_next_to_file(tmp_path: Path):
    path = write_deployment(tmp_path / "cozydeploy.yml")
    (tmp_path / ".env").write_text(
        "COZY_SENSOR_PASSWORD=dotenv-sensor\nCOZY_IPA_PASSWORD=dotenv-ipa\n"
    )

    deployment = load_deployment_file(path, environ={"COZY_SENSOR_PASSWORD": "env-wins"})

    assert deployment.credentials["password"] == "env-wins"
    assert deployment.configuration["ipapassword"] == "dotenv-ipa"
    assert deployment.missing_secrets() == ["apppassword"]


def test_file_values_take_precedence(tmp_path: Path):
    path = write_deployment(
        tmp_path / "cozydeploy.yml",
        credentials={
            "ip": "192.168.50.10",
            "user": "root",
            "password": "from-file",
            "appip": "192.168.50.11",
            "appuser": "admin",
            "apppassword": "app-from-file",
        },
    )

    deployment = load_deployment_file(path, environ={"COZY_SENSOR_PASSWORD": "ignored"})

    assert deployment.credentials["password"] == "from-file"
    assert deployment.missing_secrets() == ["ipapassword"]


def test_build_context_derives_network_prefix(tmp_path: Path):
    path = write_deployment(tmp_path / "cozydeploy.yml")
    environ = {
        "COZY_SENSOR_PASSWORD": "a",
        "COZY_APP_PASSWORD": "b",
        "COZY_IPA_PASSWORD": "c",
    }

    context = load_deployment_file(path, environ=environ).build_context(tmp_path)

    assert context.config.ip_schema == "192.168.50"
    assert context.config.workers == "8"
    assert context.config.es_ram == "12g"
    assert context.credentials.get(Role.APPLICATION).user == "admin"
    assert context.plan(Role.SENSOR).archive == tmp_path / "Sensor.tar.gz"
    assert sorted(context.secrets()) == ["a", "b", "c"]


def test_explicit_network_prefix_is_kept(tmp_path: Path):
    path = write_deployment(
        tmp_path / "cozydeploy.yml",
        configuration={
            "ip": "172.16.9",
            "workers": 2,
            "domain": "lab.example",
            "interface": "ens4",
            "memory": 4,
            "appinterface": "ens3",
            "ipapassword": "ipa",
        },
    )

    deployment = load_deployment_file(path, environ={})
    deployment.apply_defaults()

    assert deployment.configuration["ip"] == "172.16.9"


def test_underivable_network_prefix(tmp_path: Path):
    path = write_deployment(
        tmp_path / "cozydeploy.yml",
        credentials={"ip": "sensor.lab", "user": "root"},
    )

    with pytest.raises(ConfigurationError, match="can't be derived"):
        load_deployment_file(path, environ={}).apply_defaults()


def test_missing_file(tmp_path: Path):
    with pytest.raises(ConfigurationError, match="not found"):
        load_deployment_file(tmp_path / "nope.yml", environ={})


def test_invalid_yaml(tmp_path: Path):
    path = tmp_path / "cozydeploy.yml"
    path.write_text("credentials: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        load_deployment_file(path, environ={})


@pytest.mark.parametrize(
    "content, message",
    [
        ("- just\n- a list\n", "must contain a mapping"),
        ("credentials: 42\n", "'credentials'"),
    ],
)
def test_malformed_structure(tmp_path: Path, content, message):
    path = tmp_path / "cozydeploy.yml"
    path.write_text(content)

    with pytest.raises(ConfigurationError, match=message):
        load_deployment_file(path, environ={})


def test_build_form_context_from_http_style_forms(tmp_path: Path, config_form):
    credential_form = {
        "ip": ["10.1.2.10"],
        "user": ["root"],
        "password": ["pw"],
        "appip": ["10.1.2.20"],
        "appuser": ["admin"],
        "apppassword": ["pw2"],
    }
    config = {key: [value] for key, value in config_form.items()}

    context = build_form_context(credential_form, config, tmp_path)

    assert context.config.domain == "example.local"
    assert context.credentials.is_complete


def test_build_form_context_validates(tmp_path: Path, config_form):
    config_form["memory"] = "64"

    with pytest.raises(ValidationError):
        build_form_context(
            {"ip": "1.1.1.1", "user": "u", "password": "p", "appip": "1.1.1.2",
             "appuser": "u", "apppassword": "p"},
            config_form,
            tmp_path,
        )
