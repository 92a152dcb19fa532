"""Deployment file loading for cozydeploy"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values

from cozydeploy.constants import (
    DEFAULT_ENV_FILE,
    ENV_APP_PASSWORD,
    ENV_IPA_PASSWORD,
    ENV_SENSOR_PASSWORD,
)
from cozydeploy.exceptions import ConfigurationError
from cozydeploy.models.config import DeploymentConfig
from cozydeploy.models.context import DeploymentContext
from cozydeploy.models.credentials import CredentialStore
from cozydeploy.utils import form_value, ip_schema_from_address

# Secret form field -> environment variable
SECRET_ENV_VARS = {
    "password": ENV_SENSOR_PASSWORD,
    "apppassword": ENV_APP_PASSWORD,
    "ipapassword": ENV_IPA_PASSWORD,
}

SECRET_PROMPTS = {
    "password": "Sensor SSH password",
    "apppassword": "Application server SSH password",
    "ipapassword": "Identity service (FreeIPA) password",
}


@dataclass
class DeploymentFile:
    """
    Form-style fields read from a deployment file.

    ``credentials`` uses ip/user/password/appip/appuser/apppassword,
    ``configuration`` uses ip/workers/domain/interface/ipapassword/
    memory/appinterface.
    """

    credentials: Dict[str, Any] = field(default_factory=dict)
    configuration: Dict[str, Any] = field(default_factory=dict)
    path: Optional[Path] = None

    def missing_secrets(self) -> List[str]:
        """Secret fields with no value yet."""
        missing = []
        for key in ("password", "apppassword"):
            if not form_value(self.credentials, key):
                missing.append(key)
        if not form_value(self.configuration, "ipapassword"):
            missing.append("ipapassword")
        return missing

    def set_secret(self, key: str, value: str) -> None:
        if key == "ipapassword":
            self.configuration[key] = value
        else:
            self.credentials[key] = value

    def apply_defaults(self) -> None:
        """Derive the network prefix from the sensor address when unset."""
        if form_value(self.configuration, "ip"):
            return
        sensor_ip = form_value(self.credentials, "ip")
        if not sensor_ip:
            return
        try:
            self.configuration["ip"] = ip_schema_from_address(sensor_ip)
        except ValueError:
            raise ConfigurationError(
                "configuration.ip is not set and can't be derived",
                context=f"Sensor address '{sensor_ip}' is not an IPv4 address",
            ) from None

    def build_credentials(self) -> CredentialStore:
        return CredentialStore.from_form(self.credentials)

    def build_config(self) -> DeploymentConfig:
        return DeploymentConfig.from_form(self.configuration)

    def build_context(self, work_dir: Union[str, Path]) -> DeploymentContext:
        """
        Build the run context.

        Raises:
            ValidationError: If a field is missing or invalid
        """
        self.apply_defaults()
        return DeploymentContext(
            credentials=self.build_credentials(),
            config=self.build_config(),
            work_dir=Path(work_dir),
        )


def load_deployment_file(
    path: Union[str, Path],
    environ: Optional[Mapping[str, str]] = None,
) -> DeploymentFile:
    """
    Load a deployment file and fill secrets from the environment.

    Secrets missing from the file are taken from COZY_* variables in
    ``environ`` (default: process environment), then from a .env file
    next to the deployment file.

    Args:
        path: YAML deployment file
        environ: Environment to read secrets from

    Returns:
        DeploymentFile

    Raises:
        ConfigurationError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Deployment file not found: {path}",
            context="Create it or pass --file",
        )

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}", context=str(e))

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")

    sections = {}
    for section in ("credentials", "configuration"):
        value = data.get(section) or {}
        if not isinstance(value, dict):
            raise ConfigurationError(f"'{section}' in {path} must be a mapping")
        sections[section] = dict(value)

    deployment = DeploymentFile(path=path, **sections)

    if environ is None:
        environ = os.environ
    env_file = path.parent / DEFAULT_ENV_FILE
    file_env = dotenv_values(env_file) if env_file.exists() else {}

    for key in deployment.missing_secrets():
        env_var = SECRET_ENV_VARS[key]
        value = environ.get(env_var) or file_env.get(env_var)
        if value:
            deployment.set_secret(key, value)

    return deployment


def build_form_context(
    credential_form: Mapping[str, object],
    config_form: Mapping[str, object],
    work_dir: Union[str, Path],
) -> DeploymentContext:
    """Build a run context straight from two form-style mappings."""
    deployment = DeploymentFile(
        credentials=dict(credential_form), configuration=dict(config_form)
    )
    return deployment.build_context(work_dir)
