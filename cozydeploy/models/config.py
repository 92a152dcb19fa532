"""
Deployment Configuration Model

The shared configuration record used to render both role scripts.
"""

from dataclasses import dataclass, field, fields
from typing import Dict, Mapping

from cozydeploy.constants import MAX_ES_RAM_GB, MIN_ES_RAM_GB
from cozydeploy.exceptions import ValidationError
from cozydeploy.utils import form_value


@dataclass(frozen=True)
class DeploymentConfig:
    """
    Sensor/application stack configuration.

    Each attribute carries the placeholder name templates use for it in
    its field metadata (``{{.Domain}}`` renders ``domain``).
    """

    ip_schema: str = field(metadata={"template": "IP", "form": "ip"})
    workers: str = field(metadata={"template": "Workers", "form": "workers"})
    collection_interface: str = field(
        metadata={"template": "CollectionInterface", "form": "interface"}
    )
    domain: str = field(metadata={"template": "Domain", "form": "domain"})
    ipa_password: str = field(
        repr=False, metadata={"template": "IpaPassword", "form": "ipapassword"}
    )
    app_interface: str = field(
        metadata={"template": "AppInterface", "form": "appinterface"}
    )
    es_ram: str = field(metadata={"template": "ESRam", "form": "memory"})

    @classmethod
    def from_form(cls, form: Mapping[str, object]) -> "DeploymentConfig":
        """
        Build a validated config from form-style fields.

        Args:
            form: Mapping with ip, workers, domain, interface, ipapassword,
                memory and appinterface

        Returns:
            DeploymentConfig

        Raises:
            ValidationError: If a field is missing or out of range
        """
        values: Dict[str, str] = {}
        for config_field in fields(cls):
            key = config_field.metadata["form"]
            value = form_value(form, key)
            if not value:
                raise ValidationError(f"Missing configuration field '{key}'")
            values[config_field.name] = value

        values["workers"] = str(_parse_int(values["workers"], "workers", minimum=1))
        memory = _parse_int(
            values["es_ram"], "memory", minimum=MIN_ES_RAM_GB, maximum=MAX_ES_RAM_GB
        )
        values["es_ram"] = f"{memory}g"

        return cls(**values)

    def template_context(self) -> Dict[str, str]:
        """Values keyed by both template placeholder name and attribute name."""
        context = {}
        for config_field in fields(self):
            value = getattr(self, config_field.name)
            context[config_field.metadata["template"]] = value
            context[config_field.name] = value
        return context


def _parse_int(value: str, name: str, minimum: int = None, maximum: int = None) -> int:
    try:
        number = int(value)
    except ValueError:
        raise ValidationError(f"'{name}' must be a whole number, got '{value}'") from None

    if (minimum is not None and number < minimum) or (
        maximum is not None and number > maximum
    ):
        bounds = f"{minimum}-{maximum}" if maximum is not None else f">= {minimum}"
        raise ValidationError(f"'{name}' must be in range {bounds}, got {number}")
    return number
