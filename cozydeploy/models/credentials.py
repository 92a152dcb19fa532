"""
Credential Models

SSH credentials for the two deployment roles.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping

from cozydeploy.constants import DEFAULT_SSH_PORT
from cozydeploy.exceptions import StateError, ValidationError
from cozydeploy.utils import form_value


class Role(Enum):
    """The two fixed deployment targets."""

    SENSOR = "sensor"
    APPLICATION = "application"


@dataclass(frozen=True)
class Credential:
    """SSH connection parameters for one host."""

    address: str
    user: str
    secret: str = field(repr=False)
    port: int = DEFAULT_SSH_PORT

    @property
    def connection_string(self) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.user}@{self.address}"

    def __repr__(self) -> str:
        return f"Credential(address={self.address}, user={self.user})"


# Form field names per role: (address, user, secret)
CREDENTIAL_FIELDS: Dict[Role, tuple] = {
    Role.SENSOR: ("ip", "user", "password"),
    Role.APPLICATION: ("appip", "appuser", "apppassword"),
}


class CredentialStore:
    """
    Role -> Credential mapping for one deployment run.

    Each role is assigned exactly once. Once frozen (when a deployment
    starts), the store is read-only.
    """

    def __init__(self):
        self._credentials: Dict[Role, Credential] = {}
        self._frozen = False

    @classmethod
    def from_form(cls, form: Mapping[str, object]) -> "CredentialStore":
        """
        Build both credentials from form-style fields.

        Args:
            form: Mapping with ip/user/password and appip/appuser/apppassword

        Returns:
            CredentialStore with both roles assigned

        Raises:
            ValidationError: If a field is missing or empty
        """
        store = cls()
        for role, (address_key, user_key, secret_key) in CREDENTIAL_FIELDS.items():
            values = {}
            for key in (address_key, user_key, secret_key):
                value = form_value(form, key)
                if not value:
                    raise ValidationError(
                        f"Missing credential field '{key}'",
                        context=f"Role: {role.value}",
                    )
                values[key] = value
            store.assign(
                role,
                Credential(
                    address=values[address_key],
                    user=values[user_key],
                    secret=values[secret_key],
                ),
            )
        return store

    def assign(self, role: Role, credential: Credential) -> None:
        if self._frozen:
            raise StateError(
                f"Cannot assign {role.value} credentials",
                context="Deployment already started",
            )
        if role in self._credentials:
            raise StateError(f"Credentials for {role.value} already assigned")
        self._credentials[role] = credential

    def get(self, role: Role) -> Credential:
        try:
            return self._credentials[role]
        except KeyError:
            raise StateError(f"No credentials assigned for {role.value}") from None

    def freeze(self) -> None:
        self._frozen = True

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def is_complete(self) -> bool:
        return all(role in self._credentials for role in Role)

    def secrets(self) -> List[str]:
        """Secrets held by the store, for log masking."""
        return [credential.secret for credential in self._credentials.values()]

    def __contains__(self, role: Role) -> bool:
        return role in self._credentials

    def __repr__(self) -> str:
        roles = ", ".join(role.value for role in self._credentials)
        return f"CredentialStore(roles=[{roles}], frozen={self._frozen})"
