"""
cozydeploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the tool.
"""

from enum import Enum
from typing import Optional


class FailureKind(Enum):
    """Where in a deployment a failure originated."""

    CONNECTION = "connection"
    TRANSFER = "transfer"
    COMMAND = "command"
    RENDER = "render"


class CozyDeployError(Exception):
    """Base exception for all cozydeploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigurationError(CozyDeployError):
    """Raised when the deployment file is invalid or missing."""

    pass


class ValidationError(CozyDeployError):
    """Raised when operator-supplied values fail validation."""

    pass


class StateError(CozyDeployError):
    """Raised when credential or deployment state is used out of order."""

    pass


class DeploymentError(CozyDeployError):
    """Raised when a deployment run cannot proceed."""

    pass


class RenderError(CozyDeployError):
    """Raised when a deployment script cannot be rendered or written."""

    failure_kind = FailureKind.RENDER


class SSHError(CozyDeployError):
    """Raised when SSH operations fail."""

    failure_kind = FailureKind.CONNECTION


class SSHConnectionError(SSHError):
    """Raised when a host cannot be reached or the SSH handshake fails."""

    pass


class AuthenticationError(SSHConnectionError):
    """Raised when the host rejects the role's credentials."""

    def __init__(self, user: str, host: str, detail: Optional[str] = None):
        self.user = user
        self.host = host
        super().__init__(f"Authentication failed for {user}@{host}", context=detail)


class TransferError(SSHError):
    """Raised when copying a file to or from a host fails."""

    failure_kind = FailureKind.TRANSFER


class RemoteCommandError(SSHError):
    """Raised when a remote command cannot be run to completion."""

    failure_kind = FailureKind.COMMAND


class LocalFileError(TransferError):
    """Raised when a file to be copied can't be read locally."""

    pass
