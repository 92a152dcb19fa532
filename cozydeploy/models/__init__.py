"""
cozydeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .credentials import (
    Role,
    Credential,
    CredentialStore,
)
from .config import DeploymentConfig
from .plan import RolePlan
from .context import DeploymentContext
from .results import (
    ResultStatus,
    PipelineStep,
    SSHResult,
    StepResult,
    PipelineResult,
    DeploymentOutcome,
)

__all__ = [
    # Credentials
    "Role",
    "Credential",
    "CredentialStore",
    # Configuration
    "DeploymentConfig",
    "RolePlan",
    "DeploymentContext",
    # Results
    "ResultStatus",
    "PipelineStep",
    "SSHResult",
    "StepResult",
    "PipelineResult",
    "DeploymentOutcome",
]
