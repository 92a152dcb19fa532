"""
Deployment Context

Everything one deployment run needs, built once and shared by reference
with both pipelines.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from cozydeploy.models.config import DeploymentConfig
from cozydeploy.models.credentials import CredentialStore, Role
from cozydeploy.models.plan import RolePlan


@dataclass
class DeploymentContext:
    """Credentials, configuration and role plans for one run."""

    credentials: CredentialStore
    config: DeploymentConfig
    work_dir: Path
    plans: Dict[Role, RolePlan] = field(default_factory=dict)

    def __post_init__(self):
        self.work_dir = Path(self.work_dir)
        for role in Role:
            if role not in self.plans:
                self.plans[role] = RolePlan.for_role(role, self.work_dir)

    def plan(self, role: Role) -> RolePlan:
        return self.plans[role]

    def secrets(self) -> List[str]:
        """Every secret the run holds, for log masking."""
        return self.credentials.secrets() + [self.config.ipa_password]
