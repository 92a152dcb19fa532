"""
Result Models

Dataclass models for remote command output and deployment outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any

from cozydeploy.exceptions import FailureKind
from cozydeploy.models.credentials import Role


class ResultStatus(Enum):
    """Status of an operation result."""

    SUCCESS = "success"
    FAILURE = "failure"
    WARNING = "warning"


class PipelineStep(Enum):
    """The fixed steps of a role's deployment, in execution order."""

    TRANSFER_ARCHIVE = "transfer archive"
    EXTRACT_ARCHIVE = "extract archive"
    TRANSFER_SCRIPT = "transfer script"
    CLEANUP_SCRIPT = "remove local script"
    EXECUTE_SCRIPT = "execute script"


@dataclass
class SSHResult:
    """Result of an SSH command execution."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    host: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if SSH command succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if SSH command failed."""
        return self.returncode != 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()

    def __repr__(self) -> str:
        return f"SSHResult(host={self.host}, returncode={self.returncode}, duration={self.duration_seconds:.2f}s)"


@dataclass
class StepResult:
    """Outcome of one pipeline step."""

    step: PipelineStep
    status: ResultStatus
    message: str = ""
    failure_kind: Optional[FailureKind] = None
    output: str = ""
    side_effects: Optional[str] = None
    attempts: int = 1
    duration_seconds: float = 0.0

    @property
    def is_failure(self) -> bool:
        return self.status == ResultStatus.FAILURE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "status": self.status.value,
            "message": self.message,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "side_effects": self.side_effects,
            "attempts": self.attempts,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class PipelineResult:
    """
    Outcome of one role's deployment pipeline.

    A pipeline stops at its first failed step, so at most one step in
    ``steps`` has FAILURE status. Only local cleanup may follow it.
    """

    role: Role
    steps: List[StepResult] = field(default_factory=list)

    @property
    def failure(self) -> Optional[StepResult]:
        """The failed step, if any."""
        for step in self.steps:
            if step.is_failure:
                return step
        return None

    @property
    def failed_step(self) -> Optional[PipelineStep]:
        failure = self.failure
        return failure.step if failure else None

    @property
    def is_success(self) -> bool:
        """True when the script was executed and nothing failed."""
        if self.failure is not None:
            return False
        return any(step.step == PipelineStep.EXECUTE_SCRIPT for step in self.steps)

    @property
    def status(self) -> ResultStatus:
        if not self.is_success:
            return ResultStatus.FAILURE
        if any(step.status == ResultStatus.WARNING for step in self.steps):
            return ResultStatus.WARNING
        return ResultStatus.SUCCESS

    @property
    def completed_steps(self) -> List[PipelineStep]:
        return [step.step for step in self.steps if not step.is_failure]

    def describe(self) -> str:
        """One operator-facing summary of this role's outcome."""
        failure = self.failure
        if failure is None:
            if self.is_success:
                return f"{self.role.value}: deployed"
            return f"{self.role.value}: not completed"

        kind = failure.failure_kind.value if failure.failure_kind else "unknown"
        text = f"{self.role.value}: {failure.step.value} failed ({kind}): {failure.message}"
        if failure.side_effects:
            text += f"\n  Remote state: {failure.side_effects}"
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "status": self.status.value,
            "failed_step": self.failed_step.value if self.failed_step else None,
            "steps": [step.to_dict() for step in self.steps],
        }

    def __repr__(self) -> str:
        return f"PipelineResult(role={self.role.value}, status={self.status.value}, steps={len(self.steps)})"


@dataclass
class DeploymentOutcome:
    """Joined outcome of the sensor and application pipelines."""

    sensor: PipelineResult
    application: PipelineResult

    @property
    def results(self) -> List[PipelineResult]:
        return [self.sensor, self.application]

    @property
    def is_success(self) -> bool:
        return self.sensor.is_success and self.application.is_success

    @property
    def exit_code(self) -> int:
        return 0 if self.is_success else 1

    def for_role(self, role: Role) -> PipelineResult:
        return self.sensor if role == Role.SENSOR else self.application

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.is_success,
            "results": [result.to_dict() for result in self.results],
        }
