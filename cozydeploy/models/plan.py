"""
Role Plans

The fixed local and remote paths each role's pipeline works with.
These remote paths and commands are what existing provisioning images
expect; do not change them.
"""

from dataclasses import dataclass
from pathlib import Path

from cozydeploy import constants
from cozydeploy.models.credentials import Role


@dataclass(frozen=True)
class ProgressMessages:
    """Operator progress lines printed around a role's two phases."""

    transferring: str
    transferred: str
    build_started: str
    deployed: str


# Wording operators already know, including its per-role quirks
PROGRESS_MESSAGES = {
    Role.SENSOR: ProgressMessages(
        transferring="Transferring Sensor files.",
        transferred="Transferring Sensor files: Complete",
        build_started="Sensor Server build started.",
        deployed="Sensor Server Deployed.",
    ),
    Role.APPLICATION: ProgressMessages(
        transferring="Transferring Application files.",
        transferred="Transferring Application Server files: Complete",
        build_started="Application Server build started.",
        deployed="Application Server Deployed.",
    ),
}


@dataclass(frozen=True)
class RolePlan:
    """Local artifacts and remote wire contract for one role."""

    role: Role
    label: str
    archive: Path
    template: str
    script: Path
    remote_archive: str
    remote_dir: str
    remote_script: str
    messages: ProgressMessages

    @property
    def extract_command(self) -> str:
        return f"tar xzvf {self.remote_archive} -C {constants.REMOTE_STAGING_DIR}"

    @property
    def execute_command(self) -> str:
        return f"cd {self.remote_dir}; /bin/bash {self.remote_script}"

    @classmethod
    def for_role(cls, role: Role, work_dir: Path) -> "RolePlan":
        work_dir = Path(work_dir)
        if role == Role.SENSOR:
            archive, template, script = (
                constants.SENSOR_ARCHIVE,
                constants.SENSOR_TEMPLATE,
                constants.SENSOR_SCRIPT,
            )
            label, remote_dir = "Sensor Server", constants.SENSOR_REMOTE_DIR
        else:
            archive, template, script = (
                constants.APP_ARCHIVE,
                constants.APP_TEMPLATE,
                constants.APP_SCRIPT,
            )
            label, remote_dir = "Application Server", constants.APP_REMOTE_DIR

        return cls(
            role=role,
            label=label,
            archive=work_dir / archive,
            template=template,
            script=work_dir / script,
            remote_archive=f"{constants.REMOTE_STAGING_DIR}/{archive}",
            remote_dir=remote_dir,
            remote_script=f"{remote_dir}/{script}",
            messages=PROGRESS_MESSAGES[role],
        )
