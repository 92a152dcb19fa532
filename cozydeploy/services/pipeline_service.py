"""
Deployment Pipeline Service

Drives one role's provisioning: transfer archive, extract it, transfer
the rendered script, remove the local script, execute the script.
"""

import time
from pathlib import Path
from typing import Callable, Optional

from cozydeploy.constants import DEFAULT_TRANSFER_ATTEMPTS
from cozydeploy.exceptions import CozyDeployError, FailureKind, LocalFileError, SSHError
from cozydeploy.logger import DeployLogger
from cozydeploy.models.credentials import Credential, Role
from cozydeploy.models.plan import RolePlan
from cozydeploy.models.results import (
    PipelineResult,
    PipelineStep,
    ResultStatus,
    StepResult,
)
from cozydeploy.services.ssh_service import RemoteSession

SessionFactory = Callable[[Credential], RemoteSession]


class CommandExited(CozyDeployError):
    """A remote command ran to completion with a non-zero status."""

    def __init__(self, returncode: int, output: str):
        self.returncode = returncode
        self.output = output
        super().__init__(f"Remote command exited with status {returncode}")


class StepFailed(Exception):
    """Carries the failed step out of the sequence."""

    def __init__(self, result: StepResult):
        self.result = result
        super().__init__(result.message)


class DeploymentPipeline:
    """
    Provisions one role over SSH.

    Steps run strictly in order and the first failure stops the
    pipeline. Only the local cleanup step may fail without stopping it.
    """

    def __init__(
        self,
        plan: RolePlan,
        credential: Credential,
        session_factory: SessionFactory = RemoteSession,
        logger: Optional[DeployLogger] = None,
        transfer_attempts: int = DEFAULT_TRANSFER_ATTEMPTS,
    ):
        """
        Initialize pipeline.

        Args:
            plan: The role's local and remote paths
            credential: The role's SSH credential
            session_factory: Builds the RemoteSession for the credential
            logger: Progress log (shared with the other pipeline)
            transfer_attempts: Attempts per transfer step; commands run once
        """
        self.plan = plan
        self.credential = credential
        self.session = session_factory(credential)
        self.logger = logger
        self.transfer_attempts = max(1, transfer_attempts)
        self.result = PipelineResult(role=plan.role)
        # What is known to exist on the host so far
        self.remote_state: Optional[str] = None
        self._cleanup_attempted = False

    @property
    def role(self) -> Role:
        return self.plan.role

    def run(self) -> PipelineResult:
        """
        Run every step and return the role's outcome.

        Deployment failures are reported in the result, not raised.
        """
        plan = self.plan
        messages = plan.messages
        try:
            self._progress(messages.transferring)
            self._transfer(
                PipelineStep.TRANSFER_ARCHIVE,
                plan.archive,
                plan.remote_archive,
                partial=f"a partial archive may exist at {plan.remote_archive}",
            )
            self.remote_state = f"{plan.remote_archive} is on the host"

            self._command(
                PipelineStep.EXTRACT_ARCHIVE,
                plan.extract_command,
                partial=f"{plan.remote_dir} may be partially extracted",
            )
            self.remote_state = f"{plan.remote_archive} is extracted into {plan.remote_dir}"

            self._transfer(
                PipelineStep.TRANSFER_SCRIPT,
                plan.script,
                plan.remote_script,
                partial=f"a partial script may exist at {plan.remote_script}",
            )
            self.remote_state = (
                f"{plan.remote_dir} is extracted and {plan.remote_script} is in place"
            )

            self._cleanup()
            self._progress(messages.transferred)

            self._progress(messages.build_started)
            self._command(
                PipelineStep.EXECUTE_SCRIPT,
                plan.execute_command,
                partial=f"{plan.remote_script} may have partially provisioned the host",
            )
            self._progress(messages.deployed)
        except StepFailed as failed:
            self._report_failure(failed.result)
        finally:
            # The rendered script holds the identity-service secret
            if not self._cleanup_attempted:
                self._cleanup()

        return self.result

    def _transfer(self, step: PipelineStep, source: Path, destination: str, partial: str):
        self._log(f"Copying {source} -> {self.credential.address}:{destination}")

        def attempt() -> str:
            copied = self.session.transfer(source, destination)
            return f"{copied} bytes copied"

        self._run_step(step, attempt, self.transfer_attempts, partial)

    def _command(self, step: PipelineStep, command: str, partial: str):
        if self.logger:
            self.logger.log_command(f"[{self.role.value}] {command}")

        def attempt() -> str:
            result = self.session.run(command, on_line=self._output)
            if result.is_failure:
                raise CommandExited(result.returncode, result.output)
            return result.output

        self._run_step(step, attempt, 1, partial)

    def _run_step(
        self,
        step: PipelineStep,
        action: Callable[[], str],
        max_attempts: int,
        partial: str,
    ):
        start_time = time.time()
        attempts = 0
        while True:
            attempts += 1
            try:
                output = action()
                break
            except CommandExited as e:
                raise StepFailed(
                    StepResult(
                        step=step,
                        status=ResultStatus.FAILURE,
                        message=e.message,
                        failure_kind=FailureKind.COMMAND,
                        output=e.output,
                        side_effects=self._side_effects(partial),
                        attempts=attempts,
                        duration_seconds=time.time() - start_time,
                    )
                )
            except SSHError as e:
                local = isinstance(e, LocalFileError)
                if attempts < max_attempts and not local:
                    self._log(
                        f"{step.value} attempt {attempts}/{max_attempts} failed: {e.message}",
                        "WARNING",
                    )
                    continue

                # A step that never reached the host changed nothing there
                if local or e.failure_kind == FailureKind.CONNECTION:
                    side_effects = self.remote_state
                else:
                    side_effects = self._side_effects(partial)

                raise StepFailed(
                    StepResult(
                        step=step,
                        status=ResultStatus.FAILURE,
                        message=e.format_message(),
                        failure_kind=e.failure_kind,
                        side_effects=side_effects,
                        attempts=attempts,
                        duration_seconds=time.time() - start_time,
                    )
                )
            except Exception as e:
                # Unclassified: the host may be in any state this step can leave
                raise StepFailed(
                    StepResult(
                        step=step,
                        status=ResultStatus.FAILURE,
                        message=f"{type(e).__name__}: {e}",
                        side_effects=self._side_effects(partial),
                        attempts=attempts,
                        duration_seconds=time.time() - start_time,
                    )
                ) from e

        lines = output.splitlines()
        self.result.steps.append(
            StepResult(
                step=step,
                status=ResultStatus.SUCCESS,
                message=lines[-1] if lines else "",
                output=output,
                attempts=attempts,
                duration_seconds=time.time() - start_time,
            )
        )

    def _side_effects(self, partial: str) -> str:
        if self.remote_state:
            return f"{self.remote_state}; {partial}"
        return partial

    def _cleanup(self):
        """Remove the local rendered script (best effort)."""
        self._cleanup_attempted = True
        script = self.plan.script
        try:
            script.unlink()
        except FileNotFoundError:
            status, message = ResultStatus.SUCCESS, f"{script} already removed"
        except OSError as e:
            status, message = ResultStatus.WARNING, f"could not remove {script}: {e}"
            self._warning(message)
        else:
            status, message = ResultStatus.SUCCESS, f"removed {script}"

        self.result.steps.append(
            StepResult(step=PipelineStep.CLEANUP_SCRIPT, status=status, message=message)
        )

    def _report_failure(self, failure: StepResult):
        self.result.steps.append(failure)
        if self.logger:
            self.logger.log_error(
                f"{self.plan.label}: {failure.step.value} failed: {failure.message}",
                context=f"Remote state: {failure.side_effects}" if failure.side_effects else None,
            )

    def _progress(self, message: str):
        if self.logger:
            self.logger.progress(message)

    def _log(self, message: str, level: str = "INFO"):
        if self.logger:
            self.logger.log(f"[{self.role.value}] {message}", level)

    def _warning(self, message: str):
        if self.logger:
            self.logger.warning(f"[{self.role.value}] {message}")

    def _output(self, line: str):
        if self.logger:
            self.logger.log_output(line, self.role.value)
