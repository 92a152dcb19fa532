"""
Orchestrator Service

Renders both role scripts, then runs the sensor and application
pipelines concurrently and joins their results.
"""

from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, Optional

from cozydeploy.constants import DEFAULT_TRANSFER_ATTEMPTS
from cozydeploy.exceptions import StateError
from cozydeploy.logger import DeployLogger
from cozydeploy.models.context import DeploymentContext
from cozydeploy.models.credentials import Role
from cozydeploy.models.results import DeploymentOutcome, PipelineResult
from cozydeploy.services.pipeline_service import DeploymentPipeline, SessionFactory
from cozydeploy.services.render_service import ScriptRenderer
from cozydeploy.services.ssh_service import RemoteSession


class DeploymentHandle:
    """Running deployment; ``wait()`` is the join point."""

    def __init__(self, futures: Dict[Role, Future], executor: ThreadPoolExecutor):
        self._futures = futures
        self._executor = executor

    def wait(self, timeout: Optional[float] = None) -> DeploymentOutcome:
        """
        Block until both pipelines finish.

        Args:
            timeout: Seconds to wait; None waits indefinitely

        Returns:
            DeploymentOutcome with both roles' results

        Raises:
            TimeoutError: If timeout expires first (pipelines keep running)
        """
        _, pending = wait(list(self._futures.values()), timeout=timeout)
        if pending:
            raise TimeoutError(f"Deployment still running after {timeout}s")

        self._executor.shutdown(wait=False)
        results: Dict[Role, PipelineResult] = {
            role: future.result() for role, future in self._futures.items()
        }
        return DeploymentOutcome(
            sensor=results[Role.SENSOR], application=results[Role.APPLICATION]
        )


class Orchestrator:
    """
    Deploys the sensor and application hosts.

    Example:
        orchestrator = Orchestrator(context, logger=logger)
        outcome = orchestrator.deploy()
    """

    def __init__(
        self,
        context: DeploymentContext,
        session_factory: SessionFactory = RemoteSession,
        logger: Optional[DeployLogger] = None,
        transfer_attempts: int = DEFAULT_TRANSFER_ATTEMPTS,
        renderer: Optional[ScriptRenderer] = None,
    ):
        self.context = context
        self.session_factory = session_factory
        self.logger = logger
        self.transfer_attempts = transfer_attempts
        self.renderer = renderer or ScriptRenderer(context.work_dir)
        self._prepared = False
        self._handle: Optional[DeploymentHandle] = None

    def prepare(self) -> None:
        """
        Render both role scripts.

        Runs before any remote activity so template problems surface first.

        Raises:
            RenderError: If either script can't be rendered
        """
        for role in Role:
            plan = self.context.plan(role)
            self.renderer.render(plan.template, self.context.config, plan.script)
            if self.logger:
                self.logger.log(f"Rendered {plan.template} -> {plan.script}")
        self._prepared = True

    def start(self) -> DeploymentHandle:
        """
        Start both pipelines and return without waiting.

        Raises:
            StateError: If scripts aren't rendered, credentials are
                incomplete, or the run was already started
        """
        if not self._prepared:
            raise StateError("Scripts must be rendered before deployment starts")
        if self._handle is not None:
            raise StateError("Deployment already started")

        credentials = self.context.credentials
        if not credentials.is_complete:
            raise StateError("Credentials for both roles are required")
        credentials.freeze()

        pipelines = [
            DeploymentPipeline(
                self.context.plan(role),
                credentials.get(role),
                session_factory=self.session_factory,
                logger=self.logger,
                transfer_attempts=self.transfer_attempts,
            )
            for role in Role
        ]

        executor = ThreadPoolExecutor(
            max_workers=len(pipelines), thread_name_prefix="cozydeploy"
        )
        futures = {
            pipeline.role: executor.submit(pipeline.run) for pipeline in pipelines
        }
        self._handle = DeploymentHandle(futures, executor)
        return self._handle

    def deploy(self, timeout: Optional[float] = None) -> DeploymentOutcome:
        """Render, start and wait for both pipelines."""
        self.prepare()
        return self.start().wait(timeout=timeout)
