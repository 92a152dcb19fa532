"""
cozydeploy Services Layer

SSH access, script rendering, per-role pipelines and orchestration.
"""

from .ssh_service import RemoteSession
from .render_service import ScriptRenderer
from .pipeline_service import DeploymentPipeline
from .orchestrator import Orchestrator, DeploymentHandle
from .interface_service import list_interfaces, parse_interfaces

__all__ = [
    "RemoteSession",
    "ScriptRenderer",
    "DeploymentPipeline",
    "Orchestrator",
    "DeploymentHandle",
    "list_interfaces",
    "parse_interfaces",
]
