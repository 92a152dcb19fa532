"""
cozydeploy Core

Deployment file loading.
"""

from .config_loader import DeploymentFile, load_deployment_file, build_form_context

__all__ = [
    "DeploymentFile",
    "load_deployment_file",
    "build_form_context",
]
