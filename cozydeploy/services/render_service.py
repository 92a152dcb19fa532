"""
Script Rendering Service

Renders role deployment scripts from operator-authored templates.

Templates use ``{{.Field}}`` placeholders named after the DeploymentConfig
template fields (``{{.Domain}}``, ``{{.ESRam}}``, ...). Values are
substituted verbatim: scripts are shell scripts and configuration is
operator-trusted, so nothing is escaped.
"""

import re
from pathlib import Path
from typing import Union

from jinja2 import Environment, StrictUndefined, TemplateError, UndefinedError

from cozydeploy.exceptions import RenderError
from cozydeploy.models.config import DeploymentConfig

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*\.([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


def _script_environment() -> Environment:
    # Shell uses ${#var}, so move jinja comments out of the way
    environment = Environment(
        undefined=StrictUndefined,
        autoescape=False,
        keep_trailing_newline=True,
        comment_start_string="{##",
        comment_end_string="##}",
    )
    # Only DeploymentConfig fields may resolve (no range, dict, lipsum...)
    environment.globals.clear()
    return environment


class ScriptRenderer:
    """Renders deployment scripts from templates in one directory."""

    def __init__(self, template_dir: Union[str, Path]):
        self.template_dir = Path(template_dir)
        self.environment = _script_environment()

    def load_template(self, template_name: str) -> str:
        """
        Load template text.

        Args:
            template_name: File name inside the template directory

        Returns:
            Template file contents

        Raises:
            RenderError: If the template file can't be read
        """
        template_path = self.template_dir / template_name
        try:
            return template_path.read_text(encoding="utf-8")
        except OSError as e:
            raise RenderError(f"Template not found: {template_path}", context=str(e))

    def render_text(self, template_text: str, config: DeploymentConfig) -> str:
        """
        Substitute config values into template text.

        Raises:
            RenderError: If the template references an unknown field or
                is malformed
        """
        context = config.template_context()
        unknown = sorted(
            {name for name in PLACEHOLDER_PATTERN.findall(template_text) if name not in context}
        )
        if unknown:
            raise RenderError(
                "Template references an unknown field", context=", ".join(unknown)
            )

        source = PLACEHOLDER_PATTERN.sub(r"{{ \1 }}", template_text)
        try:
            template = self.environment.from_string(source)
            return template.render(context)
        except UndefinedError as e:
            raise RenderError("Template references an unknown field", context=e.message)
        except TemplateError as e:
            raise RenderError("Template could not be parsed", context=str(e))

    def render(
        self,
        template_name: str,
        config: DeploymentConfig,
        output_path: Union[str, Path],
    ) -> Path:
        """
        Render a template and write the script.

        Args:
            template_name: Template file name (e.g. AppDeploy.gtpl)
            config: Deployment configuration
            output_path: Script file to create (e.g. AppDeploy.sh)

        Returns:
            Path to the written script

        Raises:
            RenderError: If rendering fails or the script can't be written
        """
        try:
            script = self.render_text(self.load_template(template_name), config)
        except RenderError as e:
            raise RenderError(f"{template_name}: {e.message}", context=e.context)

        output_path = Path(output_path)
        try:
            with open(output_path, "w", encoding="utf-8", newline="\n") as f:
                f.write(script)
        except OSError as e:
            raise RenderError(f"Cannot write script {output_path}", context=str(e))

        return output_path
