"""Jinja2 template rendering for generated project files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``kickstart/scaffolder/templates/`` directory and renders them with a
context built from the ``ProjectConfig``.  Used for the internal skeletons,
placeholder barrel files, ``.gitignore`` and ``.env.example``.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from kickstart.models import ProjectConfig
from kickstart.utils import write_text


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for project scaffolding.

    Templates are plain text files with a ``.j2`` suffix.  Undefined
    variables raise instead of rendering as empty strings, so a missing
    context key shows up as an error rather than a broken generated file.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["title_case"] = _title_case_filter

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"skeleton/koa/index.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render a template and write the result to *output_path*.

        Parent directories are created automatically.  Returns the output path.
        """
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(write_text, out, content)
        return out


def project_context(config: ProjectConfig, **extra: Any) -> dict[str, Any]:
    """Build the common template context for *config*."""
    context: dict[str, Any] = {
        "project_name": config.project_name,
        "project_type": config.project_type.value,
        "framework": config.framework.value,
        "typescript": config.is_typescript,
        "ext": config.source_extension,
        "package_manager": config.package_manager.value,
    }
    context.update(extra)
    return context


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s/@.]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _title_case_filter(value: str) -> str:
    """Convert ``my-cool-app`` to ``My Cool App``."""
    parts = re.split(r"[-_\s/@.]+", value)
    return " ".join(word.capitalize() for word in parts if word)
