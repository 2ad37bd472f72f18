"""Template rendering engine."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, Template, TemplateError

from ..core.errors import IOFailure, TemplateInvalid, TemplateNotFound
from ..core.models import RenderTask
from ..environment import processor
from . import gotemplate
from .io import atomic_write_text, copy_once

logger = logging.getLogger(__name__)


def _environment() -> Environment:
    return Environment(
        block_start_string=gotemplate.BLOCK_START,
        block_end_string=gotemplate.BLOCK_END,
        comment_start_string=gotemplate.COMMENT_START,
        comment_end_string=gotemplate.COMMENT_END,
        autoescape=False,
        trim_blocks=False,
        lstrip_blocks=False,
        keep_trailing_newline=True,
    )


def compile_template(source: str) -> Template:
    """Compile Go-style template source into a Jinja2 template."""
    try:
        return _environment().from_string(gotemplate.translate(source))
    except TemplateError as exc:
        raise TemplateInvalid(str(exc)) from exc


def load_template(template_path: Path) -> Template:
    """Load and compile a Go-style template from a file path.

    Args:
        template_path: Path to the template file

    Returns:
        Compiled Jinja2 template

    Raises:
        TemplateNotFound: When the file does not exist
        TemplateInvalid: When the template cannot be parsed
    """
    if not template_path.exists():
        raise TemplateNotFound(f"Template not found: {template_path}")

    try:
        source = template_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise TemplateInvalid(f"Cannot read template {template_path}: {exc}") from exc

    try:
        return compile_template(source)
    except TemplateInvalid as exc:
        raise TemplateInvalid(f"{template_path}: {exc}") from exc


def render_text(template: Template, context: Mapping[str, Any]) -> str:
    try:
        return template.render(**context)
    except TemplateError as exc:
        raise TemplateInvalid(str(exc)) from exc


def render_task(task: RenderTask, env: Mapping[str, str] | None = None) -> Path:
    """Render a served document in place from its pristine backup.

    The first call copies the document to ``<document>.bkp``; every render
    reads from the backup so substitutions never compound across restarts.
    The document is only replaced once rendering has fully succeeded.

    Args:
        task: Render task to execute
        env: Environment snapshot bound as template variables

    Returns:
        Output file path
    """
    display_path = task.template_path
    backup_path = task.backup_path

    if not backup_path.exists():
        if not display_path.exists():
            raise TemplateNotFound(f"Template not found: {display_path}")
        logger.info(f"Backing up {display_path} to {backup_path}...")
        copy_once(display_path, backup_path)

    template = load_template(backup_path)
    context = processor.build_context(env)

    logger.info(f"Injecting environment variables into {display_path}...")
    rendered_text = render_text(template, context)

    try:
        atomic_write_text(display_path, rendered_text, mode=task.file_mode)
    except OSError as exc:
        raise IOFailure(f"Cannot write {display_path}: {exc}") from exc
    logger.info("Environment variables successfully injected.")

    return display_path
