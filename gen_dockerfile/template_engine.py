"""Render the Dockerfile building blocks kept as Jinja2 resources in ``templates/``."""

from __future__ import annotations

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateNotFound

TEMPLATES_ENV_VAR = "GEN_DOCKERFILE_TEMPLATES_DIR"
PACKAGED_TEMPLATES = Path(__file__).resolve().parent / "templates"

_BLANK_LINE = re.compile(r"^\s*\n", re.MULTILINE)


def templates_dir() -> Path:
    """Directory holding the Dockerfile snippets; GEN_DOCKERFILE_TEMPLATES_DIR replaces the packaged one."""
    override = os.environ.get(TEMPLATES_ENV_VAR)
    if override:
        return Path(override).expanduser().resolve()
    return PACKAGED_TEMPLATES


@lru_cache(maxsize=None)
def _snippet_environment(directory: str) -> Environment:
    # Snippets are shell and Dockerfile text: no HTML escaping, and the final
    # newline of each snippet is part of its output.
    return Environment(
        loader=FileSystemLoader(directory),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


def render_template(template_path: str, **context: Any) -> str:
    """Render one snippet, e.g. ``render_template("install-node.j2", version="8")``.

    Every variable the snippet uses must be passed.  A snippet missing from
    the templates directory raises FileNotFoundError.
    """
    directory = templates_dir()
    try:
        snippet = _snippet_environment(str(directory)).get_template(template_path)
    except TemplateNotFound as exc:
        raise FileNotFoundError(f"No Dockerfile snippet named {template_path!r} in {directory}") from exc
    return snippet.render(**context)


def strip_blank_lines(text: str) -> str:
    """Drop every line that is empty or holds only whitespace."""
    return _BLANK_LINE.sub("", text)
