"""Generated Dockerfile.

Why it lives in adapters:
- The template is a file format detail of the container engine (Jinja2).
- The pipeline only asks "make sure a Dockerfile exists".
"""

from __future__ import annotations

import logging
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DOCKERFILE_TEMPLATE = "Dockerfile.j2"


def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATES_DIR)),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )


def render_dockerfile(*, base_image: str) -> str:
    """Render the fixed five-line Dockerfile for a Node.js service."""

    return _get_env().get_template(DOCKERFILE_TEMPLATE).render(base_image=base_image)


def ensure_dockerfile(*, workspace: Path, base_image: str) -> tuple[Path, bool]:
    """Write a Dockerfile into `workspace` unless one already exists.

    Returns the path and whether it was generated.
    """

    path = workspace / "Dockerfile"
    if path.exists():
        logger.info("Using existing Dockerfile at %s", path)
        return path, False

    path.write_text(render_dockerfile(base_image=base_image), encoding="utf-8")
    logger.info("Generated Dockerfile (FROM %s) at %s", base_image, path)
    return path, True
