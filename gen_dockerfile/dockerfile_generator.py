"""Generate the Dockerfile and .dockerignore for a detected Node.js setup."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .fsview import Writer
from .setup_detector import APP_YAML, BUILD_SCRIPT, SERVER_JS, Setup
from .template_engine import render_template, strip_blank_lines

DOCKERFILE = "Dockerfile"
DOCKERIGNORE = ".dockerignore"
BUILD_STAGE = "build_step"

logger = logging.getLogger(__name__)


def _tool(setup: Setup) -> str:
    return "yarn" if setup.use_yarn else "npm"


def _from(base_image: str, stage: Optional[str] = None) -> str:
    if stage:
        return f"FROM {base_image} AS {stage}\n"
    return f"FROM {base_image}\n"


def _version_installs(setup: Setup) -> List[str]:
    # npm and yarn pins are installed whichever tool runs the app.
    sections = []
    if setup.node_version:
        sections.append(render_template("install-node.j2", version=setup.node_version))
    if setup.npm_version:
        sections.append(render_template("install-npm.j2", version=setup.npm_version))
    if setup.yarn_version:
        sections.append(render_template("install-yarn.j2", version=setup.yarn_version))
    return sections


def _install_deps(setup: Setup, development: bool = False) -> str:
    return render_template(f"{_tool(setup)}-install.j2", development=development)


def _single_stage(setup: Setup, base_image: str) -> List[str]:
    sections = [_from(base_image)]
    sections.extend(_version_installs(setup))
    sections.append("COPY . /app/\n")
    if setup.can_install_deps:
        sections.append(_install_deps(setup))
        sections.append(f"CMD {_tool(setup)} start\n")
    else:
        sections.append(f"CMD node {SERVER_JS}\n")
    return sections


def _multi_stage(setup: Setup, base_image: str) -> List[str]:
    """Build in a stage with development dependencies, then copy the result into a clean stage."""
    tool = _tool(setup)
    sections = [_from(base_image, BUILD_STAGE)]
    sections.extend(_version_installs(setup))
    sections.append("COPY . /app/\n")
    sections.append(_install_deps(setup, development=True))
    sections.append(f"RUN {tool} run {BUILD_SCRIPT}\n")
    sections.append("RUN rm -rf node_modules\n")

    sections.append(_from(base_image))
    sections.extend(_version_installs(setup))
    sections.append(f"COPY --from={BUILD_STAGE} /app /app/\n")
    sections.append(_install_deps(setup))
    sections.append(f"CMD {tool} start\n")
    return sections


def render_dockerfile(setup: Setup, base_image: str) -> str:
    """Return the Dockerfile text for ``setup`` built on top of ``base_image``."""
    if setup.has_build_command:
        sections = _multi_stage(setup, base_image)
    else:
        sections = _single_stage(setup, base_image)
    return strip_blank_lines("".join(sections))


def render_dockerignore(setup: Setup) -> str:
    return strip_blank_lines(
        render_template(
            "dockerignore.j2",
            default_app_yaml=APP_YAML,
            app_yaml_path=setup.app_yaml_path,
        )
    )


def _generate_single_file(writer: Writer, generated: Dict[str, str], path: str, contents: str) -> None:
    writer.write(path, contents)
    generated[path] = contents
    logger.debug("Wrote %s", path)


def generate_files(writer: Writer, setup: Setup, base_image: str) -> Dict[str, str]:
    """Write a Dockerfile and .dockerignore through ``writer`` for the given setup.

    Returns a mapping of each written relative path to its contents.  The
    setup is trusted as-is; it is expected to come from ``detect_setup``.
    """
    generated: Dict[str, str] = {}
    _generate_single_file(writer, generated, DOCKERFILE, render_dockerfile(setup, base_image))
    _generate_single_file(writer, generated, DOCKERIGNORE, render_dockerignore(setup))
    return generated
