"""Command line interface for generating a Node.js Dockerfile."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List

from .dockerfile_generator import generate_files
from .fsview import FsView
from .setup_detector import SetupDetectionError, detect_setup

logger = logging.getLogger("gen_dockerfile")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gen-dockerfile",
        description=(
            "Generate Dockerfile and .dockerignore files that can be used to build "
            "a Docker image that runs a Node.js application when Docker run."
        ),
    )
    parser.add_argument(
        "--app-dir",
        required=True,
        help="The root directory of the application code.",
    )
    parser.add_argument(
        "--base-image",
        required=True,
        help="The full Docker image name of the base image to use when constructing the Dockerfile.",
    )
    return parser


def console_handlers() -> List[logging.Handler]:
    """Informational lines go to stdout, errors to stderr."""
    formatter = logging.Formatter("%(message)s")
    out = logging.StreamHandler(sys.stdout)
    out.addFilter(lambda record: record.levelno < logging.ERROR)
    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.ERROR)
    for handler in (out, err):
        handler.setFormatter(formatter)
    return [out, err]


def generate_configs(app_dir_view: FsView, base_image: str) -> Dict[str, str]:
    """Detect the application setup in ``app_dir_view`` and write its Docker files there."""
    setup = detect_setup(logger, app_dir_view)
    return generate_files(app_dir_view, setup, base_image)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, handlers=console_handlers())

    try:
        generate_configs(FsView(args.app_dir), args.base_image)
    except (SetupDetectionError, OSError) as exc:
        logger.error("Application detection failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
