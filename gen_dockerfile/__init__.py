"""Generate a Dockerfile and .dockerignore for a Node.js application directory."""

__all__ = [
    "cli",
    "fsview",
    "setup_detector",
    "template_engine",
    "dockerfile_generator",
]
