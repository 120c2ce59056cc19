"""Detect how a Node.js application should be installed and started."""

from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Pattern

import yaml

from .fsview import Locator, ReadLocator, Reader

APP_YAML = "app.yaml"
APP_YAML_ENV_VAR = "GAE_APPLICATION_YAML_PATH"
PACKAGE_JSON = "package.json"
YARN_LOCK = "yarn.lock"
NPM_LOCK = "package-lock.json"
SERVER_JS = "server.js"
BUILD_SCRIPT = "gcp-build"

CHECKING_MESSAGE = "Checking for Node.js."
NO_PACKAGE_JSON_MESSAGE = "node.js checker: No package.json file."
INVALID_ENGINES_WARNING = 'node.js checker: ignoring invalid "engines" field in package.json'
NO_NODE_VERSION_WARNING = (
    "No node version specified.  Please add your node version, see "
    "https://cloud.google.com/appengine/docs/flexible/nodejs/runtime"
)
NO_ENTRY_POINT_MESSAGE = (
    'node.js checker: Neither "start" in the "scripts" section of "package.json" '
    'nor the "server.js" file were found.'
)

_UNSAFE_SHELL_CHARS = re.compile(r"[^A-Za-z0-9_/:=-]")


class SetupDetectionError(RuntimeError):
    """Raised when the application directory cannot be turned into a Setup."""


class MissingDescriptorError(SetupDetectionError):
    pass


class MalformedDescriptorError(SetupDetectionError):
    pass


class MalformedManifestError(SetupDetectionError):
    pass


class AmbiguousPackageManagerError(SetupDetectionError):
    pass


class NoEntryPointError(SetupDetectionError):
    pass


@dataclass(frozen=True)
class Setup:
    """What was learned about the application in the analyzed directory.

    ``can_install_deps`` is true when a package.json exists, ``use_yarn`` when
    yarn (rather than npm) should install dependencies and start the app.
    Version pins come from the "engines" section of package.json and are
    already shell escaped.  ``has_build_command`` is set when package.json
    declares a "gcp-build" script, and ``app_yaml_path`` names the deployment
    descriptor that was read.
    """

    can_install_deps: bool
    use_yarn: bool
    node_version: Optional[str] = None
    npm_version: Optional[str] = None
    yarn_version: Optional[str] = None
    has_build_command: bool = False
    app_yaml_path: str = APP_YAML


def shell_escape(value: str) -> str:
    """Escape a value for a single-quoted shell argument, without the outer quotes.

    The caller is expected to wrap the result in single quotes.
    """
    escaped = value.strip()
    if _UNSAFE_SHELL_CHARS.search(escaped):
        escaped = "'" + escaped.replace("'", "'\\''") + "'"
        escaped = re.sub(r"^(?:'')+", "", escaped)
        escaped = escaped.replace("\\'''", "\\'")
    return escaped.strip("'")


def _pinned_version(engines: Dict[str, Any], name: str) -> Optional[str]:
    raw = engines.get(name)
    if not raw:
        return None
    return shell_escape(str(raw)) or None


def _skip_patterns(config: Dict[str, Any]) -> List[Pattern[str]]:
    skip_files = config.get("skip_files") or []
    if not isinstance(skip_files, list):
        skip_files = [skip_files]
    patterns = []
    for pattern in skip_files:
        try:
            patterns.append(re.compile(str(pattern)))
        except re.error as exc:
            raise MalformedDescriptorError(f"invalid skip_files pattern {str(pattern)!r}: {exc}") from exc
    return patterns


def _is_skipped(name: str, patterns: Iterable[Pattern[str]]) -> bool:
    return any(pattern.search(name) for pattern in patterns)


def _lockfile_present(fsview: Locator, name: str, patterns: List[Pattern[str]]) -> bool:
    return fsview.exists(name) and not _is_skipped(name, patterns)


def load_config(fsview: Reader, app_yaml_path: str) -> Dict[str, Any]:
    """Parse the deployment descriptor, which must be a YAML mapping."""
    try:
        config = yaml.safe_load(fsview.read(app_yaml_path))
    except (yaml.YAMLError, UnicodeDecodeError) as exc:
        raise MalformedDescriptorError(str(exc)) from exc
    if not isinstance(config, dict):
        raise MalformedDescriptorError(
            f"The file {app_yaml_path} is empty or is not a valid YAML mapping"
        )
    return config


def _load_package_json(fsview: Reader) -> Dict[str, Any]:
    # A package.json that exists but can't be parsed is unusual enough to
    # fail regardless of whether the runtime was specified.
    try:
        package_json = json.loads(fsview.read(PACKAGE_JSON))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedManifestError(f"node.js checker: error accessing package.json: {exc}") from exc
    if not isinstance(package_json, dict):
        raise MalformedManifestError(
            "node.js checker: error accessing package.json: expected a JSON object"
        )
    return package_json


def detect_setup(logger: logging.Logger, fsview: ReadLocator) -> Setup:
    """Inspect the directory behind ``fsview`` and describe how to run its app.

    Informational messages go to ``logger.info``; warnings go to
    ``logger.error`` instead when the descriptor names a runtime explicitly.

    Raises a SetupDetectionError subclass when the descriptor is missing or
    malformed, when package.json is malformed, when both yarn.lock and
    package-lock.json are present, or when there is neither a start script
    nor a server.js file.
    """
    app_yaml_path = os.environ.get(APP_YAML_ENV_VAR) or APP_YAML
    if not fsview.exists(app_yaml_path):
        raise MissingDescriptorError(f"The file {app_yaml_path} does not exist")
    config = load_config(fsview, app_yaml_path)

    warn: Callable[[str], None] = logger.error if config.get("runtime") else logger.info

    logger.info(CHECKING_MESSAGE)

    patterns = _skip_patterns(config)
    yarn_lock_present = _lockfile_present(fsview, YARN_LOCK, patterns)
    npm_lock_present = _lockfile_present(fsview, NPM_LOCK, patterns)
    if yarn_lock_present and npm_lock_present:
        raise AmbiguousPackageManagerError(
            f"node.js checker: Cannot determine which package manager to use as both "
            f"{YARN_LOCK} and {NPM_LOCK} files were detected.  The presence of "
            f"{YARN_LOCK} indicates that yarn should be used, but the presence of "
            f"{NPM_LOCK} indicates that npm should be used.  Use the skip_files "
            f"section of {app_yaml_path} to specify which file should be ignored."
        )

    scripts: Dict[str, Any] = {}
    node_version = npm_version = yarn_version = None

    if not fsview.exists(PACKAGE_JSON):
        logger.info(NO_PACKAGE_JSON_MESSAGE)
        can_install_deps = False
        use_yarn = False
    else:
        can_install_deps = True
        use_yarn = yarn_lock_present

        package_json = _load_package_json(fsview)
        if isinstance(package_json.get("scripts"), dict):
            scripts = package_json["scripts"]
        engines = package_json.get("engines")
        if isinstance(engines, dict):
            node_version = _pinned_version(engines, "node")
            npm_version = _pinned_version(engines, "npm")
            yarn_version = _pinned_version(engines, "yarn")

        if not node_version:
            warn(INVALID_ENGINES_WARNING)
            warn(NO_NODE_VERSION_WARNING)

    if not scripts.get("start") and not fsview.exists(SERVER_JS):
        raise NoEntryPointError(NO_ENTRY_POINT_MESSAGE)

    return Setup(
        can_install_deps=can_install_deps,
        use_yarn=use_yarn,
        node_version=node_version,
        npm_version=npm_version,
        yarn_version=yarn_version,
        has_build_command=BUILD_SCRIPT in scripts,
        app_yaml_path=app_yaml_path,
    )
