"""
Shared test fixtures: an in-memory view of an application directory.
"""

from dataclasses import dataclass
from typing import List, Optional

import pytest


@dataclass
class Location:
    path: str
    exists: bool
    contents: Optional[str] = None


class MockView:
    """Reader, Writer and Locator over an explicit list of locations.

    Asking about a path that was not listed fails, so every test states
    exactly which files exist and which don't.
    """

    def __init__(self, locations: List[Location]):
        self.locations = list(locations)
        self.paths_read: List[str] = []
        self.paths_located: List[str] = []
        self.paths_written: List[Location] = []

    def _find(self, path: str) -> Optional[Location]:
        return next((loc for loc in self.locations if loc.path == path), None)

    def read(self, path: str) -> str:
        location = self._find(path)
        if location is None or not location.exists:
            raise FileNotFoundError(f"Path not found {path}")
        self.paths_read.append(path)
        return location.contents

    def exists(self, path: str) -> bool:
        location = self._find(path)
        if location is None:
            raise AssertionError(f'Existence of unknown path "{path}" requested')
        self.paths_located.append(path)
        return location.exists

    def write(self, path: str, contents: str) -> None:
        self.paths_written.append(Location(path, True, contents))


@pytest.fixture(autouse=True)
def clean_app_yaml_env(monkeypatch):
    """Keep a GAE_APPLICATION_YAML_PATH from the outer environment out of tests."""
    monkeypatch.delenv("GAE_APPLICATION_YAML_PATH", raising=False)
