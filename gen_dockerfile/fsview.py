"""Views over an application directory used for reading, locating and writing files."""

from __future__ import annotations

import os
from typing import Protocol


class Reader(Protocol):
    def read(self, path: str) -> str:
        """Return the text of the file at ``path``; raises if it cannot be read."""


class Writer(Protocol):
    def write(self, path: str, contents: str) -> None:
        """Write ``contents`` to the file at ``path``; raises if it cannot be written."""


class Locator(Protocol):
    def exists(self, path: str) -> bool:
        """Return whether the file or directory at ``path`` exists."""


class ReadLocator(Reader, Locator, Protocol):
    """A view that can both read files and check whether they exist."""


class FsView:
    """Reader, Writer and Locator for a directory of the real filesystem.

    All paths are relative to ``base_path``.
    """

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path

    def _resolve(self, rel_path: str) -> str:
        return os.path.join(self.base_path, rel_path)

    def read(self, path: str) -> str:
        with open(self._resolve(path), "r", encoding="utf-8") as handle:
            return handle.read()

    def write(self, path: str, contents: str) -> None:
        with open(self._resolve(path), "w", encoding="utf-8") as handle:
            handle.write(contents)

    def exists(self, path: str) -> bool:
        return os.path.exists(self._resolve(path))
