"""Recent files, folder browsing and path helpers for the viewer."""

from __future__ import annotations

import bisect
import fnmatch
import os
import re
from pathlib import Path

RECENT_FILE_KEY = "recentFiles"
MAX_RECENT_FILES = 8
SCREENSHOT_EXTENSIONS = ("png", "jpg")

_DIGITS = re.compile(r"(\d+)")


class RecentFiles:
    """A most-recent-first list of opened files kept in the settings store."""

    def __init__(self, settings, limit=MAX_RECENT_FILES):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.settings = settings
        self.limit = limit

    def files(self):
        """The remembered files, most recent first."""
        stored = self.settings.get(RECENT_FILE_KEY, [])
        if not isinstance(stored, list):
            return []
        return [item for item in stored if isinstance(item, str)]

    def add(self, path):
        """Move ``path`` (made absolute) to the front of the list."""
        absolute = os.path.abspath(os.fspath(path))
        recent = [item for item in self.files() if item != absolute]
        recent.insert(0, absolute)
        del recent[self.limit:]
        self.settings.set(RECENT_FILE_KEY, recent)
        return recent

    def clear(self):
        """Forget every remembered file."""
        self.settings.set(RECENT_FILE_KEY, [])

    def __iter__(self):
        return iter(self.files())

    def __len__(self):
        return len(self.files())


def natural_key(name):
    """Sort key that orders embedded numbers by value ("a2" before "a10")."""
    parts = _DIGITS.split(name)
    key = tuple(
        int(part) if index % 2 else part.casefold()
        for index, part in enumerate(parts)
    )
    return key, name


def sorted_insert(items, value):
    """Insert ``value`` into the naturally sorted list ``items``.

    Returns False, leaving the list untouched, if ``value`` is already there.
    """
    index = bisect.bisect_left(items, natural_key(value), key=natural_key)
    if index < len(items) and items[index] == value:
        return False
    items.insert(index, value)
    return True


def folder_stl_files(folder):
    """Names of the readable ``.stl`` files in ``folder``, naturally sorted."""
    names = []
    with os.scandir(folder) as entries:
        for entry in entries:
            if not fnmatch.fnmatch(entry.name.lower(), "*.stl"):
                continue
            try:
                if not entry.is_file():
                    continue
            except OSError:
                continue
            if not os.access(entry.path, os.R_OK):
                continue
            sorted_insert(names, entry.name)
    return names


def file_neighbors(current):
    """Full paths of the STL files before and after ``current`` in its folder.

    Either side is None where there is no neighbour.
    """
    if not current:
        return None, None
    current = os.path.abspath(os.fspath(current))
    folder, name = os.path.split(current)

    previous = None
    following = None
    names = folder_stl_files(folder)
    for index, candidate in enumerate(names):
        if candidate == name:
            if index + 1 < len(names):
                following = os.path.join(folder, names[index + 1])
            break
        previous = candidate

    if previous is not None:
        previous = os.path.join(folder, previous)
    return previous, following


def screenshot_path(name):
    """Append ``.png`` unless ``name`` already ends in a supported image extension."""
    name = os.fspath(name)
    dot = name.rfind(".")
    extension = name[dot + 1:] if dot >= 0 else ""
    if extension not in SCREENSHOT_EXTENSIONS:
        name += ".png"
    return name


def expand_user_path(name):
    """Replace a leading ``~`` with the user's home directory."""
    name = os.fspath(name)
    if name.startswith("~"):
        return str(Path.home()) + name[1:]
    return name