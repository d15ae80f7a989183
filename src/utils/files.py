"""File helpers for check implementations.

File reads go through the scan's active cache, keyed by path plus a stat
fingerprint, so several checks reading the same manifest parse it once.
Directory listings are not cached: a file added deep in the tree does not
change the root's stat.

Every helper returns None or an empty list instead of raising.
"""

import json
import os
from pathlib import Path
from typing import Any, Iterable, List, Optional, Pattern, Union

from ..core.cache import active_cache, fingerprint

PathLike = Union[str, Path]

EXCLUDED_DIRS = {
    "node_modules", ".git", ".next", "dist", "build", "coverage",
    ".nyc_output", ".vscode", ".idea", "__pycache__", ".venv", "venv",
    ".tox", ".mypy_cache", ".pytest_cache",
}


def _stat_key(kind: str, path: Path) -> Optional[str]:
    try:
        stat = path.stat()
    except OSError:
        return None
    return fingerprint(kind, str(path), stat.st_mtime_ns, stat.st_size)


def file_exists(path: PathLike) -> bool:
    """Check whether a regular file exists."""
    return Path(path).is_file()


def read_text(path: PathLike) -> Optional[str]:
    """Read a text file, or None if it is missing or unreadable."""
    path = Path(path)
    key = _stat_key("text", path)
    if key is None:
        return None

    cache = active_cache()
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            return cached

    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    if cache is not None:
        cache.set(key, content)
    return content


def read_json(path: PathLike) -> Optional[Any]:
    """Read and parse a JSON file, or None if missing or malformed."""
    content = read_text(path)
    if content is None:
        return None
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return None


def walk_files(
    root: PathLike,
    extensions: Optional[Iterable[str]] = None,
) -> List[str]:
    """List files under ``root``, skipping dependency and build directories.

    Args:
        root: Directory to walk
        extensions: Only include files ending with one of these suffixes

    Returns:
        Sorted list of file paths
    """
    suffixes = tuple(extensions) if extensions else None

    found: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIRS]
        for name in filenames:
            if suffixes and not name.endswith(suffixes):
                continue
            found.append(os.path.join(dirpath, name))
    found.sort()
    return found


def find_first(root: PathLike, names: Iterable[str]) -> Optional[str]:
    """Get the first of ``names`` that exists as a file directly under ``root``."""
    for name in names:
        candidate = Path(root) / name
        if candidate.is_file():
            return str(candidate)
    return None


def grep_files(
    root: PathLike,
    pattern: Pattern,
    extensions: Optional[Iterable[str]] = None,
) -> List[str]:
    """List files under ``root`` whose content matches ``pattern``.

    Returns:
        Matching paths relative to ``root``
    """
    matches = []
    for path in walk_files(root, extensions):
        content = read_text(path)
        if content and pattern.search(content):
            matches.append(os.path.relpath(path, root))
    return matches
