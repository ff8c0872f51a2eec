"""Path canonicalization and containment helpers.

Containment is always decided on whole path components, so ``/proj`` never
admits ``/project-other``.
"""

from __future__ import annotations

import os
import re
from collections.abc import Iterable
from typing import Optional

from agentguard.exceptions import PathResolutionError

_SEGMENT_SPLIT = re.compile(r"[\\/]+")


def _prepare(path: str, base: Optional[str]) -> str:
    if not isinstance(path, str) or not path.strip():
        raise PathResolutionError(str(path), "path is empty")
    if "\x00" in path:
        raise PathResolutionError(path, "path contains a NUL byte")

    expanded = os.path.expanduser(path)
    if not os.path.isabs(expanded):
        expanded = os.path.join(base or os.getcwd(), expanded)
    return expanded


def absolutize(path: str, base: Optional[str] = None) -> str:
    """Return the lexically normalized absolute form of ``path``.

    Symlinks are not followed. Relative paths are joined onto ``base``
    (the process working directory when omitted).

    Raises:
        PathResolutionError: If the path is empty or malformed
    """
    return os.path.normpath(_prepare(path, base))


def canonicalize(path: str, base: Optional[str] = None) -> str:
    """Return the absolute, symlink-free form of ``path``.

    Raises:
        PathResolutionError: If the path cannot be resolved
    """
    prepared = _prepare(path, base)
    try:
        return os.path.realpath(prepared)
    except (OSError, ValueError, RuntimeError) as e:
        raise PathResolutionError(path, str(e)) from e


def is_within(path: str, root: str) -> bool:
    """Check if ``path`` equals ``root`` or lies below it.

    Both arguments must already be absolute and normalized.
    """
    try:
        return os.path.commonpath([path, root]) == root
    except ValueError:
        # Mixed drives or mixed absolute/relative input
        return False


def split_segments(path: str) -> list[str]:
    """Split a raw path on both separator styles."""
    return [segment for segment in _SEGMENT_SPLIT.split(path) if segment]


def has_traversal_segment(path: str) -> bool:
    """Check the raw path for a ``..`` component."""
    return ".." in split_segments(path)


def traversal_escapes(path: str, roots: Iterable[str], base: str) -> bool:
    """Check if a ``..`` component walks the raw path outside every root.

    The walk is lexical and runs on the segments as written, because
    canonicalization would fold ``a/../..`` away before it could be seen.
    Relative paths start at ``base``.
    """
    if not has_traversal_segment(path):
        return False

    root_list = [os.path.normpath(root) for root in roots]
    expanded = os.path.expanduser(path)

    if os.path.isabs(expanded):
        drive, rest = os.path.splitdrive(expanded)
        current = drive + os.sep
    else:
        rest = expanded
        current = os.path.normpath(base)

    for segment in split_segments(rest):
        if segment == ".":
            continue
        if segment == "..":
            current = os.path.dirname(current)
            if not any(is_within(current, root) for root in root_list):
                return True
        else:
            current = os.path.join(current, segment)
    return False
