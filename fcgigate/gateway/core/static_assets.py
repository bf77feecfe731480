"""
Static asset classification by file extension.
"""

import posixpath
from typing import Iterable

from ..config import DEFAULT_STATIC_EXTENSIONS

STATIC_EXTENSIONS = frozenset(DEFAULT_STATIC_EXTENSIONS)


def file_extension(path: str) -> str:
    """Lower-cased extension of the last path segment ("" when there is none)."""
    return posixpath.splitext(path)[1].lower()


def is_static(path: str, extensions: Iterable[str] = STATIC_EXTENSIONS) -> bool:
    """
    Return True when the path names a static asset that is served directly.

    Pure function of the extension; no file-system access.
    """
    return file_extension(path) in extensions
