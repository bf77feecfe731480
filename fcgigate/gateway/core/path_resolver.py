"""
Path resolution ("try_files") against the document root.

Order of evaluation for a request path:
    1. static asset short-circuit: allow-listed extension that exists on disk
    2. fallback candidates, first regular file wins:
       request path, request path + "/", "/" + index file
    3. nothing matched: NOT_FOUND

Paths that would escape the document root after `..` normalization never
match any candidate.
"""

import logging
import os
from typing import Iterable, List, Optional

from ..config import DEFAULT_STATIC_EXTENSIONS
from ..models.resolution import Resolution
from .static_assets import file_extension, is_static

logger = logging.getLogger("gateway.resolver")

DEFAULT_SCRIPT_EXTENSIONS = (".php",)


def safe_join(document_root: str, request_path: str) -> Optional[str]:
    """
    Join a request path onto the document root.

    Returns None when the normalized result is outside the root.
    """
    root = os.path.abspath(document_root)
    joined = os.path.normpath(os.path.join(root, request_path.lstrip("/")))
    if joined == root or joined.startswith(root.rstrip(os.sep) + os.sep):
        return joined
    return None


def is_regular_file(path: str) -> bool:
    """Exists and is not a directory."""
    try:
        return os.path.isfile(path)
    except ValueError:
        # embedded NUL byte
        return False


def candidate_paths(request_path: str, index_file: str) -> List[str]:
    return [request_path, request_path + "/", "/" + index_file]


class PathResolver:
    """
    Resolves request paths to a static file, a script file or nothing.
    """

    def __init__(
        self,
        document_root: str,
        index_file: str,
        static_extensions: Iterable[str] = DEFAULT_STATIC_EXTENSIONS,
        script_extensions: Iterable[str] = DEFAULT_SCRIPT_EXTENSIONS,
    ):
        self.document_root = os.path.abspath(document_root)
        self.index_file = index_file
        self.static_extensions = frozenset(ext.lower() for ext in static_extensions)
        self.script_extensions = frozenset(ext.lower() for ext in script_extensions)

    def is_script(self, path: str) -> bool:
        return file_extension(path) in self.script_extensions

    def resolve(self, request_path: str) -> Resolution:
        if is_static(request_path, self.static_extensions):
            static_path = safe_join(self.document_root, request_path)
            if static_path is not None and is_regular_file(static_path):
                return Resolution.static_file(static_path)

        for candidate in candidate_paths(request_path, self.index_file):
            full_path = safe_join(self.document_root, candidate)
            if full_path is None:
                logger.warning(
                    "Rejected path outside document root",
                    extra={"request_path": request_path, "candidate": candidate},
                )
                continue
            if not is_regular_file(full_path):
                continue
            if self.is_script(full_path):
                return Resolution.script_file(full_path)
            return Resolution.static_file(full_path)

        return Resolution.not_found()


def resolve(request_path: str, document_root: str, index_file_name: str) -> Resolution:
    """Resolve with the default static and script extension sets."""
    return PathResolver(document_root, index_file_name).resolve(request_path)
