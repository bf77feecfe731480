"""
Resolution outcome model.

Result of mapping a request path onto the document root.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ResolutionKind(str, Enum):
    STATIC_FILE = "static_file"
    SCRIPT_FILE = "script_file"
    NOT_FOUND = "not_found"


class Resolution(BaseModel):
    """
    Tagged outcome of path resolution.

    `path` is the absolute file-system path for STATIC_FILE and SCRIPT_FILE
    and None for NOT_FOUND.
    """

    kind: ResolutionKind
    path: Optional[str] = None

    @classmethod
    def static_file(cls, path: str) -> "Resolution":
        return cls(kind=ResolutionKind.STATIC_FILE, path=path)

    @classmethod
    def script_file(cls, path: str) -> "Resolution":
        return cls(kind=ResolutionKind.SCRIPT_FILE, path=path)

    @classmethod
    def not_found(cls) -> "Resolution":
        return cls(kind=ResolutionKind.NOT_FOUND)
