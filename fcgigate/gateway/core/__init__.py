"""
Core logic package.

Path resolution, CGI environment construction and the FastCGI codec.
"""

from .cgi_params import build_cgi_params
from .path_resolver import PathResolver, resolve
from .static_assets import is_static

__all__ = [
    "build_cgi_params",
    "PathResolver",
    "resolve",
    "is_static",
]
