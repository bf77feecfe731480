"""
Services package.

Provides the FastCGI upstream integration.
"""

from .fastcgi_client import FastCGIClient
from .processor import GatewayRequestProcessor

__all__ = [
    "FastCGIClient",
    "GatewayRequestProcessor",
]
