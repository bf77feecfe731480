"""
Data model definitions package.

Aggregates the request, resolution and response models.
"""

from .request import RequestDescriptor
from .resolution import Resolution, ResolutionKind
from .response import FastCGIResponse, canonical_header_name

__all__ = [
    "RequestDescriptor",
    "Resolution",
    "ResolutionKind",
    "FastCGIResponse",
    "canonical_header_name",
]
