"""
Where: fcgigate/gateway/exceptions.py
What: Gateway exception handler registration.
Why: Keep error handling setup isolated from route and lifecycle concerns.
"""

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import (
    BodyTooLargeError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
    body_too_large_handler,
    global_exception_handler,
    http_exception_handler,
    upstream_protocol_handler,
    upstream_unavailable_handler,
)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(BodyTooLargeError, body_too_large_handler)
    app.add_exception_handler(UpstreamUnavailableError, upstream_unavailable_handler)
    # UpstreamTimeoutError / FastCGIRecordError are subclasses and share the handler.
    app.add_exception_handler(UpstreamProtocolError, upstream_protocol_handler)
