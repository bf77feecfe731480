"""
Custom exception classes.

Represent errors raised while resolving a request and talking to the
FastCGI upstream.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("gateway.errors")


class GatewayError(Exception):
    """Base exception class for the gateway."""

    pass


class BodyTooLargeError(GatewayError):
    """Raised when the request body exceeds the configured cap."""

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Request body exceeds {limit} bytes")


class UpstreamUnavailableError(GatewayError):
    """Raised when the connection to the FastCGI upstream cannot be established."""

    def __init__(self, address: str, cause: Exception):
        self.address = address
        self.cause = cause
        super().__init__(f"FastCGI upstream {address} unavailable: {cause}")


class UpstreamProtocolError(GatewayError):
    """Raised when the upstream response is malformed or the exchange is interrupted."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"FastCGI protocol error: {detail}")


class FastCGIRecordError(UpstreamProtocolError):
    """A record on the wire violates the FastCGI framing rules."""

    pass


class UpstreamTimeoutError(UpstreamProtocolError):
    """The FastCGI exchange did not finish within the request deadline."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"exchange exceeded {timeout}s")


# ===========================================
# Exception Handlers
# ===========================================


async def body_too_large_handler(request: Request, exc: BodyTooLargeError):
    logger.warning(
        "Rejected request body over limit",
        extra={"path": request.url.path, "limit": exc.limit},
    )
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={"message": "Request Entity Too Large"},
    )


async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailableError):
    logger.error(
        f"FastCGI connection failed: {exc.address}",
        extra={
            "path": request.url.path,
            "upstream": exc.address,
            "error_type": type(exc.cause).__name__,
            "error_detail": str(exc.cause),
        },
    )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"message": "Bad Gateway"})


async def upstream_protocol_handler(request: Request, exc: UpstreamProtocolError):
    logger.error(
        f"FastCGI exchange failed: {exc.detail}",
        extra={"path": request.url.path, "error_type": type(exc).__name__},
    )
    if isinstance(exc, UpstreamTimeoutError):
        return JSONResponse(
            status_code=status.HTTP_504_GATEWAY_TIMEOUT, content={"message": "Gateway Timeout"}
        )
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"message": "Bad Gateway"})


async def global_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    """
    logger.error(
        f"Global exception handler caught: {exc}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Handler for HTTPException.
    """
    return JSONResponse(
        status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers
    )
