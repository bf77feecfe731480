"""
Where: fcgigate/gateway/middleware.py
What: Gateway HTTP middleware for request IDs, default headers and access logging.
Why: Isolate cross-cutting request concerns from app assembly.
"""

import logging
import time

from fastapi import Request

from fcgigate.common.core.request_context import (
    clear_request_id,
    generate_request_id,
    set_request_id,
)

logger = logging.getLogger("gateway.access")

REQUEST_ID_HEADER = "X-Request-Id"

# Never access-logged.
QUIET_PATHS = frozenset({"/favicon.ico"})


async def request_context_middleware(request: Request, call_next):
    """Middleware for request ID propagation and structured access logging."""
    start_time = time.perf_counter()

    incoming_id = request.headers.get(REQUEST_ID_HEADER)
    req_id = set_request_id(incoming_id) if incoming_id else generate_request_id()

    try:
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = req_id
        if "charset" not in response.headers:
            response.headers["Charset"] = "utf-8"

        if request.url.path not in QUIET_PATHS:
            process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.info(
                f"{request.method} {request.url.path} {response.status_code}",
                extra={
                    "request_id": req_id,
                    "method": request.method,
                    "path": request.url.path,
                    "query_params": str(request.query_params),
                    "status": response.status_code,
                    "latency_ms": process_time_ms,
                    "user_agent": request.headers.get("user-agent"),
                    "client_ip": request.client.host if request.client else None,
                },
            )

        return response
    finally:
        clear_request_id()
