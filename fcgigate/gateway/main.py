"""
fcgigate Gateway - HTTP front controller

Serves files from the document root and runs scripts through a FastCGI
upstream (e.g. php-fpm), nginx "try_files" style.
"""

import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, Response, StreamingResponse

from fcgigate import __version__

from .api.deps import get_gateway_config, get_path_resolver, get_processor
from .config import GatewayConfig
from .core.logging_config import setup_logging
from .core.utils import build_request_descriptor, read_body
from .exceptions import register_exception_handlers
from .lifecycle import init_app_state, manage_lifespan
from .middleware import request_context_middleware
from .models.resolution import ResolutionKind
from .models.response import FastCGIResponse
from .services.processor import GatewayRequestProcessor

ROBOTS_TXT = b"User-agent: *\nDisallow: /\n"


def to_streaming_response(
    fcgi_response: FastCGIResponse, processor: GatewayRequestProcessor
) -> StreamingResponse:
    """Copy status and every upstream header value (appending, never overwriting)."""
    response = StreamingResponse(
        processor.relay_body(fcgi_response), status_code=fcgi_response.status_code
    )
    for name, value in fcgi_response.header_list:
        response.headers.append(name, value)
    return response


# ===========================================
# Endpoint definitions.
# ===========================================


async def favicon(request: Request):
    """Always an empty 404, whatever is on disk."""
    return Response(status_code=404)


async def robots_txt(request: Request):
    """Disallow all crawling."""
    return Response(content=ROBOTS_TXT, status_code=200, headers={"Content-Type": "text/plain"})


async def gateway_handler(request: Request):
    """
    Resolve the request path and serve a file or run a script.

    Any method is accepted; it reaches the script as REQUEST_METHOD.
    """
    gateway_config = get_gateway_config(request)
    path_resolver = get_path_resolver(request)
    processor = get_processor(request)

    resolution = path_resolver.resolve(request.url.path)

    if resolution.kind is ResolutionKind.NOT_FOUND:
        return JSONResponse(status_code=404, content={"message": "Not Found"})

    if resolution.kind is ResolutionKind.STATIC_FILE:
        return FileResponse(resolution.path)

    # The body is fully read (and capped) before the upstream is dialled.
    body = await read_body(request, gateway_config.MAX_BODY_SIZE)
    descriptor = build_request_descriptor(request, body)
    fcgi_response = await processor.run_script(descriptor, resolution.path)
    return to_streaming_response(fcgi_response, processor)


def create_app(gateway_config: Optional[GatewayConfig] = None) -> FastAPI:
    """
    Build an independent gateway application.

    Each call gets its own resolver, FastCGI client and processor, so several
    apps with different configurations can coexist (e.g. in tests).
    """
    if gateway_config is None:
        gateway_config = GatewayConfig()

    def lifespan(app: FastAPI):
        return manage_lifespan(app, gateway_config)

    app = FastAPI(
        title="fcgigate",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    init_app_state(app, gateway_config)

    app.middleware("http")(request_context_middleware)
    register_exception_handlers(app)

    # Plain routes without a method filter: every method matches, and the
    # special routes take precedence over file resolution.
    app.add_route("/favicon.ico", favicon, include_in_schema=False)
    app.add_route("/robots.txt", robots_txt, include_in_schema=False)
    app.add_route("/{path:path}", gateway_handler, include_in_schema=False)

    return app


def app_factory() -> FastAPI:
    """uvicorn factory: every worker process loads its own config and logging."""
    gateway_config = GatewayConfig()
    setup_logging(gateway_config)
    return create_app(gateway_config)


def run() -> None:
    """Console entry point: load config from the environment and serve."""
    try:
        gateway_config = GatewayConfig()
    except Exception as e:
        sys.stderr.write(f"Failed to load configuration: {e}\n")
        raise SystemExit(1) from e

    setup_logging(gateway_config)
    uvicorn.run(
        "fcgigate.gateway.main:app_factory",
        factory=True,
        host=gateway_config.bind_host,
        port=gateway_config.bind_port,
        workers=gateway_config.UVICORN_WORKERS,
        log_config=None,
    )


if __name__ == "__main__":
    run()
