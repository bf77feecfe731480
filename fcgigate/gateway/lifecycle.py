"""
Where: fcgigate/gateway/lifecycle.py
What: Gateway wiring of request-independent collaborators and startup/shutdown logging.
Why: Keep main.py focused on app assembly while preserving lifecycle behavior.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from fcgigate import __version__

from .config import GatewayConfig
from .core.path_resolver import PathResolver
from .services.fastcgi_client import FastCGIClient
from .services.processor import GatewayRequestProcessor

logger = logging.getLogger("gateway.main")


def init_app_state(app: FastAPI, gateway_config: GatewayConfig) -> None:
    """Attach per-app collaborators to app.state for DI."""
    path_resolver = PathResolver(
        gateway_config.WEB_ROOT,
        gateway_config.INDEX_FILE,
        static_extensions=gateway_config.STATIC_EXTENSIONS,
        script_extensions=gateway_config.SCRIPT_EXTENSIONS,
    )
    client = FastCGIClient(gateway_config.upstream_address, timeout=gateway_config.upstream_timeout)

    app.state.config = gateway_config
    app.state.path_resolver = path_resolver
    app.state.fastcgi_client = client
    app.state.processor = GatewayRequestProcessor(
        client,
        document_root=path_resolver.document_root,
        server_port=gateway_config.public_port,
    )


@asynccontextmanager
async def manage_lifespan(app: FastAPI, gateway_config: GatewayConfig) -> AsyncIterator[None]:
    """Manage application lifecycle."""
    logger.info(
        "fcgigate %s starting: root=%s index=%s upstream=%s",
        __version__,
        gateway_config.WEB_ROOT,
        gateway_config.INDEX_FILE,
        gateway_config.upstream_address,
    )
    if not os.path.isdir(gateway_config.WEB_ROOT):
        logger.warning("Document root %s does not exist", gateway_config.WEB_ROOT)

    try:
        yield
    finally:
        logger.info("Gateway shutting down.")
