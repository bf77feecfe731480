"""
Dependency accessors for the Gateway routes.

Collaborators live on app.state (see lifecycle.init_app_state); the catch-all
route is a plain Starlette route, so handlers call these directly.
"""

from fastapi import Request

from ..config import GatewayConfig
from ..core.path_resolver import PathResolver
from ..services.processor import GatewayRequestProcessor


def get_gateway_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_path_resolver(request: Request) -> PathResolver:
    return request.app.state.path_resolver


def get_processor(request: Request) -> GatewayRequestProcessor:
    return request.app.state.processor
