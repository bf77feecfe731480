"""
Gateway Request Processor - Service Layer

Standardizes the flow: RequestDescriptor -> CGI params -> FastCGIResponse.
"""

import logging
from typing import AsyncIterator

from ..core.cgi_params import build_cgi_params
from ..core.exceptions import GatewayError
from ..models.request import RequestDescriptor
from ..models.response import FastCGIResponse
from .fastcgi_client import FastCGIClient

logger = logging.getLogger("gateway.processor")


class GatewayRequestProcessor:
    """
    Runs a resolved script through the FastCGI upstream.
    """

    def __init__(self, client: FastCGIClient, document_root: str, server_port: str):
        self.client = client
        self.document_root = document_root
        self.server_port = server_port

    async def run_script(self, request: RequestDescriptor, script_path: str) -> FastCGIResponse:
        """
        Build the CGI environment and execute the script.

        Upstream failures propagate as GatewayError subclasses; nothing has
        been sent to the client yet at this point.
        """
        params = build_cgi_params(
            request,
            script_path=script_path,
            document_root=self.document_root,
            server_port=self.server_port,
        )
        logger.debug(
            f"Executing {script_path} ({request.method} {request.path})",
            extra={"script": script_path, "params_count": len(params)},
        )
        return await self.client.execute(params, request.body)

    async def relay_body(self, response: FastCGIResponse) -> AsyncIterator[bytes]:
        """
        Copy the upstream body to the client.

        The status line is already committed when this runs, so an upstream
        failure is logged and ends the body early.
        """
        try:
            async for chunk in response.body:
                yield chunk
        except GatewayError as e:
            logger.error(
                f"FastCGI response interrupted: {e}",
                extra={"status": response.status_code, "error_type": type(e).__name__},
            )
        finally:
            await response.aclose()
