"""
Request helpers shared by the front controller.
"""

from fastapi import Request

from ..models.request import RequestDescriptor
from .exceptions import BodyTooLargeError
from .fastcgi_protocol import decode_param_bytes


async def read_body(request: Request, limit: int) -> bytes:
    """
    Read the request body, failing once it grows past `limit` bytes.

    A declared Content-Length over the limit fails without reading.
    """
    declared = request.headers.get("content-length")
    if declared is not None and declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(limit)

    body = bytearray()
    async for chunk in request.stream():
        body += chunk
        if len(body) > limit:
            raise BodyTooLargeError(limit)
    return bytes(body)


def build_request_descriptor(request: Request, body: bytes = b"") -> RequestDescriptor:
    """
    Snapshot the parts of a Starlette request the CGI environment needs.

    Raw bytes are decoded with the parameter codec, so non-ASCII header
    values and query strings reach the interpreter byte for byte.
    """
    scope = request.scope
    path = scope["path"]
    raw_path = scope.get("raw_path")
    request_uri = decode_param_bytes(raw_path) if raw_path else path
    query_string = decode_param_bytes(scope.get("query_string", b""))
    if query_string:
        request_uri = f"{request_uri}?{query_string}"

    # Values are already typed; str validation rejects surrogate-escaped bytes.
    return RequestDescriptor.model_construct(
        method=request.method,
        path=path,
        request_uri=request_uri,
        query_string=query_string,
        headers=[
            (decode_param_bytes(name), decode_param_bytes(value))
            for name, value in request.headers.raw
        ],
        protocol=f"HTTP/{scope.get('http_version', '1.1')}",
        remote_addr=request.client.host if request.client else "",
        remote_port=str(request.client.port) if request.client else "",
        host=request.url.hostname or "",
        body=body,
    )
