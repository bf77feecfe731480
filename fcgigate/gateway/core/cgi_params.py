"""
CGI parameter builder.

Translates a RequestDescriptor and the resolved script path into the
environment passed to the interpreter in FCGI_PARAMS records.
"""

from typing import Dict

from fcgigate import SERVER_SOFTWARE

from ..models.request import RequestDescriptor

GATEWAY_INTERFACE = "CGI/1.1"


def header_param_name(header_name: str) -> str:
    """X-Custom-Header -> HTTP_X_CUSTOM_HEADER"""
    return "HTTP_" + header_name.upper().replace("-", "_")


def build_cgi_params(
    request: RequestDescriptor,
    script_path: str,
    document_root: str,
    server_port: str = "80",
    server_software: str = SERVER_SOFTWARE,
) -> Dict[str, str]:
    """
    Build the CGI parameter set for one request.

    Every header contributes HTTP_<NAME>. A repeated header contributes only
    its first value; the later values are dropped. Scripts see one value per
    header name, and that is part of the contract with the interpreter.
    """
    params = {
        "SCRIPT_FILENAME": script_path,
        "SCRIPT_NAME": request.path,
        "REQUEST_METHOD": request.method,
        "QUERY_STRING": request.query_string,
        "CONTENT_TYPE": request.content_type,
        "CONTENT_LENGTH": request.content_length,
        "DOCUMENT_ROOT": document_root,
        "SERVER_PROTOCOL": request.protocol,
        "REMOTE_ADDR": request.remote_addr,
        "REMOTE_PORT": request.remote_port,
        "REQUEST_URI": request.request_uri,
        "GATEWAY_INTERFACE": GATEWAY_INTERFACE,
        "SERVER_SOFTWARE": server_software,
        "SERVER_NAME": request.host,
        "SERVER_PORT": server_port,
    }

    for name, values in request.multi_headers.items():
        params[header_param_name(name)] = values[0]

    return params
