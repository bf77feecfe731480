"""
Request descriptor model.

Encapsulates all data of an inbound request needed to run a script.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class RequestDescriptor(BaseModel):
    """
    Inbound request as seen by the FastCGI pipeline.

    This model decouples the service layer from FastAPI's Request object.
    Header names are kept as received; lookups are case-insensitive.
    """

    method: str
    path: str
    request_uri: str
    query_string: str = ""
    headers: List[Tuple[str, str]] = Field(default_factory=list)
    protocol: str = "HTTP/1.1"
    remote_addr: str = ""
    remote_port: str = ""
    host: str = ""
    body: bytes = b""

    model_config = ConfigDict(frozen=True)

    @property
    def multi_headers(self) -> Dict[str, List[str]]:
        """Lower-cased header name -> values in arrival order."""
        grouped: Dict[str, List[str]] = {}
        for name, value in self.headers:
            grouped.setdefault(name.lower(), []).append(value)
        return grouped

    def get_header(self, name: str) -> Optional[str]:
        values = self.multi_headers.get(name.lower())
        return values[0] if values else None

    @property
    def content_type(self) -> str:
        return self.get_header("content-type") or ""

    @property
    def content_length(self) -> str:
        declared = self.get_header("content-length")
        if declared is not None:
            return declared
        return str(len(self.body)) if self.body else ""
