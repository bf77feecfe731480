"""
FastCGI response model.

Headers parsed from the interpreter's output plus the (still streaming) body.
"""

from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Tuple


def canonical_header_name(name: str) -> str:
    """content-type -> Content-Type"""
    return "-".join(part.capitalize() for part in name.split("-"))


@dataclass
class FastCGIResponse:
    """
    Response received from the upstream interpreter.

    `body` yields the remaining STDOUT bytes; iterating it to exhaustion or
    calling aclose() releases the upstream connection.
    """

    status_code: int
    header_list: List[Tuple[str, str]]
    body: AsyncIterator[bytes]
    reason: Optional[str] = None
    stderr: List[bytes] = field(default_factory=list)
    closer: Optional[Callable[[], Awaitable[None]]] = field(default=None, repr=False)

    @property
    def headers(self) -> Dict[str, List[str]]:
        """Canonical header name -> all values, in the order received."""
        grouped: Dict[str, List[str]] = {}
        for name, value in self.header_list:
            grouped.setdefault(canonical_header_name(name), []).append(value)
        return grouped

    async def read(self) -> bytes:
        """Drain the body into memory."""
        chunks = [chunk async for chunk in self.body]
        return b"".join(chunks)

    async def aclose(self) -> None:
        aclose = getattr(self.body, "aclose", None)
        if aclose is not None:
            await aclose()
        # an unstarted generator skips its finally block on aclose()
        if self.closer is not None:
            await self.closer()
