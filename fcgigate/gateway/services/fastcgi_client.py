"""
FastCGI gateway client.

Runs one responder-role request per connection against the upstream
interpreter:

    BEGIN_REQUEST -> PARAMS* -> PARAMS("") -> STDIN* -> STDIN("")
    <- STDOUT* / STDERR* ... END_REQUEST

The response header block is read eagerly; the body is handed back as an
async iterator that owns the connection and closes it when exhausted,
closed or failed.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, List, Mapping, Optional, Tuple, TypeVar

from ..config import UpstreamAddress
from ..core import fastcgi_protocol as proto
from ..core.exceptions import (
    FastCGIRecordError,
    UpstreamProtocolError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from ..models.response import FastCGIResponse

logger = logging.getLogger("gateway.fastcgi")

T = TypeVar("T")


class _Exchange:
    """State of a single request/response cycle on one connection."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        deadline: Optional[float],
        timeout: Optional[float],
    ):
        self.reader = reader
        self.writer = writer
        self.deadline = deadline
        self.timeout = timeout
        self.ended = False
        self.closed = False
        self.stderr: List[bytes] = []

    async def _wait(self, aw: Awaitable[T]) -> T:
        try:
            if self.deadline is None:
                return await aw
            remaining = self.deadline - asyncio.get_running_loop().time()
            return await asyncio.wait_for(aw, max(remaining, 0))
        except asyncio.TimeoutError:
            raise UpstreamTimeoutError(self.timeout) from None
        except OSError as e:
            raise UpstreamProtocolError(f"connection error: {e}") from e

    async def send_request(self, params: Mapping[str, str], body: bytes) -> None:
        self.writer.write(proto.encode_begin_request())
        self.writer.write(proto.encode_params(params))
        for record in proto.encode_stream(proto.FCGI_STDIN, body):
            self.writer.write(record)
        self.writer.write(proto.encode_record(proto.FCGI_STDIN, b""))
        await self._wait(self.writer.drain())

    async def _next_record(self) -> proto.Record:
        while True:
            record = await self._wait(proto.read_record(self.reader))
            if record.request_id == proto.REQUEST_ID:
                return record
            if record.request_id == 0:
                # management record (e.g. UNKNOWN_TYPE); nothing to act on
                logger.debug("Ignoring management record type %s", record.type)
                continue
            raise FastCGIRecordError(f"unexpected request id {record.request_id}")

    def _on_stderr(self, content: bytes) -> None:
        if not content:
            return
        self.stderr.append(content)
        logger.warning(
            "FastCGI stderr: %s",
            content.decode("utf-8", errors="replace").rstrip(),
            extra={"upstream_stderr_bytes": len(content)},
        )

    def _on_end_request(self, record: proto.Record) -> None:
        end = proto.decode_end_request(record.content)
        self.ended = True
        if end.protocol_status != proto.FCGI_REQUEST_COMPLETE:
            raise UpstreamProtocolError(f"upstream rejected request: {end.protocol_status_name}")
        if end.app_status:
            logger.info("FastCGI application exited with status %d", end.app_status)

    async def read_headers(self) -> Tuple[List[Tuple[str, str]], bytes]:
        """Read records until the CGI header block is complete."""
        buffer = bytearray()
        while True:
            record = await self._next_record()
            if record.type == proto.FCGI_STDOUT:
                # a blank line may straddle two records
                scan_from = max(len(buffer) - 3, 0)
                buffer += record.content
                split = proto.split_header_block(buffer, scan_from)
                if split is not None:
                    block, rest = split
                    if len(block) > proto.MAX_HEADER_BLOCK:
                        raise UpstreamProtocolError("response header block too large")
                    return proto.parse_header_block(block), rest
                if len(buffer) > proto.MAX_HEADER_BLOCK:
                    raise UpstreamProtocolError("response header block too large")
            elif record.type == proto.FCGI_STDERR:
                self._on_stderr(record.content)
            elif record.type == proto.FCGI_END_REQUEST:
                self._on_end_request(record)
                if not buffer:
                    raise UpstreamProtocolError("upstream ended the request without output")
                # headers without a terminating blank line and no body
                return proto.parse_header_block(bytes(buffer)), b""
            else:
                logger.debug("Ignoring record type %s", record.type)

    async def iter_body(self, initial: bytes) -> AsyncIterator[bytes]:
        try:
            if initial:
                yield initial
            while not self.ended:
                record = await self._next_record()
                if record.type == proto.FCGI_STDOUT:
                    if record.content:
                        yield record.content
                elif record.type == proto.FCGI_STDERR:
                    self._on_stderr(record.content)
                elif record.type == proto.FCGI_END_REQUEST:
                    self._on_end_request(record)
        finally:
            await self.close()

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except OSError as e:
            logger.debug("Error while closing FastCGI connection: %s", e)


class FastCGIClient:
    """
    Client for a FastCGI responder reachable over TCP or a domain socket.

    No pooling: every call to execute() dials a fresh connection.
    """

    def __init__(self, address: UpstreamAddress, timeout: Optional[float] = None):
        self.address = address
        self.timeout = timeout

    async def _open_connection(self) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        if self.address.is_unix:
            return await asyncio.open_unix_connection(self.address.path)
        return await asyncio.open_connection(self.address.host, self.address.port)

    async def _connect(
        self, deadline: Optional[float]
    ) -> Tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        try:
            if deadline is None:
                return await self._open_connection()
            remaining = deadline - asyncio.get_running_loop().time()
            return await asyncio.wait_for(self._open_connection(), max(remaining, 0))
        except (asyncio.TimeoutError, OSError) as e:
            raise UpstreamUnavailableError(str(self.address), e) from e

    async def execute(self, params: Mapping[str, str], body: bytes = b"") -> FastCGIResponse:
        """
        Send one request and return once the response headers are in.

        Raises:
            UpstreamUnavailableError: the upstream could not be dialled
            UpstreamProtocolError: malformed output, interrupted exchange or deadline hit
        """
        deadline = None
        if self.timeout is not None:
            deadline = asyncio.get_running_loop().time() + self.timeout

        reader, writer = await self._connect(deadline)
        exchange = _Exchange(reader, writer, deadline, self.timeout)

        try:
            await exchange.send_request(params, body)
            header_list, initial = await exchange.read_headers()
        except BaseException:
            await exchange.close()
            raise

        status_code, reason = 200, None
        forwarded = []
        for name, value in header_list:
            if name.lower() == "status":
                try:
                    status_code, reason = proto.parse_status(value)
                except UpstreamProtocolError:
                    await exchange.close()
                    raise
            else:
                forwarded.append((name, value))

        return FastCGIResponse(
            status_code=status_code,
            header_list=forwarded,
            body=exchange.iter_body(initial),
            reason=reason,
            stderr=exchange.stderr,
            closer=exchange.close,
        )
