"""
FastCGI wire codec (client side, responder role).

Based on the FastCGI Specification:
https://fastcgi-archives.github.io/FastCGI_Specification.html

Record format:
- version (1 byte): FCGI_VERSION_1
- type (1 byte): record type
- requestId (2 bytes BE): request ID
- contentLength (2 bytes BE): content length
- paddingLength (1 byte): padding length
- reserved (1 byte): 0
- content (contentLength bytes)
- padding (paddingLength bytes)
"""

import asyncio
import re
import struct
from dataclasses import dataclass
from typing import Iterator, List, Mapping, Optional, Tuple

from .exceptions import FastCGIRecordError, UpstreamProtocolError

# Protocol version
FCGI_VERSION_1 = 1

# Record types
FCGI_BEGIN_REQUEST = 1
FCGI_ABORT_REQUEST = 2
FCGI_END_REQUEST = 3
FCGI_PARAMS = 4
FCGI_STDIN = 5
FCGI_STDOUT = 6
FCGI_STDERR = 7
FCGI_DATA = 8
FCGI_GET_VALUES = 9
FCGI_GET_VALUES_RESULT = 10
FCGI_UNKNOWN_TYPE = 11

# Roles (in BEGIN_REQUEST)
FCGI_RESPONDER = 1

# Flags (in BEGIN_REQUEST)
FCGI_KEEP_CONN = 1

# Protocol status (in END_REQUEST)
FCGI_REQUEST_COMPLETE = 0
FCGI_CANT_MPX_CONN = 1
FCGI_OVERLOADED = 2
FCGI_UNKNOWN_ROLE = 3

FCGI_PROTOCOL_STATUS_NAMES = {
    FCGI_REQUEST_COMPLETE: "REQUEST_COMPLETE",
    FCGI_CANT_MPX_CONN: "CANT_MPX_CONN",
    FCGI_OVERLOADED: "OVERLOADED",
    FCGI_UNKNOWN_ROLE: "UNKNOWN_ROLE",
}

# Header size (8 bytes fixed)
FCGI_HEADER_LEN = 8

# Maximum content length per record (64KB - 1)
FCGI_MAX_CONTENT_LEN = 65535

# One request per connection, so the id never changes.
REQUEST_ID = 1

_HEADER = struct.Struct(">BBHHBx")
_BEGIN_REQUEST_BODY = struct.Struct(">HB5x")
_END_REQUEST_BODY = struct.Struct(">IB3x")

_BLANK_LINE_RE = re.compile(rb"\r?\n\r?\n")

# Request bytes (header values, raw path and query) reach the interpreter
# unchanged: they are decoded with this codec and encoded back with it.
PARAM_ENCODING = "utf-8"
PARAM_ERRORS = "surrogateescape"

# Upper bound for the CGI response header block.
MAX_HEADER_BLOCK = 64 * 1024


@dataclass(frozen=True)
class Record:
    type: int
    request_id: int
    content: bytes = b""


@dataclass(frozen=True)
class EndRequest:
    app_status: int
    protocol_status: int

    @property
    def protocol_status_name(self) -> str:
        return FCGI_PROTOCOL_STATUS_NAMES.get(self.protocol_status, str(self.protocol_status))


# ===========================================
# Encoding
# ===========================================


def encode_record(record_type: int, content: bytes = b"", request_id: int = REQUEST_ID) -> bytes:
    """Build a single record; content is padded to an 8-byte boundary."""
    content_length = len(content)
    if content_length > FCGI_MAX_CONTENT_LEN:
        raise ValueError(f"record content too long: {content_length}")
    padding_length = -content_length % 8
    header = _HEADER.pack(FCGI_VERSION_1, record_type, request_id, content_length, padding_length)
    return header + content + b"\x00" * padding_length


def encode_stream(record_type: int, data: bytes, request_id: int = REQUEST_ID) -> Iterator[bytes]:
    """Split data over as many records as needed. Does not emit the terminating empty record."""
    view = memoryview(data)
    for offset in range(0, len(view), FCGI_MAX_CONTENT_LEN):
        yield encode_record(
            record_type, bytes(view[offset : offset + FCGI_MAX_CONTENT_LEN]), request_id
        )


def encode_begin_request(
    role: int = FCGI_RESPONDER, flags: int = 0, request_id: int = REQUEST_ID
) -> bytes:
    return encode_record(FCGI_BEGIN_REQUEST, _BEGIN_REQUEST_BODY.pack(role, flags), request_id)


def _encode_length(length: int) -> bytes:
    if length < 0x80:
        return bytes([length])
    return struct.pack(">I", length | 0x80000000)


def encode_name_value_pairs(params: Mapping[str, str]) -> bytes:
    """FCGI_NameValuePair11/14/41/44 encoding of the whole parameter set."""
    chunks = []
    for name, value in params.items():
        name_bytes = name.encode(PARAM_ENCODING, PARAM_ERRORS)
        value_bytes = value.encode(PARAM_ENCODING, PARAM_ERRORS)
        chunks.append(_encode_length(len(name_bytes)))
        chunks.append(_encode_length(len(value_bytes)))
        chunks.append(name_bytes)
        chunks.append(value_bytes)
    return b"".join(chunks)


def decode_param_bytes(raw: bytes) -> str:
    """Raw request bytes -> str that encode_name_value_pairs turns back into the same bytes."""
    return raw.decode(PARAM_ENCODING, PARAM_ERRORS)


def encode_params(params: Mapping[str, str], request_id: int = REQUEST_ID) -> bytes:
    """PARAMS record stream including the terminating empty record."""
    payload = encode_name_value_pairs(params)
    return b"".join(encode_stream(FCGI_PARAMS, payload, request_id)) + encode_record(
        FCGI_PARAMS, b"", request_id
    )


# ===========================================
# Decoding
# ===========================================


def decode_name_value_pairs(data: bytes) -> dict:
    """Inverse of encode_name_value_pairs (used by test responders and diagnostics)."""
    params = {}
    pos = 0
    end = len(data)

    def read_length() -> int:
        nonlocal pos
        if pos >= end:
            raise FastCGIRecordError("truncated name-value pair")
        if data[pos] >> 7 == 0:
            length = data[pos]
            pos += 1
            return length
        if pos + 4 > end:
            raise FastCGIRecordError("truncated name-value length")
        (length,) = struct.unpack(">I", data[pos : pos + 4])
        pos += 4
        return length & 0x7FFFFFFF

    while pos < end:
        name_length = read_length()
        value_length = read_length()
        if pos + name_length + value_length > end:
            raise FastCGIRecordError("name-value pair exceeds record content")
        name = decode_param_bytes(data[pos : pos + name_length])
        pos += name_length
        value = decode_param_bytes(data[pos : pos + value_length])
        pos += value_length
        params[name] = value

    return params


def decode_end_request(content: bytes) -> EndRequest:
    if len(content) != _END_REQUEST_BODY.size:
        raise FastCGIRecordError(f"END_REQUEST body has {len(content)} bytes")
    app_status, protocol_status = _END_REQUEST_BODY.unpack(content)
    return EndRequest(app_status, protocol_status)


async def read_record(reader: asyncio.StreamReader) -> Record:
    """Read one record (header, content, padding) from the stream."""
    try:
        header = await reader.readexactly(FCGI_HEADER_LEN)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            raise UpstreamProtocolError("connection closed before END_REQUEST") from e
        raise UpstreamProtocolError("truncated record header") from e

    version, record_type, request_id, content_length, padding_length = _HEADER.unpack(header)
    if version != FCGI_VERSION_1:
        raise FastCGIRecordError(f"unsupported version {version}")

    try:
        payload = await reader.readexactly(content_length + padding_length)
    except asyncio.IncompleteReadError as e:
        raise UpstreamProtocolError("truncated record content") from e

    return Record(record_type, request_id, payload[:content_length])


# ===========================================
# CGI response header block
# ===========================================


def split_header_block(buffer: bytes, start: int = 0) -> Optional[Tuple[bytes, bytes]]:
    """
    Split script output at the first blank line at or after `start`.

    Returns (header_block, body_start) or None while the block is incomplete.
    """
    match = _BLANK_LINE_RE.search(buffer, start)
    if match is None:
        return None
    return bytes(buffer[: match.start()]), bytes(buffer[match.end() :])


def parse_header_block(block: bytes) -> List[Tuple[str, str]]:
    """MIME-style header lines -> ordered (name, value) pairs."""
    headers: List[Tuple[str, str]] = []
    for line in block.decode("latin-1").splitlines():
        if not line:
            continue
        if line[0] in " \t":
            # obs-fold continuation
            if not headers:
                raise UpstreamProtocolError("continuation line before first header")
            name, value = headers[-1]
            headers[-1] = (name, f"{value} {line.strip()}")
            continue
        name, sep, value = line.partition(":")
        name = name.strip()
        if not sep or not name:
            raise UpstreamProtocolError(f"malformed header line: {line!r}")
        headers.append((name, value.strip()))
    return headers


def parse_status(value: str) -> Tuple[int, Optional[str]]:
    """CGI "Status: 404 Not Found" -> (404, "Not Found")."""
    code, _, reason = value.strip().partition(" ")
    if len(code) != 3 or not code.isdigit():
        raise UpstreamProtocolError(f"invalid Status header: {value!r}")
    return int(code), reason.strip() or None
