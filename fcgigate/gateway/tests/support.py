"""
Test support: a scripted FastCGI responder running in a background thread.

The responder reads one complete request (BEGIN_REQUEST, PARAMS, STDIN) per
connection, records it, then writes back whatever records the test queued.
"""

import socket
import socketserver
import struct
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from fcgigate.gateway.core import fastcgi_protocol as proto


@dataclass
class ReceivedRequest:
    begin: bytes
    params: Dict[str, str]
    stdin: bytes
    records: List[Tuple[int, int]] = field(default_factory=list)
    raw_params: bytes = b""


def script_output(
    headers: Sequence[Tuple[str, str]], body: bytes = b"", chunk_size: int = 0
) -> List[bytes]:
    """STDOUT records for a CGI response, the closing empty STDOUT and END_REQUEST."""
    head = "".join(f"{name}: {value}\r\n" for name, value in headers).encode("latin-1")
    payload = head + b"\r\n" + body
    records = []
    if chunk_size:
        for offset in range(0, len(payload), chunk_size):
            chunk = payload[offset : offset + chunk_size]
            records.append(proto.encode_record(proto.FCGI_STDOUT, chunk))
    else:
        records.extend(proto.encode_stream(proto.FCGI_STDOUT, payload))
    records.append(proto.encode_record(proto.FCGI_STDOUT, b""))
    records.append(end_request())
    return records


def stderr_record(message: bytes) -> bytes:
    return proto.encode_record(proto.FCGI_STDERR, message)


def end_request(app_status: int = 0, protocol_status: int = proto.FCGI_REQUEST_COMPLETE) -> bytes:
    return proto.encode_record(
        proto.FCGI_END_REQUEST, struct.pack(">IB3x", app_status, protocol_status)
    )


class _ResponderHandler(socketserver.BaseRequestHandler):
    def handle(self):
        server = self.server
        with server.lock:
            server.connections += 1

        rfile = self.request.makefile("rb")
        begin = b""
        params = bytearray()
        stdin = bytearray()
        seen = []
        while True:
            header = rfile.read(proto.FCGI_HEADER_LEN)
            if len(header) < proto.FCGI_HEADER_LEN:
                return
            _, record_type, request_id, content_length, padding_length = struct.unpack(
                ">BBHHBx", header
            )
            content = rfile.read(content_length)
            rfile.read(padding_length)
            seen.append((record_type, content_length))
            if record_type == proto.FCGI_BEGIN_REQUEST:
                begin = content
            elif record_type == proto.FCGI_PARAMS:
                params += content
            elif record_type == proto.FCGI_STDIN:
                if not content:
                    break
                stdin += content

        received = ReceivedRequest(
            begin=begin,
            params=proto.decode_name_value_pairs(bytes(params)),
            stdin=bytes(stdin),
            records=seen,
            raw_params=bytes(params),
        )
        with server.lock:
            server.requests.append(received)

        if server.delay:
            server.release.wait(server.delay)
        for chunk in server.responder(received):
            try:
                self.request.sendall(chunk)
            except OSError:
                return


class _ResponderMixin:
    daemon_threads = True
    allow_reuse_address = True

    def init_state(self):
        self.lock = threading.Lock()
        self.connections = 0
        self.requests: List[ReceivedRequest] = []
        self.delay = 0.0
        self.release = threading.Event()
        self.responder: Callable[[ReceivedRequest], List[bytes]] = lambda req: script_output(
            [("Content-Type", "text/html")], b"hello"
        )


class TCPResponder(_ResponderMixin, socketserver.ThreadingTCPServer):
    pass


class UnixResponder(_ResponderMixin, socketserver.ThreadingUnixStreamServer):
    pass


class FakeFastCGIUpstream:
    """Handle used by tests to script responses and inspect requests."""

    def __init__(self, server: _ResponderMixin, address: str):
        self.server = server
        self.address = address
        self._thread: Optional[threading.Thread] = None

    def start(self) -> "FakeFastCGIUpstream":
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self.server.release.set()
        self.server.shutdown()
        self.server.server_close()

    def respond_with(self, records: List[bytes]) -> None:
        self.server.responder = lambda req: records

    def respond(self, responder: Callable[[ReceivedRequest], List[bytes]]) -> None:
        self.server.responder = responder

    def hang(self, seconds: float) -> None:
        self.server.delay = seconds

    @property
    def connections(self) -> int:
        return self.server.connections

    @property
    def requests(self) -> List[ReceivedRequest]:
        return self.server.requests

    def wait_for_requests(self, count: int, timeout: float = 2.0) -> None:
        end = time.monotonic() + timeout
        while len(self.requests) < count and time.monotonic() < end:
            time.sleep(0.01)


def start_tcp_upstream() -> FakeFastCGIUpstream:
    server = TCPResponder(("127.0.0.1", 0), _ResponderHandler)
    server.init_state()
    host, port = server.server_address[:2]
    return FakeFastCGIUpstream(server, f"{host}:{port}").start()


def start_unix_upstream(path: str) -> FakeFastCGIUpstream:
    server = UnixResponder(path, _ResponderHandler)
    server.init_state()
    return FakeFastCGIUpstream(server, f"unix:{path}").start()


def unused_tcp_address() -> str:
    """An address nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
    return f"127.0.0.1:{port}"
