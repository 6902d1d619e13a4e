from __future__ import annotations

import errno
import selectors
import socket
import threading
import time
import traceback
from collections.abc import Callable
from typing import BinaryIO

import greenlet

from httpemit._logging import _log
from httpemit.cookies import CookieJar
from httpemit.emitter import ResponseEmitter
from httpemit.request import Request
from httpemit.response import Response
from httpemit.transport import HttpTransport

HandlerFunc = Callable[[Request, Response], None]
RecvFunc = Callable[[], bytes]

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

RECV_CHUNK_SIZE: int = 8192
ACCEPT_POLL_INTERVAL: float = 0.1

DEFAULT_CONFIG: dict[str, int] = {
    "max_header_size": 32768,
    "max_body_size": 1_048_576,
    "read_timeout_ms": 5000,
}


# ---------------------------------------------------------------------------
# Hub
# ---------------------------------------------------------------------------


class _Hub:
    """Select loop that parks connection greenlets until their socket is readable.

    Every connection greenlet has the hub greenlet as its parent; waiting
    for data switches back to the hub, which resumes the waiter once the
    socket is readable or throws TimeoutError into it once its deadline
    passes.
    """

    def __init__(self) -> None:
        self.selector = selectors.DefaultSelector()
        self.greenlet = greenlet.getcurrent()
        self._deadlines: dict[greenlet.greenlet, float] = {}

    def spawn(self, fn: Callable[[], None]) -> None:
        """Run *fn* in a new greenlet until it first waits or finishes."""
        self._resume(greenlet.greenlet(fn, parent=self.greenlet).switch)

    def wait_readable(self, sock: socket.socket, timeout: float) -> None:
        current = greenlet.getcurrent()
        self.selector.register(sock, selectors.EVENT_READ, current.switch)
        self._deadlines[current] = time.monotonic() + timeout
        try:
            self.greenlet.switch()
        finally:
            self._deadlines.pop(current, None)
            self.selector.unregister(sock)

    def run_once(self, timeout: float) -> None:
        for key, _ in self.selector.select(timeout):
            # A waiter resumed earlier in this batch may already be gone.
            if self.selector.get_map().get(key.fileobj) is key:
                self._resume(key.data)
        now = time.monotonic()
        for g, deadline in list(self._deadlines.items()):
            if deadline <= now and g in self._deadlines:
                self._resume(lambda g=g: g.throw(TimeoutError("timed out waiting for data")))

    def _resume(self, fn: Callable[[], object]) -> None:
        # Failures in one connection must not stop the hub.
        try:
            fn()
        except Exception:
            _log(f"connection greenlet crashed:\n{traceback.format_exc()}", tag="server")

    def close(self) -> None:
        # Unwind parked connections so their sockets get closed.
        for g in list(self._deadlines):
            g.throw()
        self.selector.close()


# ---------------------------------------------------------------------------
# Socket creation
# ---------------------------------------------------------------------------


def _create_listen_socket(host: str, port: int, *, backlog: int = 1024) -> socket.socket:
    """Create a TCP listening socket."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except BaseException:
        sock.close()
        raise
    return sock


# ---------------------------------------------------------------------------
# Request reading
# ---------------------------------------------------------------------------


def _green_recv(conn: socket.socket, hub: _Hub | None, timeout: float) -> RecvFunc:
    """Return a recv function that yields to *hub* while no data is pending."""
    if hub is None:
        return lambda: conn.recv(RECV_CHUNK_SIZE)

    def recv() -> bytes:
        hub.wait_readable(conn, timeout)
        return conn.recv(RECV_CHUNK_SIZE)

    return recv


def _read_request(recv: RecvFunc, max_header_size: int, max_body_size: int) -> Request | None:
    """Read one request. Returns None on a clean EOF.

    Raises:
        ValueError: malformed request.
        RuntimeError: header block or body exceeds the configured limit.
    """
    buf = b""
    while b"\r\n\r\n" not in buf:
        if len(buf) > max_header_size:
            raise RuntimeError("request header too large")
        chunk = recv()
        if not chunk:
            if not buf:
                return None
            raise ValueError("connection closed before end of headers")
        buf += chunk

    head, _, body = buf.partition(b"\r\n\r\n")
    if len(head) > max_header_size:
        raise RuntimeError("request header too large")

    request = Request._from_raw(head)

    content_length = int(request.headers.get("content-length", "0"))
    if content_length < 0:
        raise ValueError(f"negative Content-Length: {content_length}")
    if content_length > max_body_size:
        raise RuntimeError("request body too large")

    while len(body) < content_length:
        chunk = recv()
        if not chunk:
            raise ValueError("connection closed before end of body")
        body += chunk
    request.body = body[:content_length]
    return request


# ---------------------------------------------------------------------------
# Connection handling
# ---------------------------------------------------------------------------


def _try_send_error(stream: BinaryIO, status_code: int, request: Request | None = None) -> None:
    """Best-effort error response on a fresh transport. Does NOT close the connection."""
    response = Response(request)
    response.set_status(status_code)
    response.set_header("Content-Type", "text/plain")
    response.set_header("Connection", "close")
    response.set_body(response.registry.reason_phrase(status_code) or "Error")
    try:
        ResponseEmitter(HttpTransport(stream)).send(response)
    except OSError:
        pass  # best effort


def _handle_connection(
    conn: socket.socket,
    handler: HandlerFunc,
    config: dict[str, int] | None = None,
    hub: _Hub | None = None,
) -> None:
    """Per-connection greenlet: read one request, dispatch, emit, close."""
    cfg = config or {}
    max_header_size = cfg.get("max_header_size", DEFAULT_CONFIG["max_header_size"])
    max_body_size = cfg.get("max_body_size", DEFAULT_CONFIG["max_body_size"])
    read_timeout = cfg.get("read_timeout_ms", DEFAULT_CONFIG["read_timeout_ms"]) / 1000

    conn.settimeout(read_timeout)
    stream = conn.makefile("wb")
    try:
        try:
            request = _read_request(
                _green_recv(conn, hub, read_timeout), max_header_size, max_body_size
            )
        except ValueError:
            _try_send_error(stream, 400)  # malformed request
            return
        except RuntimeError as e:
            if "too large" in str(e):
                _try_send_error(stream, 413)
                return
            raise
        if request is None:
            return

        response = Response(request, cookie_jar=CookieJar())
        try:
            handler(request, response)
        except Exception:
            _log(f"handler failed for {request!r}:\n{traceback.format_exc()}", tag="server")
            _try_send_error(stream, 500, request)
            return

        response.set_header("Connection", "close")
        transport = HttpTransport(stream)
        try:
            ResponseEmitter(transport).send(response)
        except OSError:
            raise
        except Exception:
            _log(f"sending response failed for {request!r}:\n{traceback.format_exc()}", tag="server")
            if not transport.headers_sent():
                _try_send_error(stream, 500, request)

    except OSError:
        pass  # network error, just close
    finally:
        try:
            stream.close()
        except OSError:
            pass
        conn.close()


def _run_acceptor(
    sock: socket.socket,
    handler: HandlerFunc,
    config: dict[str, int] | None = None,
    *,
    stop: threading.Event | None = None,
) -> None:
    """Accept connections and run each one in its own greenlet under a hub."""
    hub = _Hub()

    def accept() -> None:
        try:
            conn, _ = sock.accept()
        except BlockingIOError:
            return
        hub.spawn(lambda: _handle_connection(conn, handler, config, hub))

    sock.setblocking(False)
    hub.selector.register(sock, selectors.EVENT_READ, accept)
    try:
        while stop is None or not stop.is_set():
            try:
                hub.run_once(ACCEPT_POLL_INTERVAL)
            except OSError as e:
                # Socket closed or invalid: stop accepting.
                if e.errno not in (errno.EBADF, errno.EINVAL, errno.ENOTSOCK):
                    _log(f"acceptor error: {e}", tag="server")
                break
    finally:
        hub.close()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def serve(
    handler: HandlerFunc,
    host: str = "127.0.0.1",
    port: int = 8000,
    *,
    _ready: threading.Event | None = None,
    _stop: threading.Event | None = None,
    config: dict[str, int] | None = None,
) -> None:
    """Start the HTTP server.

    Args:
        handler: Function called for each HTTP request.
        host: Address to bind to.
        port: Port to bind to.
        _ready: Event set once the socket is listening.
        _stop: Event that stops the accept loop when set.
        config: Optional limits. Supported keys: max_header_size,
                max_body_size, read_timeout_ms.
    """
    sock = _create_listen_socket(host, port)
    _log(f"listening on {host}:{sock.getsockname()[1]}", tag="server")
    if _ready is not None:
        _ready.set()
    try:
        _run_acceptor(sock, handler, config, stop=_stop)
    except KeyboardInterrupt:
        _log("interrupted by user", tag="server")
    finally:
        sock.close()
