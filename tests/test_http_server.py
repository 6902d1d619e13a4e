"""Tests for the HTTP server integration — real TCP sockets, real HTTP."""

from __future__ import annotations

import socket
import threading
import time
from collections.abc import Callable, Generator

import pytest

from httpemit.request import Request
from httpemit.response import Response
from httpemit.server import HandlerFunc, _create_listen_socket, _run_acceptor, serve


ServerFactory = Callable[..., socket.socket]


@pytest.fixture()
def start_server() -> Generator[ServerFactory]:
    """Factory fixture: start an acceptor for a handler on an ephemeral port."""
    running: list[tuple[socket.socket, threading.Thread, threading.Event]] = []

    def start(handler: HandlerFunc, config: dict[str, int] | None = None) -> socket.socket:
        sock = _create_listen_socket("127.0.0.1", 0)
        stop = threading.Event()
        thread = threading.Thread(
            target=_run_acceptor, args=(sock, handler, config), kwargs={"stop": stop}, daemon=True
        )
        thread.start()
        running.append((sock, thread, stop))
        return sock

    yield start

    for sock, thread, stop in running:
        stop.set()
        thread.join(timeout=5)
        sock.close()


def _connect(listen_sock: socket.socket) -> socket.socket:
    addr: tuple[str, int] = listen_sock.getsockname()
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.settimeout(3.0)
    sock.connect(addr)
    return sock


def _request(listen_sock: socket.socket, raw: bytes) -> bytes:
    """Send raw request bytes and read until the server closes."""
    client = _connect(listen_sock)
    try:
        client.sendall(raw)
        response = b""
        while True:
            chunk = client.recv(8192)
            if not chunk:
                break
            response += chunk
        return response
    finally:
        client.close()


def _http(method: str = "GET", path: str = "/", body: bytes = b"", **headers: str) -> bytes:
    lines = [f"{method} {path} HTTP/1.1", "Host: localhost"]
    if body:
        lines.append(f"Content-Length: {len(body)}")
    lines.extend(f"{name.replace('_', '-')}: {value}" for name, value in headers.items())
    return ("\r\n".join(lines) + "\r\n\r\n").encode() + body


def _hello(request: Request, response: Response) -> None:
    response.write("hello")


def test_get_returns_body_and_headers(start_server: ServerFactory) -> None:
    sock = start_server(_hello)
    raw = _request(sock, _http())
    assert raw == (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/html\r\n"
        b"Content-Length: 5\r\n"
        b"Connection: close\r\n"
        b"\r\n"
        b"hello"
    )


def test_head_reports_length_without_body(start_server: ServerFactory) -> None:
    sock = start_server(_hello)
    raw = _request(sock, _http("HEAD"))
    assert raw.startswith(b"HTTP/1.1 200 OK\r\n")
    assert b"Content-Length: 5\r\n" in raw
    assert raw.endswith(b"\r\n\r\n")


def test_no_content(start_server: ServerFactory) -> None:
    def handler(request: Request, response: Response) -> None:
        response.set_status(204)
        response.write("ignored")

    sock = start_server(handler)
    raw = _request(sock, _http("DELETE", "/items/1"))
    assert raw.startswith(b"HTTP/1.1 204 No Content\r\n")
    assert b"Content-Type" not in raw
    assert raw.endswith(b"\r\n\r\n")


def test_post_body_and_cookie(start_server: ServerFactory) -> None:
    def handler(request: Request, response: Response) -> None:
        response.set_status(201)
        response.set_header("Content-Type", "text/plain")
        jar = response.get_cookie_jar()
        assert jar is not None
        jar.set_cookie("last", request.query_params.get("tag", ""), http_only=True)
        response.write(request.body.upper())

    sock = start_server(handler)
    raw = _request(sock, _http("POST", "/echo?tag=x", b"ping"))
    head, _, body = raw.partition(b"\r\n\r\n")
    assert head.startswith(b"HTTP/1.1 201 Created\r\n")
    assert b"Content-Type: text/plain\r\n" in head
    assert head.endswith(b"Set-Cookie: last=x; HttpOnly; Path=/")
    assert body == b"PING"


def test_handler_exception_returns_500(start_server: ServerFactory) -> None:
    def handler(request: Request, response: Response) -> None:
        raise RuntimeError("boom")

    sock = start_server(handler)
    raw = _request(sock, _http())
    assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
    assert raw.endswith(b"\r\n\r\n500 Internal Server Error")


def test_invalid_status_in_handler_returns_500(start_server: ServerFactory) -> None:
    def handler(request: Request, response: Response) -> None:
        response.set_status(999)

    sock = start_server(handler)
    raw = _request(sock, _http())
    assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")


def test_malformed_request_returns_400(start_server: ServerFactory) -> None:
    sock = start_server(_hello)
    raw = _request(sock, b"NONSENSE\r\n\r\n")
    assert raw.startswith(b"HTTP/1.1 400 Bad Request\r\n")


def test_body_over_limit_returns_413(start_server: ServerFactory) -> None:
    sock = start_server(_hello, {"max_body_size": 10})
    raw = _request(sock, b"POST / HTTP/1.1\r\nHost: localhost\r\nContent-Length: 100\r\n\r\n")
    assert raw.startswith(b"HTTP/1.1 413 Request Entity Too Large\r\n")


def test_connections_are_served_in_sequence(start_server: ServerFactory) -> None:
    sock = start_server(_hello)
    for _ in range(3):
        assert _request(sock, _http()).endswith(b"hello")


def _routed(request: Request, response: Response) -> None:
    if request.path == "/bad-cookie":
        jar = response.get_cookie_jar()
        assert jar is not None
        jar.set_cookie("bad name", "v")
    elif request.path == "/bad-header":
        response.set_header("X-Name", "José€")
    response.write("ok")


def test_bad_cookie_name_returns_500_and_server_keeps_serving(
    start_server: ServerFactory,
) -> None:
    sock = start_server(_routed)
    raw = _request(sock, _http("GET", "/bad-cookie"))
    assert raw.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
    assert b"Set-Cookie" not in raw

    assert _request(sock, _http()).endswith(b"\r\n\r\nok")


def test_unencodable_header_returns_500_without_failed_headers(
    start_server: ServerFactory,
) -> None:
    sock = start_server(_routed)
    raw = _request(sock, _http("GET", "/bad-header"))
    head, _, body = raw.partition(b"\r\n\r\n")
    assert head.startswith(b"HTTP/1.1 500 Internal Server Error\r\n")
    assert b"X-Name" not in head
    assert b"Content-Length: 25" in head
    assert body == b"500 Internal Server Error"

    assert _request(sock, _http()).endswith(b"\r\n\r\nok")


def test_slow_client_does_not_block_others(start_server: ServerFactory) -> None:
    sock = start_server(_hello, {"read_timeout_ms": 3000})
    slow = _connect(sock)
    try:
        slow.sendall(b"GET / HTTP/1.1\r\n")  # headers never finish
        time.sleep(0.2)

        started = time.monotonic()
        raw = _request(sock, _http())
        assert raw.endswith(b"hello")
        assert time.monotonic() - started < 1.0
    finally:
        slow.close()


def test_idle_client_is_dropped_after_read_timeout(start_server: ServerFactory) -> None:
    sock = start_server(_hello, {"read_timeout_ms": 200})
    idle = _connect(sock)
    try:
        started = time.monotonic()
        assert idle.recv(4096) == b""
        assert time.monotonic() - started < 2.0
    finally:
        idle.close()

    assert _request(sock, _http()).endswith(b"hello")


def test_serve_binds_and_stops() -> None:
    ready = threading.Event()
    stop = threading.Event()
    probe = _create_listen_socket("127.0.0.1", 0)
    port: int = probe.getsockname()[1]
    probe.close()

    thread = threading.Thread(
        target=serve,
        args=(_hello, "127.0.0.1", port),
        kwargs={"_ready": ready, "_stop": stop},
        daemon=True,
    )
    thread.start()
    assert ready.wait(timeout=5)
    time.sleep(0.05)

    client = socket.create_connection(("127.0.0.1", port), timeout=3.0)
    client.sendall(_http())
    data = b""
    while chunk := client.recv(8192):
        data += chunk
    client.close()
    assert data.endswith(b"hello")

    stop.set()
    thread.join(timeout=5)
    assert not thread.is_alive()
