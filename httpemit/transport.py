from __future__ import annotations

import email.utils
import os
import sys
import urllib.parse
from collections.abc import Mapping
from http.cookies import Morsel
from typing import BinaryIO, Protocol


class Transport(Protocol):
    """Low-level output primitives a ResponseEmitter writes through."""

    def headers_sent(self) -> bool: ...

    def write_status(self, phrase: str) -> None: ...

    def write_header(self, line: str) -> None: ...

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: int,
        path: str,
        domain: str,
        secure: bool,
        http_only: bool,
    ) -> None: ...

    def flush(self) -> None: ...

    def write_body(self, data: bytes) -> None: ...


def format_set_cookie(
    name: str,
    value: str,
    expires: int = 0,
    path: str = "",
    domain: str = "",
    secure: bool = False,
    http_only: bool = False,
) -> str:
    """Render the value of a ``Set-Cookie`` header."""
    morsel: Morsel[str] = Morsel()
    morsel.set(name, value, urllib.parse.quote_plus(value))
    if expires:
        morsel["expires"] = email.utils.formatdate(expires, usegmt=True)
    if path:
        morsel["path"] = path
    if domain:
        morsel["domain"] = domain
    if secure:
        morsel["secure"] = True
    if http_only:
        morsel["httponly"] = True
    return morsel.OutputString()


class _StreamTransport:
    """Writes a response head and body to a binary stream.

    Header lines are held back until ``flush()``, which writes the status
    line, the headers and the terminating blank line in one go. Once
    flushed, further header writes are dropped.
    """

    STATUS_PREFIX: str = ""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._status_line: str | None = None
        self._lines: list[str] = []
        self._headers_sent = False

    def headers_sent(self) -> bool:
        return self._headers_sent

    def status_line(self, phrase: str) -> str:
        return f"{self.STATUS_PREFIX}{phrase}"

    def write_status(self, phrase: str) -> None:
        if not self._headers_sent:
            self._status_line = self.status_line(phrase)

    def write_header(self, line: str) -> None:
        if not self._headers_sent:
            self._lines.append(line)

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: int,
        path: str,
        domain: str,
        secure: bool,
        http_only: bool,
    ) -> None:
        cookie = format_set_cookie(name, value, expires, path, domain, secure, http_only)
        self.write_header(f"Set-Cookie: {cookie}")

    def flush(self) -> None:
        if not self._headers_sent:
            lines = self._lines
            if self._status_line is not None:
                lines = [self._status_line, *lines]
            # A head that fails to encode is discarded, not retried.
            self._status_line = None
            self._lines = []
            head = "".join(f"{line}\r\n" for line in lines) + "\r\n"
            self._stream.write(head.encode("latin-1"))
            self._headers_sent = True
        self._stream.flush()

    def write_body(self, data: bytes) -> None:
        if data:
            self._stream.write(data)
            self._stream.flush()


class HttpTransport(_StreamTransport):
    """Direct HTTP: the head starts with an ``HTTP/1.1`` status line."""

    STATUS_PREFIX = "HTTP/1.1 "


class CgiTransport(_StreamTransport):
    """CGI-style gateway: the status travels as a ``Status:`` header."""

    STATUS_PREFIX = "Status: "


def is_cgi(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return env.get("GATEWAY_INTERFACE", "").upper().startswith("CGI")


def detect_transport(
    stream: BinaryIO | None = None,
    environ: Mapping[str, str] | None = None,
) -> _StreamTransport:
    """Pick the transport for the current process environment."""
    if stream is None:
        stream = sys.stdout.buffer
    if is_cgi(environ):
        return CgiTransport(stream)
    return HttpTransport(stream)
