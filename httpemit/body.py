from __future__ import annotations

from httpemit.headers import HeaderStore


def _to_bytes(content: object) -> bytes:
    if isinstance(content, bytes):
        return content
    if isinstance(content, (bytearray, memoryview)):
        return bytes(content)
    if isinstance(content, str):
        return content.encode("utf-8")
    return str(content).encode("utf-8")


class BodyBuffer:
    """Append-only body content that keeps ``Content-Length`` in sync.

    Every append rewrites the ``Content-Length`` header of the bound
    HeaderStore, so the header never needs recomputing before a send.
    """

    __slots__ = ("_parts", "_length", "_headers")

    _parts: list[bytes]
    _length: int
    _headers: HeaderStore

    def __init__(self, headers: HeaderStore) -> None:
        self._parts = []
        self._length = 0
        self._headers = headers

    @property
    def length(self) -> int:
        return self._length

    def append(self, content: object) -> bytes:
        """Append *content* and return the fragment as written."""
        fragment = _to_bytes(content)
        self._length += len(fragment)
        self._parts.append(fragment)
        self._headers.set("Content-Length", self._length)
        return fragment

    def replace(self, content: object) -> bytes:
        self._parts = []
        self._length = 0
        return self.append(content)

    def clear_content(self) -> None:
        # Length and Content-Length keep describing the discarded body.
        self._parts = []

    def current(self) -> bytes:
        if len(self._parts) > 1:
            self._parts = [b"".join(self._parts)]
        return self._parts[0] if self._parts else b""
