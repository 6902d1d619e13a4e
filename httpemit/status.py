from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType


_REASON_PHRASES: dict[int, str] = {
    # Informational 1xx
    100: "100 Continue",
    101: "101 Switching Protocols",
    # Successful 2xx
    200: "200 OK",
    201: "201 Created",
    202: "202 Accepted",
    203: "203 Non-Authoritative Information",
    204: "204 No Content",
    205: "205 Reset Content",
    206: "206 Partial Content",
    # Redirection 3xx
    300: "300 Multiple Choices",
    301: "301 Moved Permanently",
    302: "302 Found",
    303: "303 See Other",
    304: "304 Not Modified",
    305: "305 Use Proxy",
    306: "306 (Unused)",
    307: "307 Temporary Redirect",
    # Client Error 4xx
    400: "400 Bad Request",
    401: "401 Unauthorized",
    402: "402 Payment Required",
    403: "403 Forbidden",
    404: "404 Not Found",
    405: "405 Method Not Allowed",
    406: "406 Not Acceptable",
    407: "407 Proxy Authentication Required",
    408: "408 Request Timeout",
    409: "409 Conflict",
    410: "410 Gone",
    411: "411 Length Required",
    412: "412 Precondition Failed",
    413: "413 Request Entity Too Large",
    414: "414 Request-URI Too Long",
    415: "415 Unsupported Media Type",
    416: "416 Requested Range Not Satisfiable",
    417: "417 Expectation Failed",
    # Server Error 5xx
    500: "500 Internal Server Error",
    501: "501 Not Implemented",
    502: "502 Bad Gateway",
    503: "503 Service Unavailable",
    504: "504 Gateway Timeout",
    505: "505 HTTP Version Not Supported",
}


class InvalidStatusCode(ValueError):
    """Raised when a status code is not in the registry."""

    def __init__(self, code: object) -> None:
        self.code = code
        super().__init__(
            f'Cannot set Response status. Provided status code "{code}" '
            "is not a valid HTTP response code."
        )


class StatusRegistry(Mapping[int, str]):
    """Read-only lookup of status codes to canonical reason phrases.

    Phrases carry the code itself (``"404 Not Found"``) so they can be
    dropped into a status line as-is.
    """

    __slots__ = ("_phrases",)

    def __init__(self, phrases: Mapping[int, str]) -> None:
        self._phrases: Mapping[int, str] = MappingProxyType(dict(phrases))

    def __getitem__(self, code: int) -> str:
        return self._phrases[code]

    def __iter__(self) -> Iterator[int]:
        return iter(self._phrases)

    def __len__(self) -> int:
        return len(self._phrases)

    def is_valid(self, code: int) -> bool:
        return code in self._phrases

    def reason_phrase(self, code: int) -> str | None:
        """Return the phrase for *code*, or None if the code is unknown."""
        return self._phrases.get(code)


DEFAULT_REGISTRY = StatusRegistry(_REASON_PHRASES)
