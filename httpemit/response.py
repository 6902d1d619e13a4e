from __future__ import annotations

from typing import TYPE_CHECKING

from httpemit.body import BodyBuffer
from httpemit.headers import HeaderStore
from httpemit.status import DEFAULT_REGISTRY, InvalidStatusCode, StatusRegistry

if TYPE_CHECKING:
    from httpemit.cookies import CookieJar
    from httpemit.request import Request


class Response:
    """HTTP response that buffers status, headers and body until sent.

    A Response belongs to exactly one request cycle. It borrows the
    request (only its method is read) and the cookie jar, and owns its
    headers and body.
    """

    __slots__ = ("request", "registry", "_status", "_headers", "_body", "_cookie_jar")

    request: Request | None
    registry: StatusRegistry
    _status: int
    _headers: HeaderStore
    _body: BodyBuffer
    _cookie_jar: CookieJar | None

    def __init__(
        self,
        request: Request | None = None,
        *,
        cookie_jar: CookieJar | None = None,
        registry: StatusRegistry = DEFAULT_REGISTRY,
    ) -> None:
        self.request = request
        self.registry = registry
        self._status = 200
        self._headers = HeaderStore()
        self._body = BodyBuffer(self._headers)
        self._cookie_jar = cookie_jar
        self.set_header("Content-Type", "text/html")

    # -- status ---------------------------------------------------------

    def get_status(self) -> int:
        return self._status

    def set_status(self, code: int | str) -> None:
        """Set the status code.

        Raises:
            InvalidStatusCode: *code* is not in the registry. The current
                status is left unchanged.
        """
        try:
            value = int(code)
        except (TypeError, ValueError):
            raise InvalidStatusCode(code) from None
        if not self.registry.is_valid(value):
            raise InvalidStatusCode(code)
        self._status = value

    # -- headers --------------------------------------------------------

    def get_header(self, name: str) -> str | None:
        return self._headers.get(name)

    def set_header(self, name: str, value: object) -> None:
        self._headers.set(name, value)

    def remove_header(self, name: str) -> None:
        self._headers.remove(name)

    def headers(self) -> list[tuple[str, str]]:
        return self._headers.all()

    # -- body -----------------------------------------------------------

    def get_body(self) -> bytes:
        return self._body.current()

    def set_body(self, content: object) -> bytes:
        return self._body.replace(content)

    def append_body(self, content: object) -> bytes:
        return self._body.append(content)

    write = append_body

    def clear_body_content(self) -> None:
        self._body.clear_content()

    @property
    def length(self) -> int:
        return self._body.length

    # -- cookies --------------------------------------------------------

    def bind_cookie_jar(self, jar: CookieJar) -> None:
        self._cookie_jar = jar

    def get_cookie_jar(self) -> CookieJar | None:
        return self._cookie_jar

    # -- helpers --------------------------------------------------------

    @property
    def method(self) -> str | None:
        return self.request.method if self.request is not None else None

    def can_have_body(self) -> bool:
        status = self._status
        return (status < 100 or status >= 200) and status != 204 and status != 304

    def __repr__(self) -> str:
        return f"<Response [{self._status}] length={self._body.length}>"
