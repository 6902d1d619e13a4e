from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Cookie:
    """A cookie queued for the outgoing response."""

    name: str
    value: str
    expires: int = 0  # Unix timestamp, 0 for a session cookie
    path: str = "/"
    domain: str = ""
    secure: bool = False
    http_only: bool = False

    def get_name(self) -> str:
        return self.name

    def get_value(self) -> str:
        return self.value

    def get_expires(self) -> int:
        return self.expires

    def get_path(self) -> str:
        return self.path

    def get_domain(self) -> str:
        return self.domain

    def get_secure(self) -> bool:
        return self.secure

    def get_http_only(self) -> bool:
        return self.http_only


class CookieJar:
    """Cookies to attach to a response, keyed by name."""

    def __init__(self) -> None:
        self._response_cookies: dict[str, Cookie] = {}

    def set_cookie(
        self,
        name: str,
        value: str,
        expires: int = 0,
        path: str = "/",
        domain: str = "",
        secure: bool = False,
        http_only: bool = False,
    ) -> Cookie:
        cookie = Cookie(name, value, expires, path, domain, secure, http_only)
        self._response_cookies[name] = cookie
        return cookie

    def delete_cookie(self, name: str, path: str = "/", domain: str = "") -> Cookie:
        """Queue an already-expired cookie so the client drops *name*."""
        # Any past timestamp works; 1 keeps it distinct from a session cookie.
        return self.set_cookie(name, "", expires=1, path=path, domain=domain)

    def get_response_cookies(self) -> dict[str, Cookie]:
        return dict(self._response_cookies)
