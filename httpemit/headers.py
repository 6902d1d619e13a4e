from __future__ import annotations


class HeaderStore:
    """Single-valued response headers, last write wins.

    Names are kept exactly as supplied; iteration follows first insertion.
    """

    __slots__ = ("_headers",)

    _headers: dict[str, str]

    def __init__(self) -> None:
        self._headers = {}

    def set(self, name: str, value: object) -> None:
        self._headers[name] = str(value)

    def get(self, name: str) -> str | None:
        return self._headers.get(name)

    def remove(self, name: str) -> None:
        self._headers.pop(name, None)

    def all(self) -> list[tuple[str, str]]:
        return list(self._headers.items())

    def __contains__(self, name: object) -> bool:
        return name in self._headers

    def __len__(self) -> int:
        return len(self._headers)
