from __future__ import annotations

import urllib.parse

METHOD_HEAD = "HEAD"


class Request:
    """Incoming request, reduced to what a response needs to know."""

    __slots__ = (
        "method",
        "path",
        "full_path",
        "query_params",
        "headers",
        "body",
    )

    method: str
    path: str
    full_path: str
    query_params: dict[str, str]
    headers: dict[str, str]
    body: bytes

    def __init__(
        self,
        *,
        method: str,
        path: str = "/",
        full_path: str | None = None,
        query_params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        self.method = method
        self.path = path
        self.full_path = full_path if full_path is not None else path
        self.query_params = query_params or {}
        self.headers = headers or {}
        self.body = body

    @classmethod
    def _from_raw(cls, raw_head: bytes, body: bytes = b"") -> Request:
        """Build a Request from the raw header block of an HTTP/1.x request.

        Raises:
            ValueError: the request line is malformed.
        """
        lines = raw_head.partition(b"\r\n\r\n")[0].split(b"\r\n")
        parts = lines[0].decode("latin-1").split(" ")
        if len(parts) != 3 or not parts[0] or not parts[2].startswith("HTTP/"):
            raise ValueError(f"malformed request line: {lines[0]!r}")
        method, path, _ = parts

        headers: dict[str, str] = {}
        for line in lines[1:]:
            if b":" in line:
                name, _, value = line.partition(b":")
                headers[name.decode("latin-1").strip().lower()] = value.decode("latin-1").strip()

        # Split path and query string
        full_path = path
        if "?" in path:
            path_part, _, query_string = path.partition("?")
            parsed_qs = urllib.parse.parse_qs(query_string)
            query_params = {k: v[0] for k, v in parsed_qs.items()}
        else:
            path_part = path
            query_params = {}

        return cls(
            method=method,
            path=path_part,
            full_path=full_path,
            query_params=query_params,
            headers=headers,
            body=body,
        )

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.full_path}>"
