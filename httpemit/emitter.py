from __future__ import annotations

from httpemit._logging import _log
from httpemit.finalize import finalize
from httpemit.response import Response
from httpemit.transport import Transport, detect_transport


class ResponseEmitter:
    """Finalizes a Response and writes it to a transport.

    Order on the wire: status line, headers (insertion order), cookies,
    flush, then the body if the status allows one.
    """

    def __init__(self, transport: Transport | None = None) -> None:
        self.transport: Transport = transport if transport is not None else detect_transport()

    def send(self, response: Response) -> None:
        if not self.transport.headers_sent():
            self._send_headers(response)
        if response.can_have_body():
            self.transport.write_body(response.get_body())

    def _send_headers(self, response: Response) -> None:
        transport = self.transport

        finalize(response)

        status = response.get_status()
        phrase = response.registry.reason_phrase(status)
        if phrase is None:
            _log(f"no reason phrase for status {status}, sending empty status text", tag="emit")
            phrase = ""
        transport.write_status(phrase)

        for name, value in response.headers():
            transport.write_header(f"{name}: {value}")

        jar = response.get_cookie_jar()
        if jar is not None:
            for cookie in jar.get_response_cookies().values():
                transport.set_cookie(
                    cookie.get_name(),
                    cookie.get_value(),
                    cookie.get_expires(),
                    cookie.get_path(),
                    cookie.get_domain(),
                    cookie.get_secure(),
                    cookie.get_http_only(),
                )

        transport.flush()


def send(response: Response, transport: Transport | None = None) -> None:
    """Emit *response* through a one-off emitter."""
    ResponseEmitter(transport).send(response)
