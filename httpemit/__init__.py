from httpemit.cookies import Cookie as Cookie
from httpemit.cookies import CookieJar as CookieJar
from httpemit.emitter import ResponseEmitter as ResponseEmitter
from httpemit.finalize import finalize as finalize
from httpemit.request import Request as Request
from httpemit.response import Response as Response
from httpemit.status import DEFAULT_REGISTRY as DEFAULT_REGISTRY
from httpemit.status import InvalidStatusCode as InvalidStatusCode
from httpemit.status import StatusRegistry as StatusRegistry
from httpemit.transport import CgiTransport as CgiTransport
from httpemit.transport import HttpTransport as HttpTransport
from httpemit.transport import detect_transport as detect_transport

__all__ = [
    "DEFAULT_REGISTRY",
    "CgiTransport",
    "Cookie",
    "CookieJar",
    "HttpTransport",
    "InvalidStatusCode",
    "Request",
    "Response",
    "ResponseEmitter",
    "StatusRegistry",
    "detect_transport",
    "finalize",
]
