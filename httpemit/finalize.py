from __future__ import annotations

from httpemit.request import METHOD_HEAD
from httpemit.response import Response

BODILESS_STATUSES: frozenset[int] = frozenset({204, 304})


def finalize(response: Response, method: str | None = None) -> None:
    """Apply HTTP-mandated adjustments right before emission.

    Bodiless statuses (204, 304) lose their body and Content-Type. A HEAD
    response loses only its body content; its headers, Content-Length
    included, still describe what a GET would have carried. Safe to call
    more than once.
    """
    if method is None:
        method = response.method

    if response.get_status() in BODILESS_STATUSES:
        response.set_body(b"")
        response.remove_header("Content-Type")

    # Must run after the status step and must not touch headers.
    if method == METHOD_HEAD:
        response.clear_body_content()
