from __future__ import annotations

import sys


def _log(msg: str, *, tag: str = "httpemit") -> None:
    """Write a log line to stderr."""
    print(f"[{tag}] {msg}", file=sys.stderr, flush=True)
