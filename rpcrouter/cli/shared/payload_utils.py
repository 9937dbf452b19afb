"""Payload input helpers shared by CLI commands."""

from __future__ import annotations

import sys
from pathlib import Path


def read_payload(arg: str) -> bytes:
    """Resolve a PAYLOAD argument: ``-`` for stdin, ``@path`` for a file, else the literal text."""
    if arg == "-":
        return sys.stdin.buffer.read()
    if arg.startswith("@"):
        return Path(arg[1:]).expanduser().read_bytes()
    return arg.encode("utf-8")


def preview(raw: bytes | None, limit: int = 60) -> str:
    """Shorten raw JSON for table cells."""
    if raw is None:
        return "-"
    text = raw.decode("utf-8", errors="replace")
    return text if len(text) <= limit else text[: limit - 3] + "..."
