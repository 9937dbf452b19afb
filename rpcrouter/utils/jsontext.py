"""Span-preserving scanning of JSON text.

These helpers walk the top level of a document with ``JSONDecoder.raw_decode``
and hand back the raw text of each member so ids and params can be echoed
byte for byte. Numbers are never converted: the scanning decoder yields a
``JsonNumber`` holding the literal text, so digit count and precision never
limit what is accepted.
"""

from __future__ import annotations

import json
from typing import Any

from rpcrouter.utils.exceptions import ParseError

WHITESPACE = " \t\n\r"


class JsonNumber:
    """Unconverted JSON number literal."""

    __slots__ = ("text",)

    def __init__(self, text: str):
        self.text = text

    def __eq__(self, other: object) -> bool:
        return isinstance(other, JsonNumber) and other.text == self.text

    def __hash__(self) -> int:
        return hash(self.text)

    def __repr__(self) -> str:
        return f"JsonNumber({self.text})"


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


DECODER = json.JSONDecoder(
    parse_int=JsonNumber,
    parse_float=JsonNumber,
    parse_constant=_reject_constant,
)


def to_text(payload: bytes | bytearray | memoryview | str) -> str:
    """Decode a payload to text, mapping bad UTF-8 to a parse error."""
    if isinstance(payload, str):
        return payload
    try:
        return bytes(payload).decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"payload is not UTF-8: {exc.reason}") from exc


def skip_whitespace(text: str, idx: int) -> int:
    n = len(text)
    while idx < n and text[idx] in WHITESPACE:
        idx += 1
    return idx


def first_char(text: str) -> str | None:
    """Return the first significant character, or None for blank text."""
    idx = skip_whitespace(text, 0)
    return text[idx] if idx < len(text) else None


def _value_at(text: str, idx: int) -> tuple[Any, int]:
    try:
        return DECODER.raw_decode(text, idx)
    except (ValueError, RecursionError) as exc:
        raise ParseError(str(exc)) from exc


def _expect_end(text: str, idx: int) -> None:
    if skip_whitespace(text, idx) != len(text):
        raise ParseError(f"extra data at position {idx}")


def parse_value(text: str) -> Any:
    """Parse text that must hold exactly one JSON value."""
    value, end = _value_at(text, skip_whitespace(text, 0))
    _expect_end(text, end)
    return value


def scan_object(text: str) -> dict[str, tuple[str, Any]] | None:
    """Scan a top-level object into ``{name: (raw_text, value)}``.

    Returns None when the text is valid JSON but not an object. Later
    duplicates of a member replace earlier ones.
    """
    n = len(text)
    idx = skip_whitespace(text, 0)
    if idx >= n or text[idx] != "{":
        parse_value(text)
        return None

    members: dict[str, tuple[str, Any]] = {}
    idx = skip_whitespace(text, idx + 1)
    if idx < n and text[idx] == "}":
        _expect_end(text, idx + 1)
        return members

    while True:
        if idx >= n or text[idx] != '"':
            raise ParseError(f"expecting property name at position {idx}")
        name, idx = _value_at(text, idx)
        idx = skip_whitespace(text, idx)
        if idx >= n or text[idx] != ":":
            raise ParseError(f"expecting ':' at position {idx}")
        start = skip_whitespace(text, idx + 1)
        value, idx = _value_at(text, start)
        members[name] = (text[start:idx], value)
        idx = skip_whitespace(text, idx)
        if idx < n and text[idx] == ",":
            idx = skip_whitespace(text, idx + 1)
            continue
        if idx < n and text[idx] == "}":
            _expect_end(text, idx + 1)
            return members
        raise ParseError(f"expecting ',' or '}}' at position {idx}")


def scan_array(text: str) -> list[str]:
    """Scan a top-level array into the raw text of each element."""
    n = len(text)
    idx = skip_whitespace(text, 0)
    if idx >= n or text[idx] != "[":
        raise ParseError("expecting '['")

    elements: list[str] = []
    idx = skip_whitespace(text, idx + 1)
    if idx < n and text[idx] == "]":
        _expect_end(text, idx + 1)
        return elements

    while True:
        start = idx
        _, idx = _value_at(text, start)
        elements.append(text[start:idx])
        idx = skip_whitespace(text, idx)
        if idx < n and text[idx] == ",":
            idx = skip_whitespace(text, idx + 1)
            continue
        if idx < n and text[idx] == "]":
            _expect_end(text, idx + 1)
            return elements
        raise ParseError(f"expecting ',' or ']' at position {idx}")
