"""JSON-RPC request identifiers.

An identifier keeps the exact JSON text the client sent so the response echoes
it byte for byte: ``1.0`` stays ``1.0`` and ``"\\u0041"`` keeps its escape.
Numbers are never held as floats internally.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from rpcrouter.utils.exceptions import (
    IdentifierConversionError,
    InvalidIdentifier,
    ParseError,
)
from rpcrouter.utils.jsontext import WHITESPACE, JsonNumber, parse_value, to_text

_NULL = b"null"


class IdentifierKind(Enum):
    """Shape of an identifier."""
    UNSET = "unset"
    NULL = "null"
    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True, slots=True)
class Identifier:
    """Request/response correlation value: string, number, null, or absent."""

    raw: bytes
    kind: IdentifierKind
    value: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def unset(cls) -> Identifier:
        """Identifier of a request that carried no ``id`` member."""
        return cls(b"", IdentifierKind.UNSET)

    @classmethod
    def null(cls) -> Identifier:
        return cls(_NULL, IdentifierKind.NULL)

    @classmethod
    def decode(cls, raw: bytes | bytearray | memoryview | str) -> Identifier:
        """Decode the raw JSON text of an ``id`` member.

        Raises:
            InvalidIdentifier: the text is not a single JSON string, number or null.
        """
        try:
            text = to_text(raw).strip(WHITESPACE)
            value = parse_value(text)
        except ParseError as exc:
            raise InvalidIdentifier(f"'id' is not valid JSON: {exc.reason}") from exc

        if value is None:
            return cls.null()
        if isinstance(value, str):
            return cls(text.encode("utf-8"), IdentifierKind.STRING, value)
        if not isinstance(value, JsonNumber):
            raise InvalidIdentifier()
        return cls(text.encode("utf-8"), IdentifierKind.NUMBER, Decimal(value.text))

    @classmethod
    def from_value(cls, value: str | int | float | None) -> Identifier:
        """Build an identifier from a Python scalar."""
        if value is None:
            return cls.null()
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise InvalidIdentifier(f"unsupported id type: {type(value).__name__}")
        try:
            text = json.dumps(value, ensure_ascii=False, allow_nan=False)
        except ValueError as exc:
            raise InvalidIdentifier(str(exc)) from exc
        return cls.decode(text)

    def encode(self) -> bytes:
        """Return the JSON text to place in a response; absent ids encode as null."""
        if self.kind is IdentifierKind.UNSET:
            return _NULL
        return self.raw

    def is_set(self) -> bool:
        """False for notifications (no ``id`` member at all)."""
        return self.kind is not IdentifierKind.UNSET

    def is_null(self) -> bool:
        return self.kind is IdentifierKind.NULL

    def as_int(self) -> int:
        number = self._number("int")
        if number != number.to_integral_value():
            raise IdentifierConversionError(f"id {self.raw.decode('utf-8')} is not integral", self.kind.value)
        return int(number)

    def as_float(self) -> float:
        return float(self._number("float"))

    def as_str(self) -> str:
        """Return the string value, or a number's original text."""
        if self.kind is IdentifierKind.STRING:
            return self.value
        if self.kind is IdentifierKind.NUMBER:
            return self.raw.decode("utf-8")
        raise IdentifierConversionError(f"cannot read {self.kind.value} id as str", self.kind.value)

    def _number(self, target: str) -> Decimal:
        if self.kind is not IdentifierKind.NUMBER:
            raise IdentifierConversionError(f"cannot read {self.kind.value} id as {target}", self.kind.value)
        return self.value

    def __str__(self) -> str:
        return self.encode().decode("utf-8")

    def __repr__(self) -> str:
        if self.kind is IdentifierKind.UNSET:
            return "Identifier(<unset>)"
        return f"Identifier({self.raw.decode('utf-8')})"
