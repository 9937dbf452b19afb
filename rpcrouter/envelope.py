"""JSON-RPC 2.0 envelope decoding and response encoding.

Responses are assembled from raw byte spans so handler results and client ids
reach the wire unchanged. Member order follows the JSON-RPC 2.0 examples:
``jsonrpc``, then ``result``/``error``, then ``id``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from rpcrouter.identifier import Identifier
from rpcrouter.utils.exceptions import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    InvalidRequest,
    ParseError,
    RpcError,
)
from rpcrouter.utils.jsontext import (
    WHITESPACE,
    first_char,
    parse_value,
    scan_array,
    scan_object,
    to_text,
)

JSONRPC_VERSION = "2.0"
RESERVED_METHOD_PREFIX = "rpc."

ERROR_MESSAGES: dict[int, str] = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    METHOD_NOT_FOUND: "Method not found",
    INTERNAL_ERROR: "Internal error",
}

_HEAD = b'{"jsonrpc":"2.0",'


class Token(Enum):
    """First significant token of a payload."""
    OBJECT = "{"
    ARRAY = "["
    OTHER = ""


@dataclass(frozen=True, slots=True)
class Request:
    """A validated request envelope; ``params`` is the raw JSON text or None."""

    jsonrpc: str
    id: Identifier
    method: str
    params: bytes | None = None

    @property
    def is_notification(self) -> bool:
        return not self.id.is_set()


def peek_token(payload: bytes | bytearray | memoryview | str) -> Token:
    """Classify a payload by its first significant character without parsing it."""
    try:
        char = first_char(to_text(payload))
    except ParseError:
        return Token.OTHER
    if char == "{":
        return Token.OBJECT
    if char == "[":
        return Token.ARRAY
    return Token.OTHER


def decode_request(payload: bytes | bytearray | memoryview | str) -> Request:
    """Decode and validate one request envelope.

    Raises:
        ParseError: the payload is not a single valid JSON value.
        InvalidIdentifier: ``id`` is present but not a string, number or null.
        InvalidRequest: the envelope rules are violated; carries the decoded id.
    """
    members = scan_object(to_text(payload))
    if members is None:
        raise InvalidRequest("request must be a JSON object")

    identifier = Identifier.unset()
    if "id" in members:
        identifier = Identifier.decode(members["id"][0])

    _, version = members.get("jsonrpc", (None, None))
    if not isinstance(version, str) or version != JSONRPC_VERSION:
        raise InvalidRequest("'jsonrpc' must be exactly '2.0'", identifier)

    _, method = members.get("method", (None, None))
    if not isinstance(method, str):
        raise InvalidRequest("'method' must be a string", identifier)
    if method.startswith(RESERVED_METHOD_PREFIX):
        raise InvalidRequest("'method' must not begin with 'rpc.'", identifier)

    params = None
    if "params" in members:
        params = members["params"][0].encode("utf-8")

    return Request(jsonrpc=JSONRPC_VERSION, id=identifier, method=method, params=params)


def split_batch(payload: bytes | bytearray | memoryview | str) -> list[bytes]:
    """Split a batch array into the raw bytes of each member.

    Raises:
        ParseError: the outer array is malformed.
    """
    return [member.encode("utf-8") for member in scan_array(to_text(payload))]


def _raw_result(result: Any) -> bytes:
    if isinstance(result, (bytes, bytearray, memoryview)):
        raw = bytes(result).strip(WHITESPACE.encode("ascii"))
        if not raw:
            return b"null"
        try:
            parse_value(raw.decode("utf-8"))
        except (UnicodeDecodeError, ParseError) as exc:
            raise ValueError(f"handler returned invalid JSON: {exc}") from exc
        return raw
    return json.dumps(result, ensure_ascii=False, separators=(",", ":"), allow_nan=False).encode("utf-8")


def encode_result(identifier: Identifier, result: Any) -> bytes:
    """Encode a success response.

    ``bytes`` results are raw JSON and are validated, not re-serialised; any
    other value is serialised with ``json``.

    Raises:
        ValueError: raw result is not valid JSON, or the value holds NaN/Infinity.
        TypeError: the value is not JSON serialisable.
    """
    return _HEAD + b'"result":' + _raw_result(result) + b',"id":' + identifier.encode() + b"}"


def encode_error(identifier: Identifier, code: int, message: str) -> bytes:
    """Encode an error response."""
    error = json.dumps({"code": code, "message": message}, ensure_ascii=False, separators=(",", ":"))
    return _HEAD + b'"error":' + error.encode("utf-8") + b',"id":' + identifier.encode() + b"}"


def encode_rpc_error(identifier: Identifier, exc: RpcError) -> bytes:
    return encode_error(identifier, exc.code, exc.message)


def encode_batch(members: Iterable[bytes]) -> bytes:
    """Join encoded responses into a JSON array, in the order given."""
    return b"[" + b",".join(members) + b"]"


PARSE_ERROR_RESPONSE = encode_error(Identifier.null(), PARSE_ERROR, ERROR_MESSAGES[PARSE_ERROR])
