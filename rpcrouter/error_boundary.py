"""Error-boundary helpers that turn per-request failures into response bytes."""

from __future__ import annotations

from typing import Any, Callable

from rpcrouter.envelope import PARSE_ERROR_RESPONSE, encode_rpc_error
from rpcrouter.identifier import Identifier
from rpcrouter.utils.exceptions import (
    InternalError,
    InvalidRequest,
    MethodNotFound,
    ParseError,
    RpcError,
    classify_exception,
    sanitize_error_message,
)

LogCallable = Callable[..., None]


def parse_error_response(
    *,
    exc: ParseError | None,
    log_debug: LogCallable,
) -> bytes:
    """Build the parse-error response; the id is always null."""
    log_debug("RPC parse error: {}", exc.reason if exc is not None else "not an object or array")
    return PARSE_ERROR_RESPONSE


def invalid_request_response(
    *,
    exc: InvalidRequest,
    log_debug: LogCallable,
) -> bytes:
    """Build an invalid-request response echoing whatever id was recovered."""
    identifier = exc.identifier if exc.identifier is not None else Identifier.null()
    log_debug("RPC invalid request id={}: {}", identifier, exc.reason)
    return encode_rpc_error(identifier, exc)


def method_not_found_response(
    *,
    identifier: Identifier,
    method: str,
    log_debug: LogCallable,
) -> bytes:
    """Build the standard unknown-method response."""
    log_debug("RPC unknown method {} id={}", method, identifier)
    return encode_rpc_error(identifier, MethodNotFound(method))


def structured_error_response(
    *,
    identifier: Identifier,
    method: str,
    exc: RpcError,
    log_warning: LogCallable,
) -> bytes:
    """Echo a handler's structured error verbatim."""
    log_warning("RPC method {} failed with {}: {}", method, exc.code, sanitize_error_message(exc.message))
    return encode_rpc_error(identifier, exc)


def unhandled_exception_response(
    *,
    identifier: Identifier,
    method: str,
    exc: BaseException,
    log_exception: LogCallable,
    internal_code: int,
    internal_message: str,
) -> bytes:
    """Map an unexpected handler failure to the internal error; details stay in the log."""
    code, category = classify_exception(exc)
    sanitized = sanitize_error_message(str(exc))
    log_exception("RPC method {} failed with [{}/{}]: {}", method, code, category.value, sanitized)
    return encode_rpc_error(identifier, InternalError(internal_code, internal_message))


def describe_failure(exc: BaseException) -> dict[str, Any]:
    """Summarise an exception for CLI and log output."""
    code, category = classify_exception(exc)
    return {"error_code": code, "category": category.value, "message": sanitize_error_message(str(exc))}
