"""
Exception hierarchy and error handling utilities for rpcrouter.

Provides:
- Router exceptions with error codes and categories
- Structured JSON-RPC errors that handlers raise to reach the wire verbatim
- Safe error message formatting (no sensitive data leak into logs)
- Exception classification for log records
"""

from __future__ import annotations

import asyncio
import json
import re
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from rpcrouter.identifier import Identifier


PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = 1000

RESERVED_CODE_MIN = -32768
RESERVED_CODE_MAX = -32000


class ErrorCategory(Enum):
    """Error categories for classification."""
    PARSE = "parse"
    INVALID_REQUEST = "invalid_request"
    METHOD_NOT_FOUND = "method_not_found"
    HANDLER = "handler"
    INTERNAL = "internal"
    REGISTRATION = "registration"
    VALIDATION = "validation"
    TIMEOUT = "timeout"


class RpcRouterError(Exception):
    """Base exception for all rpcrouter errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        category: ErrorCategory = ErrorCategory.INTERNAL,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class RpcError(RpcRouterError):
    """Structured JSON-RPC error.

    Handlers raise this (or a subclass) to have ``{"code", "message"}`` echoed
    verbatim in the error response.
    """

    def __init__(
        self,
        code: int,
        message: str,
        *,
        error_code: str = "RPC_ERROR",
        category: ErrorCategory = ErrorCategory.HANDLER,
        details: dict[str, Any] | None = None,
    ):
        if isinstance(code, bool) or not isinstance(code, int):
            raise TypeError(f"JSON-RPC error code must be an int, got {type(code).__name__}")
        if not isinstance(message, str):
            raise TypeError(f"JSON-RPC error message must be a str, got {type(message).__name__}")
        super().__init__(message, error_code=error_code, category=category, details=details)
        self.code = code

    def to_wire(self) -> dict[str, Any]:
        """Return the ``error`` member of a JSON-RPC response."""
        return {"code": self.code, "message": self.message}


class ParseError(RpcError):
    """Payload is not valid JSON, or not an object/array at the top level."""

    def __init__(self, reason: str = "invalid JSON"):
        super().__init__(
            PARSE_ERROR,
            "Parse error",
            error_code="PARSE_ERROR",
            category=ErrorCategory.PARSE,
            details={"reason": reason},
        )
        self.reason = reason


class InvalidRequest(RpcError):
    """Valid JSON that violates the request envelope rules.

    ``identifier`` holds whatever id could be recovered from the request so the
    error response can echo it.
    """

    def __init__(self, reason: str, identifier: Identifier | None = None):
        super().__init__(
            INVALID_REQUEST,
            "Invalid Request",
            error_code="INVALID_REQUEST",
            category=ErrorCategory.INVALID_REQUEST,
            details={"reason": reason},
        )
        self.reason = reason
        self.identifier = identifier


class InvalidIdentifier(InvalidRequest):
    """The ``id`` member is not a string, number or null."""

    def __init__(self, reason: str = "'id' must contain a string, number, or null if included"):
        super().__init__(reason)


class MethodNotFound(RpcError):
    """No handler is registered for the method."""

    def __init__(self, method: str):
        super().__init__(
            METHOD_NOT_FOUND,
            "Method not found",
            error_code="METHOD_NOT_FOUND",
            category=ErrorCategory.METHOD_NOT_FOUND,
            details={"method": method},
        )
        self.method = method


class InternalError(RpcError):
    """Handler failed without producing a structured error."""

    def __init__(self, code: int = INTERNAL_ERROR, message: str = "Internal error"):
        super().__init__(code, message, error_code="INTERNAL_ERROR", category=ErrorCategory.INTERNAL)


class RegistrationError(RpcRouterError):
    """Handler registration rejected."""

    def __init__(self, message: str, method: Any = None):
        details = {"method": method} if method is not None else {}
        super().__init__(message, error_code="REGISTRATION_ERROR", category=ErrorCategory.REGISTRATION, details=details)


class IdentifierConversionError(RpcRouterError):
    """Typed extraction requested from an identifier of the wrong shape."""

    def __init__(self, message: str, kind: str):
        super().__init__(
            message,
            error_code="IDENTIFIER_CONVERSION",
            category=ErrorCategory.VALIDATION,
            details={"kind": kind},
        )


def is_reserved_code(code: int) -> bool:
    """Return True when ``code`` falls in the JSON-RPC reserved range."""
    return RESERVED_CODE_MIN <= code <= RESERVED_CODE_MAX


_SENSITIVE_PATTERNS = [
    re.compile(r"(api[_-]?key|token|secret|password|auth)[=:]\s*['\"]?([^\s'\"]+)['\"]?", re.IGNORECASE),
    re.compile(r"bearer\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
    re.compile(r"[a-zA-Z0-9]{32,}"),
]


def sanitize_error_message(message: str, replacement: str = "[REDACTED]") -> str:
    """Remove sensitive information from error messages."""
    sanitized = message
    for pattern in _SENSITIVE_PATTERNS:
        sanitized = pattern.sub(replacement, sanitized)
    return sanitized


def classify_exception(exc: BaseException) -> tuple[str, ErrorCategory]:
    """Classify an exception and return (error_code, category) for logging."""
    if isinstance(exc, RpcRouterError):
        return exc.error_code, exc.category

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return "TIMEOUT", ErrorCategory.TIMEOUT

    if isinstance(exc, json.JSONDecodeError):
        return "JSON_PARSE_ERROR", ErrorCategory.VALIDATION

    if isinstance(exc, ValueError):
        return "INVALID_VALUE", ErrorCategory.VALIDATION

    if isinstance(exc, KeyError):
        return "MISSING_KEY", ErrorCategory.VALIDATION

    if isinstance(exc, TypeError):
        return "TYPE_ERROR", ErrorCategory.VALIDATION

    return "INTERNAL_ERROR", ErrorCategory.INTERNAL
