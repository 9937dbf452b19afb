"""Utility functions for rpcrouter."""

from rpcrouter.utils.exceptions import (
    RpcRouterError,
    RpcError,
    ParseError,
    InvalidRequest,
    InvalidIdentifier,
    MethodNotFound,
    InternalError,
    RegistrationError,
    IdentifierConversionError,
    ErrorCategory,
    classify_exception,
    sanitize_error_message,
)

__all__ = [
    "RpcRouterError",
    "RpcError",
    "ParseError",
    "InvalidRequest",
    "InvalidIdentifier",
    "MethodNotFound",
    "InternalError",
    "RegistrationError",
    "IdentifierConversionError",
    "ErrorCategory",
    "classify_exception",
    "sanitize_error_message",
]
