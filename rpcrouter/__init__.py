"""
rpcrouter - JSON-RPC 2.0 message router
"""

__version__ = "0.1.0"

from rpcrouter.identifier import Identifier, IdentifierKind
from rpcrouter.envelope import (
    Request,
    Token,
    decode_request,
    encode_batch,
    encode_error,
    encode_result,
    peek_token,
    split_batch,
)
from rpcrouter.context import RequestContext
from rpcrouter.dispatch_table import DispatchTable, FrozenDispatchTable, Handler
from rpcrouter.router import Router
from rpcrouter.config import RouterConfig
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
)

__all__ = [
    "__version__",
    "Identifier",
    "IdentifierKind",
    "Request",
    "Token",
    "decode_request",
    "encode_batch",
    "encode_error",
    "encode_result",
    "peek_token",
    "split_batch",
    "RequestContext",
    "DispatchTable",
    "FrozenDispatchTable",
    "Handler",
    "Router",
    "RouterConfig",
    "RpcRouterError",
    "RpcError",
    "ParseError",
    "InvalidRequest",
    "InvalidIdentifier",
    "MethodNotFound",
    "InternalError",
    "RegistrationError",
    "IdentifierConversionError",
]
