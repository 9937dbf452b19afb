"""JSON-RPC 2.0 request router.

``Router.serve`` takes raw request bytes (one request or a batch) and returns
raw response bytes. Every per-request failure resolves into an error response;
nothing short of cancellation escapes ``serve``.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Sequence

from loguru import logger

from rpcrouter.config.schema import RouterConfig
from rpcrouter.context import RequestContext
from rpcrouter.dispatch_table import DispatchTable, FrozenDispatchTable, Handler
from rpcrouter.envelope import (
    Request,
    Token,
    decode_request,
    encode_batch,
    encode_result,
    peek_token,
    split_batch,
)
from rpcrouter.error_boundary import (
    invalid_request_response,
    method_not_found_response,
    parse_error_response,
    structured_error_response,
    unhandled_exception_response,
)
from rpcrouter.utils.exceptions import InvalidRequest, ParseError, RegistrationError, RpcError

Payload = bytes | bytearray | memoryview | str


class Router:
    """Routes JSON-RPC requests to registered handlers.

    Handlers are registered at startup; the first ``serve`` call freezes the
    dispatch table and later registrations raise ``RegistrationError``.

    Handlers may be coroutine functions or plain functions. Plain functions
    run inline on the event loop, so sync handlers in a batch execute one
    after another; offload blocking work with ``asyncio.to_thread``.

    Cancelling the task awaiting ``serve`` propagates ``CancelledError``. A
    ``CancelledError`` raised by a handler while its task is not being
    cancelled is treated like any other unhandled failure.
    """

    def __init__(self, config: RouterConfig | None = None, *, table: DispatchTable | None = None):
        self.config = config or RouterConfig()
        self._table = table if table is not None else DispatchTable()
        self._frozen: FrozenDispatchTable | None = None

    def register(self, method: str, handler: Handler) -> None:
        if self._frozen is not None:
            raise RegistrationError("router is serving; register handlers before the first request", method)
        self._table.register(method, handler)
        logger.debug("RPC handler registered: {}", method)

    def method(self, name: str | None = None) -> Callable[[Handler], Handler]:
        """Decorator form of ``register``; defaults to the function name."""

        def decorator(handler: Handler) -> Handler:
            self.register(name or handler.__name__, handler)
            return handler

        return decorator

    def freeze(self) -> FrozenDispatchTable:
        if self._frozen is None:
            self._frozen = self._table.freeze()
            logger.debug("RPC dispatch table frozen with {} method(s)", len(self._frozen))
        return self._frozen

    def methods(self) -> list[str]:
        return self._table.methods()

    async def serve(self, ctx: RequestContext | None, payload: Payload) -> bytes:
        """Handle one request or a batch and return the encoded response.

        Returns ``b""`` when there is nothing to send back (notifications with
        ``suppress_notifications`` enabled).
        """
        ctx = ctx if ctx is not None else RequestContext()
        token = peek_token(payload)
        if token is Token.OBJECT:
            return await self.serve_single(ctx, payload)
        if token is Token.ARRAY:
            try:
                members = split_batch(payload)
            except ParseError as exc:
                return parse_error_response(exc=exc, log_debug=logger.debug)
            return await self.serve_batch(ctx, members)
        return parse_error_response(exc=None, log_debug=logger.debug)

    async def serve_single(self, ctx: RequestContext, payload: Payload) -> bytes:
        response = await self._serve_member(ctx, payload, self.freeze())
        return response if response is not None else b""

    async def serve_batch(self, ctx: RequestContext, members: Sequence[Payload]) -> bytes:
        """Run every member concurrently; responses keep the input order."""
        if not members:
            return invalid_request_response(exc=InvalidRequest("empty batch"), log_debug=logger.debug)

        table = self.freeze()
        limit = self.config.max_batch_concurrency
        semaphore = asyncio.Semaphore(limit) if limit else None

        async def _run(member: Payload) -> bytes | None:
            if semaphore is None:
                return await self._serve_member(ctx, member, table)
            async with semaphore:
                return await self._serve_member(ctx, member, table)

        logger.debug("RPC batch of {} member(s)", len(members))
        responses = await asyncio.gather(*(_run(member) for member in members))
        kept = [response for response in responses if response is not None]
        if not kept:
            return b""
        return encode_batch(kept)

    async def _serve_member(self, ctx: RequestContext, payload: Payload, table: FrozenDispatchTable) -> bytes | None:
        try:
            request = decode_request(payload)
        except InvalidRequest as exc:
            return invalid_request_response(exc=exc, log_debug=logger.debug)
        except ParseError as exc:
            return parse_error_response(exc=exc, log_debug=logger.debug)

        handler = table.lookup(request.method)
        if handler is None:
            response = method_not_found_response(
                identifier=request.id,
                method=request.method,
                log_debug=logger.debug,
            )
        else:
            response = await self._invoke(ctx, request, handler)

        if request.is_notification and self.config.suppress_notifications:
            logger.debug("RPC notification {} answered silently", request.method)
            return None
        return response

    async def _invoke(self, ctx: RequestContext, request: Request, handler: Handler) -> bytes:
        try:
            outcome = handler(ctx, request.id, request.method, request.params)
            result: Any = await outcome if inspect.isawaitable(outcome) else outcome
            return encode_result(request.id, result)
        except RpcError as exc:
            return structured_error_response(
                identifier=request.id,
                method=request.method,
                exc=exc,
                log_warning=logger.warning,
            )
        except asyncio.CancelledError as exc:
            task = asyncio.current_task()
            if task is not None and task.cancelling():
                raise
            # Raised by the handler itself (e.g. awaiting a future someone else cancelled).
            return unhandled_exception_response(
                identifier=request.id,
                method=request.method,
                exc=exc,
                log_exception=logger.exception,
                internal_code=self.config.internal_error_code,
                internal_message=self.config.internal_error_message,
            )
        except Exception as exc:
            return unhandled_exception_response(
                identifier=request.id,
                method=request.method,
                exc=exc,
                log_exception=logger.exception,
                internal_code=self.config.internal_error_code,
                internal_message=self.config.internal_error_message,
            )
