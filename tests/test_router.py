"""Tests for rpcrouter.router single-request handling."""

from __future__ import annotations

import asyncio
import json

import pytest

from rpcrouter.context import RequestContext
from rpcrouter.router import Router
from rpcrouter.utils.exceptions import RegistrationError, RpcError


def _sum(ctx, identifier, method, params):
    return sum(json.loads(params))


async def _echo(ctx, identifier, method, params):
    return params


def _boom(ctx, identifier, method, params):
    raise ValueError("db password=hunter2 unreachable")


@pytest.mark.asyncio
async def test_sum_scenario(make_router):
    router = make_router({"sum": _sum})
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"sum","params":[1,2],"id":1}')
    assert out == b'{"jsonrpc":"2.0","result":3,"id":1}'


@pytest.mark.asyncio
async def test_wrong_version_scenario(make_router):
    router = make_router({"x": _echo})
    out = await router.serve(None, b'{"jsonrpc":"1.0","method":"x","id":5}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":5}'


@pytest.mark.asyncio
async def test_missing_version_is_invalid_request(make_router):
    out = await make_router({"x": _echo}).serve(None, b'{"method":"x","id":"a"}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":"a"}'


@pytest.mark.asyncio
async def test_not_json_scenario(make_router):
    out = await make_router().serve(None, b"not json")
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32700,"message":"Parse error"},"id":null}'


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [b'"string"', b"42", b"", b"   ", b"null", b"\xff", b'{"jsonrpc":"2.0",'])
async def test_parse_errors_have_null_id(make_router, payload):
    out = await make_router().serve(None, payload)
    assert json.loads(out) == {"jsonrpc": "2.0", "error": {"code": -32700, "message": "Parse error"}, "id": None}


@pytest.mark.asyncio
async def test_reserved_prefix_is_invalid_request(make_router):
    router = make_router({"discover": _echo})
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"rpc.discover","id":9}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":9}'


def test_reserved_prefix_cannot_be_registered():
    with pytest.raises(RegistrationError):
        Router().register("rpc.discover", _echo)


@pytest.mark.asyncio
async def test_unregistered_method(make_router):
    out = await make_router({"sum": _sum}).serve(None, b'{"jsonrpc":"2.0","method":"nope","id":"abc"}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32601,"message":"Method not found"},"id":"abc"}'


@pytest.mark.asyncio
async def test_invalid_identifier_answers_with_null_id(make_router):
    out = await make_router({"x": _echo}).serve(None, b'{"jsonrpc":"2.0","method":"x","id":{"a":1}}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":null}'


@pytest.mark.asyncio
@pytest.mark.parametrize("raw_id", [b"1.0", b"1E+3", b'"\\u00e9"', b"-0", b"null", b"12345678901234567890123"])
async def test_id_echoed_verbatim(make_router, raw_id):
    out = await make_router({"echo": _echo}).serve(
        None, b'{"jsonrpc":"2.0","method":"echo","params":true,"id":' + raw_id + b"}"
    )
    assert out == b'{"jsonrpc":"2.0","result":true,"id":' + raw_id + b"}"


@pytest.mark.asyncio
async def test_params_passed_through_raw(make_router):
    seen = []

    def _capture(ctx, identifier, method, params):
        seen.append((identifier.as_str(), method, params))
        return None

    router = make_router({"cap": _capture})
    await router.serve(None, b'{"jsonrpc":"2.0","method":"cap","params":{"a": 1.0},"id":"q"}')
    await router.serve(None, b'{"jsonrpc":"2.0","method":"cap","id":2}')
    assert seen == [("q", "cap", b'{"a": 1.0}'), ("2", "cap", None)]


_HUGE = b"9" * 5000


@pytest.mark.asyncio
async def test_huge_integer_params_pass_through(make_router):
    params = b"[" + _HUGE + b", 1." + _HUGE + b"e-9]"
    out = await make_router({"echo": _echo}).serve(
        None, b'{"jsonrpc":"2.0","method":"echo","params":' + params + b',"id":1}'
    )
    assert out == b'{"jsonrpc":"2.0","result":' + params + b',"id":1}'


@pytest.mark.asyncio
async def test_huge_integer_id_is_echoed(make_router):
    seen = []

    def _capture(ctx, identifier, method, params):
        seen.append(identifier)
        return None

    out = await make_router({"cap": _capture}).serve(
        None, b'{"jsonrpc":"2.0","method":"cap","id":' + _HUGE + b"}"
    )
    assert out == b'{"jsonrpc":"2.0","result":null,"id":' + _HUGE + b"}"
    assert seen[0].as_str() == _HUGE.decode("ascii")


@pytest.mark.asyncio
async def test_numeric_version_is_not_accepted(make_router):
    out = await make_router({"echo": _echo}).serve(None, b'{"jsonrpc":2.0,"method":"echo","id":1}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":1}'


@pytest.mark.asyncio
async def test_raw_result_is_not_reformatted(make_router):
    router = make_router({"raw": lambda ctx, i, m, p: b'{"x": 1.0}'})
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"raw","id":1}')
    assert out == b'{"jsonrpc":"2.0","result":{"x": 1.0},"id":1}'


@pytest.mark.asyncio
async def test_structured_error_is_echoed_verbatim(make_router):
    def _invalid_params(ctx, identifier, method, params):
        raise RpcError(-32602, "Invalid params")

    out = await make_router({"m": _invalid_params}).serve(None, b'{"jsonrpc":"2.0","method":"m","id":3}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32602,"message":"Invalid params"},"id":3}'


@pytest.mark.asyncio
async def test_structured_error_from_async_handler(make_router):
    class QuotaExceeded(RpcError):
        def __init__(self):
            super().__init__(429, "Quota exceeded")

    async def _limited(ctx, identifier, method, params):
        raise QuotaExceeded()

    out = await make_router({"m": _limited}).serve(None, b'{"jsonrpc":"2.0","method":"m","id":3}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":429,"message":"Quota exceeded"},"id":3}'


@pytest.mark.asyncio
async def test_unstructured_failure_maps_to_internal_error(make_router):
    out = await make_router({"m": _boom}).serve(None, b'{"jsonrpc":"2.0","method":"m","id":3}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":1000,"message":"Internal error"},"id":3}'
    assert b"hunter2" not in out


@pytest.mark.asyncio
async def test_invalid_raw_result_maps_to_internal_error(make_router):
    router = make_router({"m": lambda ctx, i, m, p: b"{not json"})
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"m","id":3}')
    assert json.loads(out)["error"]["code"] == 1000


@pytest.mark.asyncio
async def test_internal_error_code_is_configurable(make_router):
    router = make_router({"m": _boom}, internal_error_code=-1, internal_error_message="Server fault")
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"m","id":3}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-1,"message":"Server fault"},"id":3}'


@pytest.mark.asyncio
async def test_notification_answered_by_default(make_router):
    out = await make_router({"sum": _sum}).serve(None, b'{"jsonrpc":"2.0","method":"sum","params":[1]}')
    assert out == b'{"jsonrpc":"2.0","result":1,"id":null}'


@pytest.mark.asyncio
async def test_notification_suppressed_still_runs(make_router):
    calls = []

    def _record(ctx, identifier, method, params):
        calls.append(method)
        raise RuntimeError("ignored")

    router = make_router({"note": _record}, suppress_notifications=True)
    assert await router.serve(None, b'{"jsonrpc":"2.0","method":"note"}') == b""
    assert calls == ["note"]


@pytest.mark.asyncio
async def test_suppression_keeps_explicit_null_id_and_invalid_requests(make_router):
    router = make_router({"note": _echo}, suppress_notifications=True)
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"note","id":null}')
    assert out == b'{"jsonrpc":"2.0","result":null,"id":null}'
    out = await router.serve(None, b'{"jsonrpc":"1.0","method":"note"}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":-32600,"message":"Invalid Request"},"id":null}'


@pytest.mark.asyncio
async def test_context_is_threaded_through(make_router):
    seen = []

    async def _ctx(ctx, identifier, method, params):
        seen.append(ctx)
        return ctx.metadata.get("user")

    router = make_router({"who": _ctx})
    ctx = RequestContext(metadata={"user": "ana"})
    out = await router.serve(ctx, '{"jsonrpc":"2.0","method":"who","id":1}')
    assert out == b'{"jsonrpc":"2.0","result":"ana","id":1}'
    assert seen[0] is ctx

    await router.serve(None, b'{"jsonrpc":"2.0","method":"who","id":2}')
    assert isinstance(seen[1], RequestContext)


@pytest.mark.asyncio
async def test_cancellation_propagates_to_handler():
    started = asyncio.Event()
    cancelled = []

    async def _slow(ctx, identifier, method, params):
        started.set()
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(method)
            raise

    router = Router()
    router.register("slow", _slow)
    task = asyncio.create_task(router.serve(None, b'{"jsonrpc":"2.0","method":"slow","id":1}'))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert cancelled == ["slow"]


async def _awaits_cancelled_future(ctx, identifier, method, params):
    future = asyncio.get_running_loop().create_future()
    future.cancel()
    await future


@pytest.mark.asyncio
async def test_handler_raised_cancellation_maps_to_internal_error(make_router):
    router = make_router({"m": _awaits_cancelled_future})
    out = await router.serve(None, b'{"jsonrpc":"2.0","method":"m","id":7}')
    assert out == b'{"jsonrpc":"2.0","error":{"code":1000,"message":"Internal error"},"id":7}'


@pytest.mark.asyncio
async def test_handler_raised_cancellation_in_batch_keeps_siblings(make_router):
    router = make_router({"m": _awaits_cancelled_future, "echo": _echo})
    out = await router.serve(
        None,
        b'[{"jsonrpc":"2.0","method":"m","id":1},{"jsonrpc":"2.0","method":"echo","params":[2],"id":2}]',
    )
    assert json.loads(out) == [
        {"jsonrpc": "2.0", "error": {"code": 1000, "message": "Internal error"}, "id": 1},
        {"jsonrpc": "2.0", "result": [2], "id": 2},
    ]


class TestRegistration:
    def test_method_decorator(self):
        router = Router()

        @router.method()
        def ping(ctx, identifier, method, params):
            return "pong"

        @router.method("math.add")
        async def add(ctx, identifier, method, params):
            return 0

        assert router.methods() == ["math.add", "ping"]
        assert ping(None, None, "ping", None) == "pong"

    @pytest.mark.asyncio
    async def test_register_after_serving_raises(self):
        router = Router()
        router.register("a", _echo)
        await router.serve(None, b'{"jsonrpc":"2.0","method":"a","id":1}')
        with pytest.raises(RegistrationError):
            router.register("b", _echo)

    def test_last_registration_wins(self):
        router = Router()
        router.register("m", _sum)
        router.register("m", _echo)
        assert router.freeze().lookup("m") is _echo
