import pytest

from intex.config.schema import ContextRetentionConfig
from intex.core.context import ContextRetention, provide_context
from intex.core.middleware import run_middleware_chain
from intex.core.types import ExecutionContext, Intent, IntentContext, Middleware, MiddlewareResult

INTENT = Intent(id="orders", name="Orders", description="Order lookups")


class CountingMiddleware:
    def __init__(self, result: MiddlewareResult) -> None:
        self.result = result
        self.calls = 0
        self.seen_context: IntentContext | None = None

    def __call__(self, intent, message, context):
        self.calls += 1
        self.seen_context = context
        return self.result


def _context() -> ExecutionContext:
    return ExecutionContext(conversation_id="c", user_message="where is my order")


@pytest.mark.asyncio
async def test_halting_middleware_stops_the_chain() -> None:
    first = CountingMiddleware(MiddlewareResult(proceed=True))
    halt = CountingMiddleware(MiddlewareResult(proceed=False))
    never = CountingMiddleware(MiddlewareResult(proceed=True))
    chain = [Middleware("first", first), Middleware("halt", halt), Middleware("never", never)]

    assert await run_middleware_chain(chain, INTENT, _context()) is False
    assert (first.calls, halt.calls, never.calls) == (1, 1, 0)


@pytest.mark.asyncio
async def test_modified_context_flows_to_later_steps() -> None:
    injected = IntentContext(id="session", data={"user_id": "u1"})
    setter = CountingMiddleware(MiddlewareResult(proceed=True, modified_context=injected))
    reader = CountingMiddleware(MiddlewareResult(proceed=True))
    context = _context()

    assert await run_middleware_chain([Middleware("set", setter), Middleware("read", reader)], INTENT, context)
    assert reader.seen_context is injected
    assert context.injected_context is injected


@pytest.mark.asyncio
async def test_halting_step_still_applies_its_context() -> None:
    error = IntentContext(id="auth_error", data={"error": "Unauthorized access"})
    context = _context()

    await run_middleware_chain(
        [Middleware("auth", CountingMiddleware(MiddlewareResult(proceed=False, modified_context=error)))],
        INTENT,
        context,
    )

    assert context.injected_context is error


@pytest.mark.asyncio
async def test_async_middleware_is_awaited() -> None:
    async def deny(intent, message, context):
        return MiddlewareResult(proceed=False)

    assert await run_middleware_chain([Middleware("deny", deny)], INTENT, _context()) is False


@pytest.mark.asyncio
async def test_empty_chain_proceeds() -> None:
    assert await run_middleware_chain([], INTENT, _context()) is True


@pytest.mark.asyncio
async def test_provide_context_swallows_failures(log_records) -> None:
    def broken():
        raise RuntimeError("db offline")

    assert await provide_context(broken, "orders") is None
    assert any("db offline" in r["message"] for r in log_records)


@pytest.mark.asyncio
async def test_provide_context_accepts_async_providers() -> None:
    ctx = IntentContext(id="orders", data=[1, 2])

    async def provider():
        return ctx

    assert await provide_context(provider, "orders") is ctx


def test_retention_keeps_the_newest_contexts_in_order() -> None:
    retention = ContextRetention(ContextRetentionConfig(enabled=True, max_contexts=2))
    contexts = [IntentContext(id=f"ctx-{i}") for i in range(3)]

    for ctx in contexts:
        retention.retain("c", ctx)

    assert [c.id for c in retention.get("c")] == ["ctx-1", "ctx-2"]
    assert retention.get("other") == []


def test_disabled_retention_records_nothing() -> None:
    retention = ContextRetention(ContextRetentionConfig(enabled=False))
    retention.retain("c", IntentContext(id="x"))
    assert retention.get("c") == []


def test_retention_clear_is_per_conversation() -> None:
    retention = ContextRetention(ContextRetentionConfig(enabled=True))
    retention.retain("a", IntentContext(id="x"))
    retention.retain("b", IntentContext(id="y"))

    retention.clear("a")

    assert retention.get("a") == []
    assert [c.id for c in retention.get("b")] == ["y"]
