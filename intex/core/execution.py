"""Function tool preparation and tool-call dispatch."""

from __future__ import annotations

import json
import time
from typing import Any, Sequence

from loguru import logger

from intex.core.types import ExecutionContext, FunctionCall, IntentFunction, Message
from intex.plugins.base import Hook
from intex.plugins.manager import PluginManager
from intex.providers.base import ToolCallRequest
from intex.utils.aio import describe_error, elapsed_ms, maybe_await


def prepare_function_tools(functions: Sequence[IntentFunction]) -> list[dict[str, Any]]:
    """Render contract functions as completion-provider tool schemas, in order."""
    return [
        {
            "type": "function",
            "function": {
                "name": func.name,
                "description": func.description,
                "parameters": func.parameters,
            },
        }
        for func in functions
    ]


def tool_result_message(tool_call_id: str, payload: Any) -> Message:
    return {
        "role": "tool",
        "tool_call_id": tool_call_id,
        "content": json.dumps(payload, ensure_ascii=False, default=str),
    }


async def execute_function_calls(
    tool_calls: Sequence[ToolCallRequest],
    functions: Sequence[IntentFunction],
    context: ExecutionContext,
    plugin_manager: PluginManager,
) -> list[Message]:
    """
    Dispatch provider-requested tool calls strictly in the order given.

    Each call is independent: a handler failure is recorded on that call's
    ``FunctionCall`` and the remaining calls still run. Unknown function names
    are logged and skipped without a record; malformed JSON arguments for a
    known function are recorded as that call's error without running it.

    Returns one ``tool`` transcript message per entry in *tool_calls*, so the
    transcript answers every tool-call id the provider issued.
    """
    by_name = {func.name: func for func in functions}
    messages: list[Message] = []

    for tool_call in tool_calls:
        func = by_name.get(tool_call.name)
        if func is None:
            logger.error(f"Function {tool_call.name} not found")
            messages.append(tool_result_message(tool_call.id, f"Function {tool_call.name} not found"))
            continue

        try:
            parameters = json.loads(tool_call.arguments or "{}")
        except json.JSONDecodeError as e:
            error = f"Invalid arguments for {func.name}: {e}"
            logger.error(error)
            call = FunctionCall(
                function_id=tool_call.id,
                function_name=func.name,
                parameters=tool_call.arguments,
                error=error,
            )
            context.record_function_call(call)
            messages.append(tool_result_message(call.function_id, call.error))
            continue

        await plugin_manager.execute_hook(Hook.BEFORE_FUNCTION_EXECUTION, context, func.id, parameters)

        start = time.perf_counter()
        try:
            if func.requires_context:
                result = await maybe_await(func.handler(parameters, context.injected_context))
            else:
                result = await maybe_await(func.handler(parameters))
        except Exception as e:
            error = describe_error(e)
            call = FunctionCall(
                function_id=tool_call.id,
                function_name=func.name,
                parameters=parameters,
                error=error,
                execution_time=elapsed_ms(start, time.perf_counter()),
            )
            logger.error(f"Function {func.name} failed: {error}")
            context.record_function_call(call)
            await plugin_manager.execute_hook(Hook.AFTER_FUNCTION_EXECUTION, context, func.id, None, error)
        else:
            call = FunctionCall(
                function_id=tool_call.id,
                function_name=func.name,
                parameters=parameters,
                result=result,
                execution_time=elapsed_ms(start, time.perf_counter()),
            )
            logger.info(f"Function {func.name} executed successfully in {call.execution_time}ms")
            context.record_function_call(call)
            await plugin_manager.execute_hook(Hook.AFTER_FUNCTION_EXECUTION, context, func.id, result)

        messages.append(tool_result_message(call.function_id, call.error if call.error else call.result))

    return messages
