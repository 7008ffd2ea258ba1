"""Demo contracts (weather, calculator) and an offline responder for the CLI."""

from __future__ import annotations

import json
import re
from typing import Any

from intex.builders import create_function, create_intent
from intex.core.types import IntentContract
from intex.middleware import create_logging_middleware
from intex.providers.base import LLMResponse
from intex.providers.mock_provider import tool_call_response

_TEMPERATURES = {"new york": 22, "london": 15, "tokyo": 28, "paris": 18}
_DESCRIPTIONS = {"new york": "Partly cloudy", "london": "Rainy", "tokyo": "Sunny", "paris": "Clear"}

_OPERATORS = {
    "+": "add", "plus": "add",
    "-": "subtract", "minus": "subtract",
    "*": "multiply", "x": "multiply", "times": "multiply",
    "/": "divide", "divided by": "divide",
}
_ARITHMETIC_RE = re.compile(
    r"(-?\d+(?:\.\d+)?)\s*(\+|-|\*|/|x|plus|minus|times|divided by)\s*(-?\d+(?:\.\d+)?)",
    re.IGNORECASE,
)
_LOCATION_RE = re.compile(r"\bin\s+([A-Za-z][A-Za-z ]*)", re.IGNORECASE)


def get_weather(params: dict[str, Any]) -> dict[str, Any]:
    location = str(params["location"]).strip()
    key = location.lower()
    return {
        "location": location,
        "temperature": _TEMPERATURES.get(key, 20),
        "description": _DESCRIPTIONS.get(key, "Clear"),
    }


def calculate(params: dict[str, Any]) -> dict[str, Any]:
    a, b = float(params["number1"]), float(params["number2"])
    operation = params["operation"]
    if operation == "add":
        return {"result": a + b, "operation": "addition"}
    if operation == "subtract":
        return {"result": a - b, "operation": "subtraction"}
    if operation == "multiply":
        return {"result": a * b, "operation": "multiplication"}
    if operation == "divide":
        if b == 0:
            raise ValueError("Division by zero is not allowed")
        return {"result": a / b, "operation": "division"}
    raise ValueError(f"Unknown operation: {operation}")


def build_demo_contracts() -> list[IntentContract]:
    weather_fn = create_function(
        name="get_weather",
        description="Get current weather for a location",
        parameters={
            "type": "object",
            "properties": {"location": {"type": "string", "description": "City name or location"}},
            "required": ["location"],
        },
        handler=get_weather,
    )
    calculate_fn = create_function(
        name="calculate",
        description="Calculate the result of basic mathematical operations",
        parameters={
            "type": "object",
            "properties": {
                "operation": {
                    "type": "string",
                    "enum": ["add", "subtract", "multiply", "divide"],
                    "description": "The mathematical operation to perform",
                },
                "number1": {"type": "number", "description": "First number in the operation"},
                "number2": {"type": "number", "description": "Second number in the operation"},
            },
            "required": ["operation", "number1", "number2"],
        },
        handler=calculate,
    )

    weather = (
        create_intent()
        .with_id("weather")
        .with_name("Weather Information")
        .with_description("Get weather information for locations")
        .with_patterns(r"weather.*in.*", r"what.*is.*the.*weather", r"temperature.*in.*", r"how.*is.*the.*weather")
        .with_examples("What is the weather in London?", "Temperature in Tokyo")
        .with_functions(weather_fn)
        .with_middleware(create_logging_middleware("DEBUG"))
        .build()
    )
    math = (
        create_intent()
        .with_id("math-operations")
        .with_name("Math Operations")
        .with_description("Perform basic mathematical operations like addition, subtraction, multiplication, and division")
        .with_patterns(_ARITHMETIC_RE.pattern, r"calculate.*\d", r"what is \d+")
        .with_examples("What is 5 plus 3?", "Calculate 10 divided by 4")
        .with_functions(calculate_fn)
        .build()
    )
    return [weather, math]


def offline_responder(messages: list[dict[str, Any]], tools: list[dict[str, Any]] | None) -> LLMResponse:
    """Mimic a function-calling model for the demo contracts without a network."""
    last = messages[-1] if messages else {}

    if last.get("role") == "tool":
        results = []
        for msg in reversed(messages):
            if msg.get("role") != "tool":
                break
            results.append(json.loads(msg["content"]))
        return LLMResponse(content=_summarize(list(reversed(results))))

    if not tools:
        return LLMResponse(content="(offline) I can only answer weather and arithmetic questions.")

    text = str(last.get("content", ""))
    names = {t["function"]["name"] for t in tools}

    if "calculate" in names and (m := _ARITHMETIC_RE.search(text)):
        args = {"operation": _OPERATORS[m.group(2).lower()], "number1": float(m.group(1)), "number2": float(m.group(3))}
        return tool_call_response(("call_offline_1", "calculate", json.dumps(args)))

    if "get_weather" in names and (m := _LOCATION_RE.search(text)):
        location = m.group(1).strip(" ?.!")
        return tool_call_response(("call_offline_1", "get_weather", json.dumps({"location": location})))

    return LLMResponse(content="(offline) I could not work out the arguments for that request.")


def _summarize(results: list[Any]) -> str:
    lines = []
    for result in results:
        if isinstance(result, dict) and "location" in result:
            lines.append(f"It is {result['temperature']}°C and {result['description'].lower()} in {result['location']}.")
        elif isinstance(result, dict) and "result" in result:
            lines.append(f"The {result['operation']} result is {result['result']:g}.")
        else:
            lines.append(f"Sorry, that did not work: {result}")
    return " ".join(lines)
