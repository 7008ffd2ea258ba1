import pytest

from intex.builders import IntentContractBuilder, create_function, create_intent
from intex.core.errors import BuilderError
from intex.core.types import IntentContext
from intex.middleware import create_logging_middleware


def _echo(params):
    return params


def test_intent_builder_is_immutable() -> None:
    base = create_intent().with_id("weather").with_name("Weather").with_description("Weather lookups")

    with_patterns = base.with_patterns(r"weather in (.*)")

    assert base.patterns == ()
    assert with_patterns.patterns == (r"weather in (.*)",)
    assert base.with_patterns("a").with_patterns("b").build().patterns == ("a", "b")


def test_intent_builder_collects_fields() -> None:
    intent = (
        create_intent()
        .with_id("weather")
        .with_name("Weather")
        .with_description("Weather lookups")
        .with_examples("weather in Paris?")
        .with_priority(3)
        .build()
    )

    assert intent.examples == ("weather in Paris?",)
    assert intent.priority == 3


@pytest.mark.parametrize("missing", ["id", "name", "description"])
def test_intent_builder_requires_id_name_description(missing: str) -> None:
    fields = {"id": "weather", "name": "Weather", "description": "Weather lookups"}
    fields[missing] = ""
    builder = create_intent().with_id(fields["id"]).with_name(fields["name"]).with_description(fields["description"])

    with pytest.raises(BuilderError, match="Intent must have id, name, and description"):
        builder.build()


def test_with_functions_produces_a_contract() -> None:
    fn = create_function("echo", "Echo back", {"type": "object"}, _echo)
    context = IntentContext(id="prefs")
    logging_mw = create_logging_middleware()

    contract = (
        create_intent()
        .with_id("echo")
        .with_name("Echo")
        .with_description("Echo things")
        .with_functions(fn)
        .with_middleware(logging_mw)
        .with_context(lambda: context)
        .with_fallback("askUser")
        .build()
    )

    assert contract.intent.id == "echo"
    assert contract.functions == [fn]
    assert contract.middleware == [logging_mw]
    assert contract.context_provider() is context
    assert contract.fallback == "askUser"


def test_with_context_starts_a_contract() -> None:
    contract = (
        create_intent()
        .with_id("prefs")
        .with_name("Prefs")
        .with_description("Preferences")
        .with_context(lambda: None)
        .with_functions(create_function("a", "A", {}, _echo), create_function("b", "B", {}, _echo))
        .build()
    )

    assert [f.name for f in contract.functions] == ["a", "b"]


def test_contract_builder_requires_an_intent() -> None:
    with pytest.raises(BuilderError):
        IntentContractBuilder().build()


def test_create_function_defaults_id_to_name() -> None:
    fn = create_function("get_weather", "Weather", {"type": "object"}, _echo)
    explicit = create_function("get_weather", "Weather", {"type": "object"}, _echo, id="weather-v2", requires_context=True)

    assert fn.id == "get_weather" and fn.requires_context is False
    assert explicit.id == "weather-v2" and explicit.requires_context is True
