from typing import Any

import pytest
from loguru import logger

from intex.plugins.manager import PluginManager
from intex.providers.mock_provider import MockProvider


@pytest.fixture(autouse=True)
def _enable_intex_logging():
    # A framework built with logging disabled turns the namespace off process-wide.
    logger.enable("intex")
    yield


@pytest.fixture
def log_records():
    """Every loguru record emitted during the test, DEBUG and up."""
    records: list[dict[str, Any]] = []
    sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(sink_id)


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider(default_content="Mocked reply")


@pytest.fixture
def plugin_manager() -> PluginManager:
    return PluginManager()


def error_messages(records: list[dict[str, Any]]) -> list[str]:
    return [r["message"] for r in records if r["level"].name == "ERROR"]
