"""loguru setup for the ``intex`` logger namespace."""

from typing import Any

from loguru import logger

from intex.config.schema import LoggingConfig

LEVELS: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
}

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)

_sink_id: int | None = None


def setup_logging(config: LoggingConfig, sink: Any = None) -> int | None:
    """Gate everything intex logs, optionally onto a dedicated sink.

    ``enabled=False`` disables the ``intex`` namespace; otherwise it is
    enabled and records flow to whatever handlers the host application has.
    Handlers the host installed are never removed.

    With a *sink*, a handler filtered to ``intex`` records at the configured
    level replaces the one a previous call installed. Returns its handler id.
    """
    global _sink_id

    if sink is not None and _sink_id is not None:
        try:
            logger.remove(_sink_id)
        except ValueError:
            logger.debug(f"intex log sink {_sink_id} was already removed")
        _sink_id = None

    if not config.enabled:
        logger.disable("intex")
        return None

    logger.enable("intex")
    if sink is not None:
        _sink_id = logger.add(sink, level=LEVELS[config.level], filter="intex", format=_FORMAT)
    return _sink_id
