import json
import logging

import structlog

from cogwork.logging import bind_scope, clear_context, get_logger, setup_logging


def test_json_logging_includes_bound_scope(capsys) -> None:
    setup_logging(level="DEBUG", format="json")
    logger = get_logger("cogwork.test")
    try:
        bind_scope(scope=42, listener="greeter")
        logger.info("listener.registered", label="greeter")
    finally:
        clear_context()
        structlog.reset_defaults()
        logging.basicConfig(force=True)

    line = capsys.readouterr().err.strip().splitlines()[-1]
    payload = json.loads(line)
    assert payload["event"] == "listener.registered"
    assert payload["label"] == "greeter"
    assert payload["scope"] == 42
    assert payload["listener"] == "greeter"
    assert payload["component"] == "cogwork"
    assert payload["level"] == "info"
    assert payload["logger"] == "cogwork.test"


def test_clear_context() -> None:
    bind_scope(scope=1)
    clear_context()
    assert structlog.contextvars.get_contextvars() == {}
