"""
Tests for structlog configuration.
"""

from __future__ import annotations

import json

import pytest
import structlog

from app.core.logging import configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    configure_logging("info", "json")


def test_json_format_filters_below_level(capsys):
    configure_logging("info", "json")
    log = structlog.get_logger()

    log.debug("lead.hidden")
    log.info("lead.created", org_id="org-a")

    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["event"] == "lead.created"
    assert entry["level"] == "info"
    assert entry["org_id"] == "org-a"
    assert "timestamp" in entry


def test_text_format_at_debug(capsys):
    configure_logging("debug", "text")
    structlog.get_logger().debug("scope.opened")
    assert "scope.opened" in capsys.readouterr().out


def test_request_context_is_merged(capsys):
    configure_logging("info", "json")
    structlog.contextvars.bind_contextvars(request_id="req-1")
    try:
        structlog.get_logger().info("customer.updated")
    finally:
        structlog.contextvars.clear_contextvars()
    entry = json.loads(capsys.readouterr().out.strip())
    assert entry["request_id"] == "req-1"
