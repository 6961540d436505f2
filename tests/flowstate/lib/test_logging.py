"""
Tests for logging setup and per-user log context.
"""

import logging

import structlog

from flowstate.config.settings import Settings
from flowstate.lib.logging import bind_user_context, setup_logging


def test_setup_logging_installs_single_handler():
    setup_logging(Settings(dev_mode=True, log_level="DEBUG"))
    setup_logging(Settings(dev_mode=True, log_level="DEBUG"))

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
    assert root.level == logging.DEBUG
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_bind_user_context():
    bind_user_context("user-1")
    assert structlog.contextvars.get_contextvars()["user_id"] == "user-1"

    bind_user_context(None)
    assert "user_id" not in structlog.contextvars.get_contextvars()
