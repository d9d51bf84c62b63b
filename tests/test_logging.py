import logging
import sys

import pytest

from core.logging import RequestIdFilter, configure_logging, request_id_var


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    root.handlers = []
    yield root
    root.handlers = saved_handlers
    root.setLevel(saved_level)


def test_configure_logging_installs_one_stdout_handler(root_logger):
    level = configure_logging(environment="production", log_level="debug")
    configure_logging(environment="production", log_level="debug")

    assert level == logging.DEBUG
    stdout_handlers = [h for h in root_logger.handlers if getattr(h, "stream", None) is sys.stdout]
    assert len(stdout_handlers) == 1
    assert any(isinstance(f, RequestIdFilter) for f in stdout_handlers[0].filters)
    assert logging.getLogger("stripe").level == logging.WARNING
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    assert logging.getLogger("uvicorn.error").propagate


def test_request_id_filter_stamps_records():
    record = logging.LogRecord("penpal", logging.INFO, __file__, 1, "hello", None, None)
    token = request_id_var.set("ab12cd34")
    try:
        RequestIdFilter().filter(record)
    finally:
        request_id_var.reset(token)
    assert record.request_id == "ab12cd34"

    RequestIdFilter().filter(record)
    assert record.request_id == "-"
