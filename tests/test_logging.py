import logging

import orjson
import pytest
import structlog
from pythonjsonlogger import jsonlogger

from imexport.logging_config import configure_logging, get_logger


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_configure_twice_keeps_one_handler(restore_logging):
    configure_logging("debug")
    configure_logging("info")

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)
    assert root.level == logging.INFO


def test_events_render_as_json_lines(restore_logging, capsys):
    configure_logging("info")

    get_logger("imexport.services.tasks").info("task_finished", task_id=7, status="SUCCESS")
    get_logger("imexport.services.tasks").debug("row_rejected", task_id=7)

    [line] = capsys.readouterr().out.splitlines()
    entry = orjson.loads(line)
    assert entry["message"] == "task_finished"
    assert entry["name"] == "imexport.services.tasks"
    assert entry["levelname"] == "INFO"
    assert (entry["task_id"], entry["status"]) == (7, "SUCCESS")


def test_console_format(restore_logging, capsys):
    configure_logging("info", fmt="console")

    get_logger("imexport").warning("export_data_empty", business_type="users")

    out = capsys.readouterr().out
    assert "export_data_empty" in out and "business_type" in out
