import logging
import pytest
from vsite.infrastructure.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        # Only the plain handlers setup_logging installs; pytest's capture handlers are subclasses
        if type(handler) in (logging.StreamHandler, logging.FileHandler):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(logging.WARNING)


def test_console_only_by_default(tmp_path):
    setup_logging()

    handlers = logging.getLogger().handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.StreamHandler)
    assert handlers[0].level == logging.WARNING
    assert list(tmp_path.iterdir()) == []


def test_debug_lowers_console_level():
    setup_logging(debug=True)

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert root.handlers[0].level == logging.DEBUG


def test_file_handler_with_log_path(tmp_path):
    log_file = tmp_path / "logs" / "vsite.log"

    logger = setup_logging(log_path=log_file)
    logger.info("hello from test")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert any(isinstance(h, logging.FileHandler) for h in logging.getLogger().handlers)
    content = log_file.read_text(encoding="utf-8")
    assert "Logging initialized" in content
    assert "INFO - hello from test" in content
