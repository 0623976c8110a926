import logging

import pytest

from dexcatalog.infrastructure.monitoring.logger_setup import quiet_third_party_loggers, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    saved_http = {name: logging.getLogger(name).level for name in ("httpx", "httpcore", "urllib3")}
    yield root
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        root.addHandler(handler)
    root.setLevel(saved_level)
    for name, level in saved_http.items():
        logging.getLogger(name).setLevel(level)


def test_setup_logging_replaces_handlers_and_quiets_http_stack(restore_logging):
    setup_logging(log_level=logging.DEBUG)
    setup_logging(log_level=logging.DEBUG)

    assert len(restore_logging.handlers) == 1
    assert restore_logging.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING


def test_setup_logging_writes_to_file(restore_logging, tmp_path):
    log_file = tmp_path / "catalog.log"
    setup_logging(log_level=logging.INFO, log_file=str(log_file), log_format="%(levelname)s %(message)s")

    logging.getLogger("dexcatalog.test").warning("cache miss storm")
    for handler in restore_logging.handlers:
        handler.flush()

    assert len(restore_logging.handlers) == 2
    assert "WARNING cache miss storm" in log_file.read_text(encoding="utf-8")


def test_quieting_never_lowers_a_stricter_level(restore_logging):
    quiet_third_party_loggers(logging.ERROR, names=["urllib3"])
    assert logging.getLogger("urllib3").level == logging.ERROR
