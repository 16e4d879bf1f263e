import logging

import pytest

from libcatalog.utils.logging import (
    LOG_LEVEL_ENV_VAR,
    configure_logging,
    correlation_scope,
    get_correlation_id,
    get_logger,
    resolve_log_level,
    set_correlation_id,
    time_call,
)


def test_correlation_id_round_trip():
    token = set_correlation_id("request-42")
    assert token == "request-42"
    assert get_correlation_id() == "request-42"


def test_correlation_id_is_generated_when_missing():
    token = set_correlation_id()
    assert len(token) == 32
    assert get_correlation_id() == token


def test_loggers_live_under_package_namespace():
    assert get_logger("catalog.service").name == "libcatalog.catalog.service"


def test_time_call_logs_duration(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    with time_call("unit-test", logger, threshold_ms=0):
        pass
    messages = [record.message for record in caplog.records if record.name == logger.name]
    assert any("unit-test took" in message for message in messages)


def test_time_call_redacts_params_and_reports_elapsed(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    elapsed = []
    with time_call(
        "query",
        logger,
        sql="SELECT 1",
        params=["Bearer eyJhbGciOiJIUzI1NiJ9.payload", "Emma"],
        on_complete=elapsed.append,
    ):
        pass
    record = next(r for r in caplog.records if r.name == logger.name)
    assert record.levelno == logging.DEBUG
    assert record.params == ["***", "Emma"]
    assert len(elapsed) == 1 and elapsed[0] >= 0


def test_correlation_scope_restores_previous_id():
    set_correlation_id("outer")
    with correlation_scope("request-7") as token:
        assert token == "request-7"
        assert get_correlation_id() == "request-7"
    assert get_correlation_id() == "outer"


def test_records_carry_correlation_id(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.INFO, logger=logger.name)
    with correlation_scope("request-8"):
        logger.info("inside")
    record = next(r for r in caplog.records if r.getMessage() == "inside")
    assert record.correlation_id == "request-8"


def test_time_call_marks_failed_statements(caplog):
    logger = get_logger("tests.logging")
    caplog.set_level(logging.DEBUG, logger=logger.name)
    elapsed = []
    with pytest.raises(RuntimeError):
        with time_call("insert", logger, on_complete=elapsed.append):
            raise RuntimeError("disk full")
    record = next(r for r in caplog.records if r.name == logger.name)
    assert record.failed is True
    assert "insert failed after" in record.getMessage()
    assert len(elapsed) == 1


def test_resolve_log_level(monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    assert resolve_log_level() == logging.INFO
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")
    assert resolve_log_level() == logging.DEBUG
    assert resolve_log_level("warning") == logging.WARNING
    assert resolve_log_level(logging.ERROR) == logging.ERROR
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "chatty")
    assert resolve_log_level() == logging.INFO


@pytest.fixture
def package_logger():
    logger = logging.getLogger("libcatalog")
    level = logger.level
    yield logger
    logger.setLevel(level)


def test_configure_logging_sets_level_after_import(package_logger, monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    get_logger("tests.logging")
    configure_logging("DEBUG")
    assert package_logger.level == logging.DEBUG
    configure_logging(logging.WARNING)
    assert package_logger.level == logging.WARNING
    assert len(package_logger.handlers) == 1


def test_configure_logging_without_level_keeps_current(package_logger, monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    configure_logging("ERROR")
    configure_logging()
    get_logger("tests.logging")
    assert package_logger.level == logging.ERROR


def test_configure_logging_reads_env_level(package_logger, monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "warning")
    configure_logging()
    assert package_logger.level == logging.WARNING
