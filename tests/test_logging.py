"""
Tests for structured event logging.
"""

import logging
from unittest.mock import MagicMock

import pytest

from httpstat.observability.logging import (
    configure_logging,
    get_httpstat_logger,
    log_exception,
    log_redirect,
    log_timing,
)


@pytest.fixture(autouse=True)
def reset_factory():
    yield
    configure_logging(None)


class TestStatLoggerAdapter:
    """Test context binding and event records."""

    def test_bound_context_on_record(self, caplog):
        logger = get_httpstat_logger("httpstat.test", url="https://example.com/")

        with caplog.at_level(logging.DEBUG, logger="httpstat.test"):
            logger.bind(attempt=1).info("request.started", method="GET")

        record = caplog.records[-1]
        assert record.getMessage() == "request.started"
        assert record.url == "https://example.com/"
        assert record.method == "GET"
        assert record.attempt == 1

    def test_disabled_level_skipped(self, caplog):
        logger = get_httpstat_logger("httpstat.quiet")

        with caplog.at_level(logging.WARNING, logger="httpstat.quiet"):
            logger.debug("trace.dns_started", host="example.com")

        assert caplog.records == []

    def test_custom_factory(self):
        adapter = MagicMock()
        factory = MagicMock(return_value=adapter)
        configure_logging(factory)

        logger = get_httpstat_logger("httpstat.custom", method="HEAD")
        logger.warning("tls.cacert_failed", ca_cert="ca.pem")

        factory.assert_called_once_with("httpstat.custom", method="HEAD")
        level, event = adapter.log.call_args.args
        assert level == logging.WARNING
        assert event == "tls.cacert_failed"
        assert adapter.log.call_args.kwargs["extra"] == {"method": "HEAD", "ca_cert": "ca.pem"}


class TestHelpers:
    """Test the timing, exception and redirect helpers."""

    def test_log_timing_success(self, caplog):
        logger = get_httpstat_logger("httpstat.timing")

        with caplog.at_level(logging.DEBUG, logger="httpstat.timing"):
            with log_timing(logger, "body.save", path="out.bin"):
                pass

        events = [r.getMessage() for r in caplog.records]
        assert events == ["body.save.started", "body.save.completed"]
        assert caplog.records[-1].path == "out.bin"
        assert caplog.records[-1].duration_ms >= 0

    def test_log_timing_failure(self, caplog):
        logger = get_httpstat_logger("httpstat.timing")

        with caplog.at_level(logging.DEBUG, logger="httpstat.timing"):
            with pytest.raises(OSError):
                with log_timing(logger, "body.save"):
                    raise OSError("disk full")

        assert caplog.records[-1].getMessage() == "body.save.failed"
        assert caplog.records[-1].levelno == logging.ERROR

    def test_log_exception(self, caplog):
        logger = get_httpstat_logger("httpstat.errors")

        with caplog.at_level(logging.ERROR, logger="httpstat.errors"):
            log_exception(logger, ValueError("bad"), "request.failed", phase="connecting")

        record = caplog.records[-1]
        assert record.error_type == "ValueError"
        assert record.error_message == "bad"
        assert record.phase == "connecting"

    def test_log_exception_level(self, caplog):
        logger = get_httpstat_logger("httpstat.errors")

        with caplog.at_level(logging.DEBUG, logger="httpstat.errors"):
            log_exception(logger, ValueError("bad"), "request.failed", logging.DEBUG)

        assert caplog.records[-1].levelno == logging.DEBUG
        assert caplog.records[-1].exc_info[1].args == ("bad",)

    def test_log_timing_failure_level(self, caplog):
        logger = get_httpstat_logger("httpstat.timing")

        with caplog.at_level(logging.DEBUG, logger="httpstat.timing"):
            with pytest.raises(OSError):
                with log_timing(logger, "body.save", logging.DEBUG):
                    raise OSError("disk full")

        assert caplog.records[-1].getMessage() == "body.save.failed"
        assert caplog.records[-1].levelno == logging.DEBUG

    def test_log_redirect(self, caplog):
        logger = get_httpstat_logger("httpstat.redirects")

        with caplog.at_level(logging.INFO, logger="httpstat.redirects"):
            log_redirect(
                logger,
                from_url="http://example.com/",
                to_url="https://example.com/",
                status_code=301,
                redirect_count=1,
            )

        record = caplog.records[-1]
        assert record.getMessage() == "request.redirect"
        assert record.to_url == "https://example.com/"
        assert record.redirect_count == 1
