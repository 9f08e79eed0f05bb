"""Unit tests for correlation-ID logging helpers."""

import logging

import pytest

from shelter_shared.utils.logging import (
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    get_logger,
    log_donation_operation,
    log_webhook_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def _clean_context():
    clear_correlation_id()
    yield
    clear_correlation_id()


class TestCorrelationId:
    def test_keeps_supplied_id(self) -> None:
        assert set_correlation_id("req-1") == "req-1"
        assert get_correlation_id() == "req-1"

    def test_generates_when_empty(self) -> None:
        cid = set_correlation_id(None)
        assert len(cid) == 36
        assert get_correlation_id() == cid

    def test_formatter_prefixes_id(self) -> None:
        set_correlation_id("req-9")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)

        assert StructuredFormatter("%(message)s").format(record) == "[req-9] hello"

    def test_logger_filter_added_once(self) -> None:
        first = get_logger("shelter.test")
        second = get_logger("shelter.test")

        assert first is second
        assert len(first.filters) == 1


class TestLogWebhookEvent:
    """Level and rendering by result."""

    @pytest.mark.parametrize(
        ("result", "level"),
        [
            ("success", logging.INFO),
            ("acknowledged", logging.INFO),
            ("duplicate", logging.WARNING),
            ("rejected", logging.WARNING),
            ("email_failed", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_level(self, caplog: pytest.LogCaptureFixture, result: str, level: int) -> None:
        logger = get_logger("shelter.test.webhook")

        with caplog.at_level(logging.DEBUG, logger="shelter.test.webhook"):
            log_webhook_event(logger, "payment_intent.succeeded", "evt_1", result=result)

        assert caplog.records[-1].levelno == level

    def test_message_and_extra(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("shelter.test.webhook")

        with caplog.at_level(logging.INFO, logger="shelter.test.webhook"):
            log_webhook_event(
                logger,
                "payment_intent.succeeded",
                "evt_1",
                transaction_id="pi_1",
                donation_id="DON-1",
                result="success",
            )

        record = caplog.records[-1]
        assert record.getMessage() == (
            "Webhook event: payment_intent.succeeded (evt_1) | result=success"
            " | transaction=pi_1 | donation=DON-1"
        )
        assert record.event_id == "evt_1"
        assert record.transaction == "pi_1"


class TestLogDonationOperation:
    def test_error_logged_at_error(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("shelter.test.donation")

        with caplog.at_level(logging.INFO, logger="shelter.test.donation"):
            log_donation_operation(logger, "send_receipt", transaction_id="pi_1", error="boom")

        record = caplog.records[-1]
        assert record.levelno == logging.ERROR
        assert record.getMessage() == "Donation operation: send_receipt | transaction_id=pi_1 | error=boom"
        assert record.operation == "send_receipt"

    def test_amount_rendered_and_none_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        logger = get_logger("shelter.test.donation")

        with caplog.at_level(logging.INFO, logger="shelter.test.donation"):
            log_donation_operation(logger, "record_donation", amount="25.00", currency="USD", status="created")

        assert caplog.records[-1].getMessage() == (
            "Donation operation: record_donation | amount=25.00 | currency=USD | status=created"
        )
