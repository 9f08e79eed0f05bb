"""Logging setup with per-request correlation IDs.

Every line is prefixed with the correlation ID of the request that produced
it, read from a ContextVar the API middleware sets. Donation and webhook
events are logged through two helpers that render their identifiers as
``key=value`` pairs and also attach them to the record as ``extra`` fields.

Usage:
    from shelter_shared.utils.logging import get_logger, log_webhook_event

    logger = get_logger(__name__)
    log_webhook_event(logger, "payment_intent.succeeded", "evt_1", result="success")
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Results worth a warning rather than an info line
_WARNING_RESULTS = frozenset({"duplicate", "rejected", "email_failed"})


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context.

    Args:
        correlation_id: ID supplied by the caller; a new one is generated when empty

    Returns:
        The ID now in effect
    """
    cid = correlation_id or generate_correlation_id()
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the current correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefix formatted lines with ``[correlation_id]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: int = logging.INFO) -> None:
    """Install StructuredFormatter on the root logger's handlers.

    Repeated calls reformat the existing handlers instead of adding more.
    """
    root = logging.getLogger()
    root.setLevel(level)
    if not root.handlers:
        root.addHandler(logging.StreamHandler())
    for handler in root.handlers:
        handler.setFormatter(StructuredFormatter(LOG_FORMAT))


def get_logger(name: str) -> logging.Logger:
    """Return the named logger with CorrelationIdFilter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _present_fields(**fields: Any) -> dict[str, Any]:
    return {key: value for key, value in fields.items() if value is not None and value != ""}


def _render(headline: str, fields: dict[str, Any]) -> str:
    return " | ".join([headline, *(f"{key}={value}" for key, value in fields.items())])


def log_donation_operation(
    logger: logging.Logger,
    operation: str,
    *,
    transaction_id: str | None = None,
    donation_id: str | None = None,
    amount: Any = None,
    currency: str | None = None,
    status: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log one step of recording a donation or sending its receipt.

    Logged at ERROR when ``error`` is given, INFO otherwise.

    Args:
        logger: Logger to write to
        operation: Step name, e.g. "record_donation" or "send_receipt"
        transaction_id: Stripe PaymentIntent ID
        donation_id: Internal donation ID
        amount: Amount in major units
        currency: ISO currency code
        status: Outcome of the step
        error: Failure description
        **extra: Further fields, rendered after the standard ones
    """
    fields = _present_fields(
        transaction_id=transaction_id,
        donation_id=donation_id,
        amount=None if amount is None else str(amount),
        currency=currency,
        status=status,
        error=error,
        **extra,
    )
    level = logging.ERROR if error else logging.INFO
    logger.log(
        level,
        _render(f"Donation operation: {operation}", fields),
        extra={"operation": operation, **fields},
    )


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str,
    *,
    transaction_id: str | None = None,
    donation_id: str | None = None,
    result: str | None = None,
    error: str | None = None,
    **extra: Any,
) -> None:
    """Log a Stripe webhook delivery at a level chosen by its result.

    "error" logs at ERROR; "duplicate", "rejected" and "email_failed" at
    WARNING; anything else at INFO.

    Args:
        logger: Logger to write to
        event_type: Stripe event type
        event_id: Stripe event ID (evt_xxx)
        transaction_id: PaymentIntent or charge ID from the event object
        donation_id: Donation created or matched
        result: Processing result value
        error: Failure description
        **extra: Further fields
    """
    fields = _present_fields(
        result=result,
        transaction=transaction_id,
        donation=donation_id,
        error=error,
        **extra,
    )
    if result == "error":
        level = logging.ERROR
    elif result in _WARNING_RESULTS:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger.log(
        level,
        _render(f"Webhook event: {event_type} ({event_id})", fields),
        extra={"event_type": event_type, "event_id": event_id, **fields},
    )
