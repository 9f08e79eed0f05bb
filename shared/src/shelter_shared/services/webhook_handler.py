"""Webhook handler for processing Stripe donation events.

Provides business logic for handling webhook events separate from
HTTP routing concerns. The route verifies the signature and passes the
parsed event here; this module decides what the event means for the
donations table and the donor's receipt.

Event types:
- payment_intent.succeeded: record the donation once and send one receipt
- payment_intent.payment_failed: log only
- charge.refunded: acknowledged only
- anything else: acknowledged
"""

import datetime as dt
from decimal import Decimal
from typing import Any

from shelter_shared.models.donation import (
    DonationRecord,
    DonorInfo,
    generate_receipt_number,
    is_valid_email,
)
from shelter_shared.models.enums import (
    Currency,
    DonationCategory,
    DonationType,
    ProcessingResult,
    WebhookStatus,
)
from shelter_shared.models.errors import ErrorCode, WebhookError
from shelter_shared.models.stripe_webhook import StripeWebhookEvent, WebhookOutcome
from shelter_shared.services.donation_store import DonationStore
from shelter_shared.services.dynamodb import DynamoDBService
from shelter_shared.services.email_templates import (
    RECEIPT_SUBJECT,
    donation_receipt_html,
    donation_receipt_text,
)
from shelter_shared.services.notification_service import NotificationDispatcher
from shelter_shared.services.stripe_service import StripeService
from shelter_shared.utils.logging import get_logger, log_donation_operation, log_webhook_event

logger = get_logger(__name__)

PAYMENT_SUCCEEDED = "payment_intent.succeeded"
PAYMENT_FAILED = "payment_intent.payment_failed"
CHARGE_REFUNDED = "charge.refunded"

DEFAULT_DONOR_NAME = "Supporter"

# Metadata values the donation form sends for "no value"
_ABSENT_VALUES = {"", "null", "undefined"}

_CENTS = Decimal("0.01")


class UnprocessableEventError(ValueError):
    """Raised when a succeeded event lacks what is needed to record a donation."""


def _present(value: Any) -> str | None:
    """Return value as a stripped string, or None for absent markers."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _ABSENT_VALUES:
        return None
    return text


def _first_present(*values: Any) -> str | None:
    for value in values:
        present = _present(value)
        if present is not None:
            return present
    return None


def _parse_amount(raw: Any) -> Decimal:
    """Convert a minor-unit amount to major units with two decimal places."""
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise UnprocessableEventError(f"Invalid amount: {raw!r}")
    if raw < 0:
        raise UnprocessableEventError(f"Negative amount: {raw}")
    return (Decimal(raw) / 100).quantize(_CENTS)


def _parse_currency(raw: Any) -> Currency:
    code = str(raw or "").upper()
    try:
        return Currency(code)
    except ValueError:
        raise UnprocessableEventError(f"Unsupported currency: {raw!r}") from None


def _parse_donation_type(raw: str | None) -> DonationType:
    if raw is None:
        return DonationType.ONE_TIME
    try:
        return DonationType(raw.lower())
    except ValueError:
        logger.warning("Unknown donation type %r, recording as one-time", raw)
        return DonationType.ONE_TIME


def _event_object(event: dict[str, Any]) -> dict[str, Any]:
    """Return data.object, or an empty dict when the event carries none."""
    data = event.get("data")
    obj = data.get("object") if isinstance(data, dict) else None
    return obj if isinstance(obj, dict) else {}


def _customer_id(raw: Any) -> str | None:
    # Expanded customers arrive as objects
    if isinstance(raw, dict):
        raw = raw.get("id")
    return _present(raw)


class DonationWebhookHandler:
    """Handler for processing Stripe donation webhook events.

    The donations table decides idempotency: a redelivered or concurrent
    payment_intent.succeeded finds the record already created and reports
    duplicate_processed without sending another email. The audit table
    records every event but is never consulted before processing.
    """

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(
        self,
        store: DonationStore,
        stripe_service: StripeService,
        dispatcher: NotificationDispatcher,
        db: DynamoDBService,
    ) -> None:
        self._store = store
        self._stripe = stripe_service
        self._dispatcher = dispatcher
        self._db = db

    @staticmethod
    def _now() -> dt.datetime:
        return dt.datetime.now(dt.UTC)

    def handle_event(self, event: dict[str, Any], payload_hash: str) -> WebhookOutcome:
        """Route a verified event to its handler.

        Args:
            event: Parsed Stripe event
            payload_hash: SHA-256 of the raw body, for the audit log

        Returns:
            WebhookOutcome for the HTTP response

        Raises:
            WebhookError: UNPROCESSABLE_EVENT when a succeeded event cannot be
                recorded, WEBHOOK_PROCESSING_FAILED on any unexpected failure.
        """
        event_id = str(event.get("id") or "")
        event_type = str(event.get("type") or "")
        object_id: str | None = None

        try:
            obj = _event_object(event)
            object_id = _present(obj.get("id"))
            log_webhook_event(
                logger, event_type, event_id, transaction_id=object_id, result="received"
            )

            if event_type == PAYMENT_SUCCEEDED:
                outcome = self.handle_payment_succeeded(obj)
            elif event_type == PAYMENT_FAILED:
                outcome = self.handle_payment_failed(obj)
            elif event_type == CHARGE_REFUNDED:
                logger.info("Charge refunded: %s (no donation change)", object_id)
                outcome = WebhookOutcome(processing_result=ProcessingResult.ACKNOWLEDGED)
            else:
                logger.info("Unhandled event type %s, acknowledging", event_type)
                outcome = WebhookOutcome(processing_result=ProcessingResult.ACKNOWLEDGED)

        except UnprocessableEventError as e:
            log_webhook_event(
                logger, event_type, event_id, transaction_id=object_id,
                result=ProcessingResult.REJECTED.value, error=str(e),
            )
            self.log_event(
                event_id, event_type, payload_hash, object_id, None,
                ProcessingResult.REJECTED, str(e),
            )
            raise WebhookError(ErrorCode.UNPROCESSABLE_EVENT, message=str(e)) from e

        except Exception as e:
            logger.exception("Failed to process webhook event %s", event_id)
            log_webhook_event(
                logger, event_type, event_id, transaction_id=object_id,
                result=ProcessingResult.ERROR.value, error=str(e),
            )
            self.log_event(
                event_id, event_type, payload_hash, object_id, None,
                ProcessingResult.ERROR, str(e),
            )
            raise WebhookError(ErrorCode.WEBHOOK_PROCESSING_FAILED) from e

        log_webhook_event(
            logger,
            event_type,
            event_id,
            transaction_id=object_id,
            donation_id=outcome.donation_id,
            result=outcome.processing_result.value,
            error=outcome.email_error,
        )
        self.log_event(
            event_id, event_type, payload_hash, object_id, outcome.donation_id,
            outcome.processing_result, outcome.email_error,
        )
        return outcome

    def log_event(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str,
        transaction_id: str | None,
        donation_id: str | None,
        processing_result: ProcessingResult,
        error_message: str | None = None,
    ) -> None:
        """Write the event to the audit table.

        Failures are logged and never affect the webhook response.
        """
        if not event_id:
            return
        entry = StripeWebhookEvent(
            event_id=event_id,
            event_type=event_type,
            processed_at=self._now(),
            payload_hash=payload_hash,
            transaction_id=transaction_id,
            donation_id=donation_id,
            processing_result=processing_result,
            error_message=error_message,
        )
        try:
            self._db.put_item(self.WEBHOOK_EVENTS_TABLE, entry.to_item())
        except Exception:
            logger.exception("Failed to write audit entry for event %s", event_id)

    def handle_payment_failed(self, intent: dict[str, Any]) -> WebhookOutcome:
        """Log a failed payment. Nothing is persisted."""
        last_error = intent.get("last_payment_error") or {}
        logger.warning(
            "Payment failed for %s: %s",
            intent.get("id"),
            last_error.get("message", "unknown reason"),
        )
        return WebhookOutcome(processing_result=ProcessingResult.ACKNOWLEDGED)

    def _resolve_donor(self, intent: dict[str, Any]) -> DonorInfo:
        """Work out the donor's name and receipt address.

        Metadata first, then the PaymentIntent's receipt_email, then one
        lookup of the Stripe customer.

        Raises:
            UnprocessableEventError: If no usable email address is found.
        """
        metadata = intent.get("metadata") or {}
        name = _first_present(metadata.get("donor_name"), metadata.get("donorName"))
        email = _first_present(
            metadata.get("donor_email"),
            metadata.get("donorEmail"),
            intent.get("receipt_email"),
        )

        customer_id = _customer_id(intent.get("customer"))
        if email is None and customer_id:
            logger.info("Donor email missing, fetching Stripe customer %s", customer_id)
            customer_email, customer_name = self._stripe.get_customer_contact(customer_id)
            customer_email = _present(customer_email)
            if customer_email:
                email = customer_email
                name = _present(customer_name) or name

        if email is None or not is_valid_email(email):
            raise UnprocessableEventError(
                f"No valid donor email for payment {intent.get('id')}"
            )
        return DonorInfo(name=name or DEFAULT_DONOR_NAME, email=email.lower())

    def build_record(self, intent: dict[str, Any], now: dt.datetime) -> DonationRecord:
        """Build the DonationRecord a succeeded PaymentIntent describes.

        Raises:
            UnprocessableEventError: If the intent cannot be recorded.
        """
        transaction_id = _present(intent.get("id"))
        if transaction_id is None:
            raise UnprocessableEventError("PaymentIntent has no id")

        amount = _parse_amount(intent.get("amount"))
        currency = _parse_currency(intent.get("currency"))
        donor = self._resolve_donor(intent)

        metadata = intent.get("metadata") or {}
        donation_type = _parse_donation_type(
            _first_present(metadata.get("donation_type"), metadata.get("donationType"))
        )
        is_emergency = metadata.get("is_emergency") in (True, "true")

        return DonationRecord(
            transaction_id=transaction_id,
            receipt_number=generate_receipt_number(now),
            donor=donor,
            amount=amount,
            currency=currency,
            donation_type=donation_type,
            category=DonationCategory.EMERGENCY if is_emergency else DonationCategory.GENERAL,
            is_recurring=donation_type != DonationType.ONE_TIME,
            stripe_customer_id=_customer_id(intent.get("customer")),
            net_amount=amount,
            receipt_sent=True,
            receipt_sent_at=now,
            completed_at=now,
            created_at=now,
            updated_at=now,
        )

    def handle_payment_succeeded(self, intent: dict[str, Any]) -> WebhookOutcome:
        """Record the donation and send the receipt exactly once.

        Only the delivery whose conditional insert succeeds sends email.
        An email failure leaves the record in place.

        Raises:
            UnprocessableEventError: Missing email, id, amount or currency.
        """
        now = self._now()
        record = self.build_record(intent, now)

        stored, created = self._store.create_if_absent(record)
        if not created:
            return WebhookOutcome(
                processing_result=ProcessingResult.DUPLICATE,
                status=WebhookStatus.DUPLICATE_PROCESSED,
                donation_id=stored.donation_id,
            )

        receipt_args = {
            "donor_name": stored.donor.name,
            "amount": stored.amount,
            "currency": stored.currency.value,
            "donation_type": stored.donation_type.value,
            "is_emergency": stored.category == DonationCategory.EMERGENCY,
            "donation_date": now,
            "receipt_number": stored.receipt_number,
        }
        try:
            delivery = self._dispatcher.send(
                stored.donor.email,
                RECEIPT_SUBJECT,
                donation_receipt_html(**receipt_args),
                donation_receipt_text(**receipt_args),
            )
        except Exception as e:
            # Record is already stored; any send failure is reported, never retried
            log_donation_operation(
                logger,
                "send_receipt",
                transaction_id=stored.transaction_id,
                donation_id=stored.donation_id,
                error=str(e),
            )
            return WebhookOutcome(
                processing_result=ProcessingResult.EMAIL_FAILED,
                status=WebhookStatus.SAVED_BUT_EMAIL_FAILED,
                donation_id=stored.donation_id,
                email_error=str(e),
            )

        log_donation_operation(
            logger,
            "send_receipt",
            transaction_id=stored.transaction_id,
            donation_id=stored.donation_id,
            status="sent",
            transport=delivery.transport,
            fallback_used=delivery.fallback_used,
        )
        return WebhookOutcome(
            processing_result=ProcessingResult.SUCCESS,
            status=WebhookStatus.SUCCESS,
            donation_id=stored.donation_id,
        )
