"""Stripe webhook audit log model."""

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import ProcessingResult, WebhookStatus

# Audit entries expire through DynamoDB TTL after this long
AUDIT_RETENTION = timedelta(days=7)


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    Used for auditing deliveries and debugging donation issues. It is not
    consulted when deciding whether to process an event; deduplication
    happens on the donation's transaction_id.
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["payment_intent.succeeded", "charge.refunded"],
    )
    processed_at: datetime = Field(..., description="When the event was processed")
    payload_hash: str = Field(
        ...,
        description="SHA-256 hash of the raw payload",
    )
    transaction_id: str | None = Field(
        default=None,
        description="PaymentIntent or charge ID from the event object",
    )
    donation_id: str | None = Field(
        default=None,
        description="Donation created or matched by this event",
    )
    processing_result: ProcessingResult = Field(default=ProcessingResult.SUCCESS)
    error_message: str | None = None

    @property
    def expires_at(self) -> int:
        """Unix timestamp after which DynamoDB TTL removes the entry."""
        return int((self.processed_at + AUDIT_RETENTION).timestamp())

    def to_item(self) -> dict[str, Any]:
        """Serialize to a DynamoDB item."""
        item: dict[str, Any] = {
            "event_id": self.event_id,
            "event_type": self.event_type,
            "processed_at": self.processed_at.isoformat(),
            "payload_hash": self.payload_hash,
            "processing_result": self.processing_result.value,
            "expires_at": self.expires_at,
        }
        if self.transaction_id:
            item["transaction_id"] = self.transaction_id
        if self.donation_id:
            item["donation_id"] = self.donation_id
        if self.error_message:
            item["error_message"] = self.error_message
        return item


class WebhookOutcome(BaseModel):
    """What the webhook handler did with one delivery.

    status is set only for payment_intent.succeeded; other event types are
    acknowledged without one.
    """

    model_config = ConfigDict(strict=True)

    processing_result: ProcessingResult
    status: WebhookStatus | None = None
    donation_id: str | None = None
    email_error: str | None = None
