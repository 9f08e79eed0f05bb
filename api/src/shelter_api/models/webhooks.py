"""API models for the Stripe webhook endpoint."""

from pydantic import BaseModel, ConfigDict, Field

from shelter_shared.models.enums import WebhookStatus
from shelter_shared.models.stripe_webhook import WebhookOutcome


class WebhookResponse(BaseModel):
    """Body returned to Stripe for an accepted delivery.

    status is present only for payment_intent.succeeded events.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"received": True, "status": "success", "donationId": "DON-1A2B3C4D5E6F"},
                {
                    "received": True,
                    "status": "saved_but_email_failed",
                    "donationId": "DON-1A2B3C4D5E6F",
                    "emailError": "No email transport configured (set SES_FROM_EMAIL or SMTP_*)",
                },
                {"received": True},
            ]
        },
    )

    received: bool = True
    status: WebhookStatus | None = None
    donation_id: str | None = Field(default=None, alias="donationId")
    email_error: str | None = Field(default=None, alias="emailError")

    @classmethod
    def from_outcome(cls, outcome: WebhookOutcome) -> "WebhookResponse":
        return cls(
            status=outcome.status,
            donation_id=outcome.donation_id,
            email_error=outcome.email_error,
        )


class WebhookErrorResponse(BaseModel):
    """Body returned when a delivery is rejected or fails."""

    error: str = Field(..., examples=["Invalid webhook signature"])
    received: bool = False
    error_code: str | None = Field(default=None, examples=["ERR_WEBHOOK_002"])
