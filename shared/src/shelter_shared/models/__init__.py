"""Pydantic models for HALT Shelter donation entities."""

from .donation import (
    DonationRecord,
    DonationStats,
    DonorInfo,
    generate_donation_id,
    generate_receipt_number,
)
from .enums import (
    Currency,
    DonationCategory,
    DonationSource,
    DonationType,
    PaymentMethod,
    PaymentStatus,
    ProcessingResult,
    WebhookStatus,
)
from .errors import ErrorCode, ShelterError, ToolError, WebhookError
from .notification import DeliveryResult, EmailMessage
from .stripe_webhook import StripeWebhookEvent, WebhookOutcome

__all__ = [
    # Donation
    "DonationRecord",
    "DonationStats",
    "DonorInfo",
    "generate_donation_id",
    "generate_receipt_number",
    # Enums
    "Currency",
    "DonationCategory",
    "DonationSource",
    "DonationType",
    "PaymentMethod",
    "PaymentStatus",
    "ProcessingResult",
    "WebhookStatus",
    # Errors
    "ErrorCode",
    "ShelterError",
    "ToolError",
    "WebhookError",
    # Notification
    "DeliveryResult",
    "EmailMessage",
    # Webhook audit
    "StripeWebhookEvent",
    "WebhookOutcome",
]
