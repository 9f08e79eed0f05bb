"""Donation record model.

One DonationRecord exists per Stripe transaction (PaymentIntent) id.
Amounts are stored in major currency units as Decimal, which is also the
number type DynamoDB expects.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import (
    Currency,
    DonationCategory,
    DonationSource,
    DonationType,
    PaymentMethod,
    PaymentStatus,
)


def generate_donation_id() -> str:
    """Generate a donation id in the DON-XXXXXXXXXXXX format."""
    return f"DON-{uuid.uuid4().hex[:12].upper()}"


def generate_receipt_number(now: datetime) -> str:
    """Generate a receipt number in the HALT-YYYYMM-NNNNNN format.

    The suffix is the last six digits of the millisecond timestamp.
    """
    millis = str(int(now.timestamp() * 1000))
    return f"HALT-{now.year}{now.month:02d}-{millis[-6:]}"


def is_valid_email(email: str) -> bool:
    """Loose address check: one local part, one domain, no whitespace or controls.

    Whitespace and control characters are rejected because the address
    ends up in a mail header.
    """
    if any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in email):
        return False
    local, sep, domain = email.rpartition("@")
    return bool(sep and local and domain)


class DonorInfo(BaseModel):
    """Donor details captured from PaymentIntent metadata or the Stripe customer."""

    model_config = ConfigDict(strict=True)

    name: str = Field(..., min_length=1, description="Donor display name")
    email: str = Field(..., description="Receipt destination (lower-cased)")


class DonationRecord(BaseModel):
    """A completed donation received through Stripe.

    All fields are written once, when the record is created. The record is
    never recreated for the same transaction_id and never deleted here.
    """

    model_config = ConfigDict(strict=True)

    transaction_id: str = Field(
        ...,
        description="Stripe PaymentIntent ID (pi_xxx); unique deduplication key",
        examples=["pi_3ABC123DEF456"],
    )
    donation_id: str = Field(
        default_factory=generate_donation_id,
        description="Internal donation ID",
        examples=["DON-1A2B3C4D5E6F"],
    )
    receipt_number: str = Field(..., description="Receipt number shown to the donor")
    donor: DonorInfo
    amount: Decimal = Field(..., ge=0, description="Amount in major currency units")
    currency: Currency = Field(default=Currency.USD)
    donation_type: DonationType = Field(default=DonationType.ONE_TIME)
    category: DonationCategory = Field(default=DonationCategory.GENERAL)
    payment_method: PaymentMethod = Field(default=PaymentMethod.STRIPE)
    payment_status: PaymentStatus = Field(default=PaymentStatus.COMPLETED)
    is_recurring: bool = False
    stripe_customer_id: str | None = None
    source: DonationSource = Field(default=DonationSource.WEBSITE)
    processing_fee: Decimal = Field(default=Decimal("0"), ge=0)
    net_amount: Decimal = Field(..., description="Amount after processing fees")
    receipt_sent: bool = False
    receipt_sent_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    def to_item(self) -> dict[str, Any]:
        """Serialize to a DynamoDB item (flat, ISO timestamps, no None values)."""
        item: dict[str, Any] = {
            "transaction_id": self.transaction_id,
            "donation_id": self.donation_id,
            "receipt_number": self.receipt_number,
            "donor_name": self.donor.name,
            "donor_email": self.donor.email,
            "amount": self.amount,
            "currency": self.currency.value,
            "donation_type": self.donation_type.value,
            "category": self.category.value,
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "is_recurring": self.is_recurring,
            "source": self.source.value,
            "processing_fee": self.processing_fee,
            "net_amount": self.net_amount,
            "receipt_sent": self.receipt_sent,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
        if self.stripe_customer_id:
            item["stripe_customer_id"] = self.stripe_customer_id
        if self.receipt_sent_at:
            item["receipt_sent_at"] = self.receipt_sent_at.isoformat()
        if self.completed_at:
            item["completed_at"] = self.completed_at.isoformat()
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "DonationRecord":
        """Build a record from a DynamoDB item."""
        return cls.model_validate(
            {
                "transaction_id": item["transaction_id"],
                "donation_id": item["donation_id"],
                "receipt_number": item["receipt_number"],
                "donor": {"name": item["donor_name"], "email": item["donor_email"]},
                "amount": item["amount"],
                "currency": item["currency"],
                "donation_type": item["donation_type"],
                "category": item.get("category", DonationCategory.GENERAL.value),
                "payment_method": item.get("payment_method", PaymentMethod.STRIPE.value),
                "payment_status": item["payment_status"],
                "is_recurring": item.get("is_recurring", False),
                "stripe_customer_id": item.get("stripe_customer_id"),
                "source": item.get("source", DonationSource.WEBSITE.value),
                "processing_fee": item.get("processing_fee", Decimal("0")),
                "net_amount": item.get("net_amount", item["amount"]),
                "receipt_sent": item.get("receipt_sent", False),
                "receipt_sent_at": item.get("receipt_sent_at"),
                "completed_at": item.get("completed_at"),
                "created_at": item["created_at"],
                "updated_at": item["updated_at"],
            },
            strict=False,
        )


class DonationStats(BaseModel):
    """Aggregate totals over completed donations."""

    total_raised: Decimal = Decimal("0")
    donation_count: int = 0
    monthly_total: Decimal = Decimal("0")
    monthly_count: int = 0
