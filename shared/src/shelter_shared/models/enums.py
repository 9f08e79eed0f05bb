"""Enumeration types for HALT Shelter donation models."""

from enum import Enum


class DonationType(str, Enum):
    """Donation frequency chosen on the donation form."""

    ONE_TIME = "one-time"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class PaymentStatus(str, Enum):
    """Payment status of a donation."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class Currency(str, Enum):
    """Currencies accepted for donations."""

    USD = "USD"
    CAD = "CAD"
    EUR = "EUR"
    GBP = "GBP"


class DonationCategory(str, Enum):
    """Fund a donation is earmarked for."""

    GENERAL = "general"
    EMERGENCY = "emergency"
    MEDICAL = "medical"
    FOOD = "food"
    SHELTER = "shelter"
    TRANSPORT = "transport"
    MEMORIAL = "memorial"
    SPONSOR_ANIMAL = "sponsor-animal"


class PaymentMethod(str, Enum):
    """How a donation was paid."""

    STRIPE = "stripe"
    PAYPAL = "paypal"
    CHECK = "check"
    CASH = "cash"
    BANK_TRANSFER = "bank-transfer"


class DonationSource(str, Enum):
    """Channel a donation came through."""

    WEBSITE = "website"
    SOCIAL_MEDIA = "social-media"
    EMAIL = "email"
    EVENT = "event"
    MAIL = "mail"
    PHONE = "phone"
    THIRD_PARTY = "third-party"


class WebhookStatus(str, Enum):
    """Outcome reported to Stripe for a payment_intent.succeeded delivery."""

    SUCCESS = "success"
    DUPLICATE_PROCESSED = "duplicate_processed"
    SAVED_BUT_EMAIL_FAILED = "saved_but_email_failed"


class ProcessingResult(str, Enum):
    """Result recorded in the webhook audit log."""

    SUCCESS = "success"
    DUPLICATE = "duplicate"
    EMAIL_FAILED = "email_failed"
    ACKNOWLEDGED = "acknowledged"
    REJECTED = "rejected"
    ERROR = "error"
