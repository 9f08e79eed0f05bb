"""Donation endpoints.

Provides REST endpoints for:
- Creating a Stripe PaymentIntent for the donation form (public)
- Public donation statistics

The donation itself is recorded by the webhook, never by these endpoints.
"""

import asyncio
import datetime as dt

from fastapi import APIRouter, Depends
from starlette.status import HTTP_200_OK

from shelter_api.dependencies import get_donation_store, get_stripe_service
from shelter_api.models.donations import (
    CreatePaymentIntentRequest,
    CreatePaymentIntentResponse,
    DonationStatsBody,
    DonationStatsResponse,
)
from shelter_shared.models.donation import is_valid_email
from shelter_shared.models.enums import Currency, DonationType
from shelter_shared.models.errors import ErrorCode, ShelterError
from shelter_shared.services.donation_store import DonationStore
from shelter_shared.services.stripe_service import (
    StripeConfigurationError,
    StripeService,
    StripeServiceError,
)
from shelter_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["donations"])


def _payment_intent_metadata(body: CreatePaymentIntentRequest) -> dict[str, str]:
    """Flatten donor details into Stripe metadata (string values only).

    Raises:
        ShelterError: INVALID_DONATION_REQUEST for an unknown donation type,
            a blank donor name or an unusable donor email.
    """
    donation_type = body.metadata.donation_type.lower()
    if donation_type not in {t.value for t in DonationType}:
        raise ShelterError(
            code=ErrorCode.INVALID_DONATION_REQUEST,
            details={"donation_type": body.metadata.donation_type},
        )

    donor_name = body.metadata.donor_name.strip()
    if not donor_name:
        raise ShelterError(
            code=ErrorCode.INVALID_DONATION_REQUEST,
            details={"donor_name": "required"},
        )
    donor_email = body.metadata.donor_email.strip().lower()
    if not is_valid_email(donor_email):
        raise ShelterError(
            code=ErrorCode.INVALID_DONATION_REQUEST,
            details={"donor_email": body.metadata.donor_email},
        )

    return {
        "donor_name": donor_name,
        "donor_email": donor_email,
        "donation_type": donation_type,
        "is_emergency": "true" if body.metadata.is_emergency else "false",
    }


@router.post(
    "/donations/create-payment-intent",
    summary="Start a donation payment",
    description="""
Create a Stripe PaymentIntent for a donation.

**Notes:**
- `amount` is in minor units (cents); minimum 100
- `donor_name` and `donor_email` are required; they are stored on the
  PaymentIntent and read back by the webhook
- Supported currencies: USD, CAD, EUR, GBP
""",
    response_model=CreatePaymentIntentResponse,
    status_code=HTTP_200_OK,
    responses={
        400: {"description": "Unsupported currency or donation type, or unusable donor details"},
        422: {"description": "Amount below the minimum or donor details missing"},
        502: {"description": "Stripe rejected the request"},
        503: {"description": "Stripe is not configured"},
    },
)
async def create_payment_intent(
    body: CreatePaymentIntentRequest,
    stripe_service: StripeService = Depends(get_stripe_service),
) -> CreatePaymentIntentResponse:
    """Create a PaymentIntent and return its client secret."""
    if body.currency.upper() not in {c.value for c in Currency}:
        raise ShelterError(
            code=ErrorCode.INVALID_DONATION_REQUEST,
            details={"currency": body.currency},
        )
    metadata = _payment_intent_metadata(body)

    try:
        result = await asyncio.to_thread(
            lambda: stripe_service.create_payment_intent(
                amount_cents=body.amount,
                currency=body.currency,
                metadata=metadata,
            )
        )
    except StripeConfigurationError as e:
        logger.error("Stripe not configured: %s", e)
        raise ShelterError(code=ErrorCode.STRIPE_NOT_CONFIGURED) from e
    except StripeServiceError as e:
        details = {"stripe_error_code": e.stripe_error_code} if e.stripe_error_code else None
        raise ShelterError(code=ErrorCode.STRIPE_API_ERROR, details=details) from e

    return CreatePaymentIntentResponse(**result)


@router.get(
    "/donations/stats",
    summary="Donation statistics",
    description="Totals over completed donations, overall and for the current calendar month (UTC).",
    response_model=DonationStatsResponse,
)
async def get_donation_stats(
    store: DonationStore = Depends(get_donation_store),
) -> DonationStatsResponse:
    """Return public donation totals."""
    stats = await asyncio.to_thread(store.stats, dt.datetime.now(dt.UTC))
    return DonationStatsResponse(
        stats=DonationStatsBody(
            total_raised=float(stats.total_raised),
            donation_count=stats.donation_count,
            monthly_total=float(stats.monthly_total),
            monthly_count=stats.monthly_count,
        )
    )
