"""Webhook endpoint for Stripe donation events.

These endpoints do NOT require authentication as they receive signed
payloads from Stripe. The signature is verified over the raw body before
anything else looks at the event.
"""

import asyncio

from fastapi import APIRouter, Depends, Request

from shelter_api.dependencies import get_stripe_service, get_webhook_handler
from shelter_api.models.webhooks import WebhookErrorResponse, WebhookResponse
from shelter_shared.models.errors import ErrorCode, WebhookError
from shelter_shared.services.stripe_service import (
    InvalidWebhookPayloadError,
    StripeConfigurationError,
    StripeService,
    StripeServiceError,
)
from shelter_shared.services.webhook_handler import DonationWebhookHandler
from shelter_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADER = "Stripe-Signature"


@router.post(
    "/donations/webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- payment_intent.succeeded: Records the donation and emails the receipt
- payment_intent.payment_failed: Logged only
- charge.refunded: Acknowledged

Other event types are acknowledged with `{"received": true}`.

**No authentication required** - signature is verified using the Stripe webhook secret.

**Idempotent**: Redelivery of a recorded payment returns `duplicate_processed`
with the donationId of the first delivery and sends no email.
""",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Event received and processed (or acknowledged)"},
        400: {
            "description": "Missing/invalid signature, secret not configured, or unprocessable event",
            "model": WebhookErrorResponse,
        },
        500: {"description": "Unexpected processing failure", "model": WebhookErrorResponse},
    },
)
@router.post(
    "/webhooks/stripe",
    include_in_schema=False,
    response_model=WebhookResponse,
    response_model_exclude_none=True,
)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    handler: DonationWebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    """Verify the delivery and hand the event to the donation handler."""
    signature = request.headers.get(SIGNATURE_HEADER)
    if not signature:
        raise WebhookError(ErrorCode.MISSING_WEBHOOK_SIGNATURE)

    # Exact bytes; re-serialized JSON would not verify
    payload = await request.body()

    try:
        event = await asyncio.to_thread(
            stripe_service.verify_webhook_signature, payload, signature
        )
    except StripeConfigurationError as e:
        logger.error("Cannot verify webhook: %s", e)
        raise WebhookError(ErrorCode.WEBHOOK_SECRET_NOT_CONFIGURED) from e
    except InvalidWebhookPayloadError as e:
        raise WebhookError(ErrorCode.INVALID_WEBHOOK_PAYLOAD) from e
    except StripeServiceError as e:
        raise WebhookError(ErrorCode.INVALID_WEBHOOK_SIGNATURE) from e

    outcome = await asyncio.to_thread(
        handler.handle_event, event, StripeService.compute_payload_hash(payload)
    )
    return WebhookResponse.from_outcome(outcome)
