"""Stripe service for donation payments and webhook verification.

Provides integration with Stripe using the StripeClient pattern.
Credentials come from STRIPE_SECRET_KEY / STRIPE_WEBHOOK_SECRET when set,
otherwise from SSM Parameter Store under /halt/{environment}/stripe/.
"""

import hashlib
import json
import logging
import os
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from .ssm_service import SSMServiceError, get_ssm_service, parameter_path

logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_TOLERANCE = 300


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeConfigurationError(StripeServiceError):
    """Raised when a Stripe credential is not configured anywhere."""


class InvalidWebhookSignatureError(StripeServiceError):
    """Raised when a webhook signature is malformed, wrong, or expired."""


class InvalidWebhookPayloadError(StripeServiceError):
    """Raised when a correctly signed webhook body is not a JSON event."""


class StripeService:
    """Service for Stripe donation operations.

    Handles:
    - Webhook signature validation
    - Customer lookups for donor contact details
    - PaymentIntent creation for the donation form

    Usage:
        stripe_svc = get_stripe_service()
        event = stripe_svc.verify_webhook_signature(payload, signature)
    """

    def __init__(
        self,
        environment: str | None = None,
        webhook_tolerance: int | None = None,
    ) -> None:
        """Initialize Stripe service.

        Args:
            environment: Environment name (dev, prod). Defaults to ENVIRONMENT env var.
            webhook_tolerance: Allowed signature age in seconds.
                Defaults to STRIPE_WEBHOOK_TOLERANCE or 300.
        """
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._webhook_tolerance = webhook_tolerance or int(
            os.environ.get("STRIPE_WEBHOOK_TOLERANCE", DEFAULT_WEBHOOK_TOLERANCE)
        )
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = None

    def _get_secret(self, env_var: str, name: str) -> str:
        """Read a credential from the environment, falling back to SSM.

        Args:
            env_var: Environment variable checked first
            name: Parameter name under /halt/{environment}/stripe/

        Returns:
            Credential value

        Raises:
            StripeConfigurationError: If the credential is set nowhere.
        """
        value = os.environ.get(env_var)
        if value:
            return value

        try:
            return get_ssm_service().get_parameter(
                parameter_path(self._environment, "stripe", name)
            )
        except SSMServiceError as e:
            raise StripeConfigurationError(
                f"{env_var} is not set and SSM lookup failed: {e}"
            ) from e

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeConfigurationError: If the secret key cannot be retrieved.
        """
        if self._client is None:
            secret_key = self._get_secret("STRIPE_SECRET_KEY", "secret_key")
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        """Get the webhook signing secret.

        Raises:
            StripeConfigurationError: If the secret cannot be retrieved.
        """
        if self._webhook_secret is None:
            self._webhook_secret = self._get_secret("STRIPE_WEBHOOK_SECRET", "webhook_secret")
        return self._webhook_secret

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        The signature is checked against the exact raw bytes before the
        body is parsed.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Returns:
            Parsed event dictionary.

        Raises:
            StripeConfigurationError: If the webhook secret is not configured.
            InvalidWebhookSignatureError: If the signature does not verify.
            InvalidWebhookPayloadError: If the verified body is not a JSON object.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            body = payload.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidWebhookSignatureError("Webhook payload is not UTF-8") from e

        try:
            stripe.WebhookSignature.verify_header(
                body, signature, webhook_secret, self._webhook_tolerance
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise InvalidWebhookSignatureError(f"Invalid webhook signature: {e}") from e

        try:
            event = json.loads(body)
        except json.JSONDecodeError as e:
            raise InvalidWebhookPayloadError("Webhook payload is not valid JSON") from e
        if not isinstance(event, dict):
            raise InvalidWebhookPayloadError("Webhook payload is not a JSON object")

        logger.info("Webhook signature verified for event: %s", event.get("id"))
        return event

    def get_customer_contact(self, customer_id: str) -> tuple[str | None, str | None]:
        """Look up a Stripe customer's email and name.

        Lookup failures are logged and reported as "nothing found".

        Args:
            customer_id: Stripe customer ID (cus_xxx)

        Returns:
            Tuple of (email, name); either may be None.
        """
        try:
            customer = self._get_client().customers.retrieve(customer_id)
        except StripeServiceError as e:
            logger.warning("Could not fetch customer %s: %s", customer_id, e)
            return None, None
        except stripe.StripeError as e:
            logger.warning("Could not fetch customer %s: %s", customer_id, e)
            return None, None

        email = getattr(customer, "email", None)
        name = getattr(customer, "name", None)
        if email:
            logger.info("Retrieved email for customer %s", customer_id)
        return email, name

    def create_payment_intent(
        self,
        *,
        amount_cents: int,
        currency: str,
        metadata: dict[str, str],
    ) -> dict[str, Any]:
        """Create a PaymentIntent for a donation.

        Args:
            amount_cents: Amount in minor units.
            currency: ISO currency code (any case).
            metadata: Donor metadata read back by the webhook handler.

        Returns:
            Dict with client_secret and payment_intent_id.

        Raises:
            StripeServiceError: If creation fails.
        """
        client = self._get_client()

        try:
            logger.info(
                "Creating PaymentIntent for %d %s (%s)",
                amount_cents,
                currency.upper(),
                metadata.get("donation_type", "one-time"),
            )
            intent = client.payment_intents.create(
                params={
                    "amount": amount_cents,
                    "currency": currency.lower(),
                    "metadata": metadata,
                    "receipt_email": metadata.get("donor_email"),
                }
            )
            logger.info("PaymentIntent created: %s", intent.id)
            return {
                "client_secret": intent.client_secret,
                "payment_intent_id": intent.id,
            }

        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe PaymentIntent creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create payment intent: {e}",
                stripe_error_code=error_code,
            ) from e

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """Compute SHA-256 hash of webhook payload for the audit log.

        Args:
            payload: Raw webhook payload bytes.

        Returns:
            Hex-encoded SHA-256 hash.
        """
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance.

    Returns:
        StripeService: Shared service instance.
    """
    return StripeService()
