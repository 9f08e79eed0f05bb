"""Unit tests for StripeService.

Tests verify the service logic without making actual Stripe API calls.
Signatures are real HMACs checked by the Stripe SDK; API calls are mocked.

Test categories:
- Credential retrieval (environment first, then SSM)
- verify_webhook_signature()
- get_customer_contact()
- create_payment_intent()
"""

import json
import time
from types import SimpleNamespace
from typing import Any, Callable
from unittest.mock import MagicMock, patch

import pytest
import stripe

from shelter_shared.services.ssm_service import SSMServiceError
from shelter_shared.services.stripe_service import (
    InvalidWebhookPayloadError,
    InvalidWebhookSignatureError,
    StripeConfigurationError,
    StripeService,
    StripeServiceError,
)

# === Test Configuration ===

TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
SSM_SECRET_KEY = "sk_test_from_ssm"
SSM_WEBHOOK_SECRET = "whsec_from_ssm"


# === Test Fixtures ===


@pytest.fixture
def mock_ssm_service():
    """Mock SSM service for credential retrieval."""
    with patch("shelter_shared.services.stripe_service.get_ssm_service") as mock_get_ssm:
        mock_ssm = MagicMock()
        params = {
            "/halt/dev/stripe/secret_key": SSM_SECRET_KEY,
            "/halt/dev/stripe/webhook_secret": SSM_WEBHOOK_SECRET,
        }

        def get_parameter(name: str) -> str:
            if name not in params:
                raise SSMServiceError(f"SSM parameter not found: {name}", not_found=True)
            return params[name]

        mock_ssm.get_parameter.side_effect = get_parameter
        mock_get_ssm.return_value = mock_ssm
        yield mock_ssm


@pytest.fixture
def stripe_service() -> StripeService:
    """StripeService using the STRIPE_* variables set by conftest."""
    return StripeService(environment="dev")


@pytest.fixture
def mock_stripe_client():
    """Mock Stripe client for API calls."""
    with patch("shelter_shared.services.stripe_service.StripeClient") as mock_client_class:
        mock_client = MagicMock()
        mock_client_class.return_value = mock_client
        yield mock_client


# === Credentials ===


class TestCredentials:
    """Environment variables take precedence over SSM."""

    def test_client_lazy_initialized(self, stripe_service: StripeService) -> None:
        assert stripe_service._client is None

    def test_environment_variable_wins(
        self, stripe_service: StripeService, mock_ssm_service: MagicMock
    ) -> None:
        assert stripe_service._get_webhook_secret() == TEST_WEBHOOK_SECRET
        mock_ssm_service.get_parameter.assert_not_called()

    def test_falls_back_to_ssm(
        self,
        monkeypatch: pytest.MonkeyPatch,
        mock_ssm_service: MagicMock,
    ) -> None:
        monkeypatch.delenv("STRIPE_WEBHOOK_SECRET")
        monkeypatch.delenv("STRIPE_SECRET_KEY")
        service = StripeService(environment="dev")

        assert service._get_webhook_secret() == SSM_WEBHOOK_SECRET
        with patch("shelter_shared.services.stripe_service.StripeClient") as client_cls:
            service._get_client()
        client_cls.assert_called_once_with(SSM_SECRET_KEY)

    def test_missing_everywhere_raises_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch, mock_ssm_service: MagicMock
    ) -> None:
        monkeypatch.delenv("STRIPE_WEBHOOK_SECRET")
        service = StripeService(environment="prod")

        with pytest.raises(StripeConfigurationError, match="STRIPE_WEBHOOK_SECRET"):
            service._get_webhook_secret()

    def test_tolerance_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STRIPE_WEBHOOK_TOLERANCE", "60")
        assert StripeService()._webhook_tolerance == 60


# === verify_webhook_signature() ===


class TestVerifyWebhookSignature:
    """Signature verification over the raw body."""

    PAYLOAD = json.dumps(
        {"id": "evt_1", "type": "payment_intent.succeeded", "data": {"object": {"id": "pi_1"}}}
    ).encode("utf-8")

    def test_valid_signature_returns_event(
        self, stripe_service: StripeService, sign: Callable[..., str]
    ) -> None:
        event = stripe_service.verify_webhook_signature(self.PAYLOAD, sign(self.PAYLOAD))

        assert event["id"] == "evt_1"
        assert event["data"]["object"]["id"] == "pi_1"

    def test_wrong_secret_rejected(
        self, stripe_service: StripeService, sign: Callable[..., str]
    ) -> None:
        with pytest.raises(InvalidWebhookSignatureError):
            stripe_service.verify_webhook_signature(
                self.PAYLOAD, sign(self.PAYLOAD, secret="whsec_other")
            )

    def test_tampered_body_rejected(
        self, stripe_service: StripeService, sign: Callable[..., str]
    ) -> None:
        header = sign(self.PAYLOAD)
        tampered = self.PAYLOAD.replace(b"pi_1", b"pi_2")

        with pytest.raises(InvalidWebhookSignatureError):
            stripe_service.verify_webhook_signature(tampered, header)

    def test_old_timestamp_rejected(
        self, stripe_service: StripeService, sign: Callable[..., str]
    ) -> None:
        header = sign(self.PAYLOAD, timestamp=int(time.time()) - 3600)

        with pytest.raises(InvalidWebhookSignatureError):
            stripe_service.verify_webhook_signature(self.PAYLOAD, header)

    def test_malformed_header_rejected(self, stripe_service: StripeService) -> None:
        with pytest.raises(InvalidWebhookSignatureError):
            stripe_service.verify_webhook_signature(self.PAYLOAD, "not-a-signature")

    def test_signed_non_json_body(
        self, stripe_service: StripeService, sign: Callable[..., str]
    ) -> None:
        payload = b"this is not json"

        with pytest.raises(InvalidWebhookPayloadError):
            stripe_service.verify_webhook_signature(payload, sign(payload))

    def test_errors_share_base_class(self) -> None:
        assert issubclass(InvalidWebhookSignatureError, StripeServiceError)
        assert issubclass(InvalidWebhookPayloadError, StripeServiceError)
        assert issubclass(StripeConfigurationError, StripeServiceError)

    def test_compute_payload_hash(self) -> None:
        digest = StripeService.compute_payload_hash(b"abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


# === get_customer_contact() ===


class TestGetCustomerContact:
    """Customer lookup used when a PaymentIntent has no donor email."""

    def test_returns_email_and_name(
        self, stripe_service: StripeService, mock_stripe_client: MagicMock
    ) -> None:
        mock_stripe_client.customers.retrieve.return_value = SimpleNamespace(
            email="donor@example.com", name="Pat Donor"
        )

        assert stripe_service.get_customer_contact("cus_123") == ("donor@example.com", "Pat Donor")
        mock_stripe_client.customers.retrieve.assert_called_once_with("cus_123")

    def test_stripe_error_means_not_found(
        self, stripe_service: StripeService, mock_stripe_client: MagicMock
    ) -> None:
        mock_stripe_client.customers.retrieve.side_effect = stripe.InvalidRequestError(
            "No such customer", param="id"
        )

        assert stripe_service.get_customer_contact("cus_missing") == (None, None)

    def test_missing_secret_key_means_not_found(
        self, monkeypatch: pytest.MonkeyPatch, mock_ssm_service: MagicMock
    ) -> None:
        monkeypatch.delenv("STRIPE_SECRET_KEY")
        service = StripeService(environment="prod")

        assert service.get_customer_contact("cus_123") == (None, None)


# === create_payment_intent() ===


class TestCreatePaymentIntent:
    """PaymentIntent creation for the donation form."""

    METADATA: dict[str, Any] = {
        "donor_name": "Jane Doe",
        "donor_email": "jane@example.com",
        "donation_type": "monthly",
        "is_emergency": "false",
    }

    def test_creates_intent_with_metadata(
        self, stripe_service: StripeService, mock_stripe_client: MagicMock
    ) -> None:
        mock_stripe_client.payment_intents.create.return_value = MagicMock(
            id="pi_123", client_secret="pi_123_secret_abc"
        )

        result = stripe_service.create_payment_intent(
            amount_cents=2500, currency="USD", metadata=self.METADATA
        )

        assert result == {"client_secret": "pi_123_secret_abc", "payment_intent_id": "pi_123"}
        params = mock_stripe_client.payment_intents.create.call_args.kwargs["params"]
        assert params["amount"] == 2500
        assert params["currency"] == "usd"
        assert params["metadata"] == self.METADATA
        assert params["receipt_email"] == "jane@example.com"

    def test_stripe_error_wrapped(
        self, stripe_service: StripeService, mock_stripe_client: MagicMock
    ) -> None:
        mock_stripe_client.payment_intents.create.side_effect = stripe.CardError(
            "Card declined", param="card", code="card_declined"
        )

        with pytest.raises(StripeServiceError) as exc_info:
            stripe_service.create_payment_intent(
                amount_cents=2500, currency="usd", metadata=self.METADATA
            )
        assert exc_info.value.stripe_error_code == "card_declined"
