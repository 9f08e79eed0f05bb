"""Pytest configuration and fixtures for HALT Shelter donations backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto
- Stripe webhook payloads and real HMAC signatures
- Fake email transports for the notification dispatcher
"""

import hashlib
import hmac
import json
import os
import time
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

from shelter_shared.models.notification import DeliveryResult, EmailMessage
from shelter_shared.services.email_transports import EmailTransportError

# === Environment Setup ===

TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
TEST_REGION = "eu-west-1"
TABLE_PREFIX = "test-halt"

os.environ["AWS_DEFAULT_REGION"] = TEST_REGION
os.environ["DYNAMODB_TABLE_PREFIX"] = TABLE_PREFIX
os.environ["ENVIRONMENT"] = "test"
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.pop("DYNAMODB_ENDPOINT_URL", None)

# Email configuration comes from fixtures, never from the developer's shell
for _var in (
    "SES_FROM_EMAIL",
    "SES_REGION",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USER",
    "SMTP_PASS",
    "SMTP_FROM",
    "SMTP_SECURE",
    "USE_SES_FIRST",
):
    os.environ.pop(_var, None)


# === Service Reset ===


@pytest.fixture(autouse=True)
def stripe_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Stripe credentials for every test; individual tests may delete them."""
    monkeypatch.setenv("STRIPE_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)
    monkeypatch.setenv("STRIPE_SECRET_KEY", "sk_test_fake")


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws need fresh boto3 clients created inside the mock
    context rather than ones cached by a previous test.
    """
    from shelter_api.dependencies import reset_services
    from shelter_shared.services.ssm_service import get_ssm_service

    def _reset() -> None:
        reset_services()
        get_ssm_service.cache_clear()

    _reset()
    yield
    _reset()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws() -> Generator[None, None, None]:
    """Run the test inside a moto mock_aws context."""
    with mock_aws():
        yield


@pytest.fixture
def create_tables(aws: None) -> None:
    """Create the donations and webhook audit tables."""
    client = boto3.client("dynamodb", region_name=TEST_REGION)
    client.create_table(
        TableName=f"{TABLE_PREFIX}-donations",
        KeySchema=[{"AttributeName": "transaction_id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "transaction_id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )
    client.create_table(
        TableName=f"{TABLE_PREFIX}-stripe-webhook-events",
        KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def donations_table(create_tables: None) -> Any:
    """boto3 Table resource for asserting on stored donations."""
    return boto3.resource("dynamodb", region_name=TEST_REGION).Table(
        f"{TABLE_PREFIX}-donations"
    )


@pytest.fixture
def audit_table(create_tables: None) -> Any:
    """boto3 Table resource for asserting on the webhook audit log."""
    return boto3.resource("dynamodb", region_name=TEST_REGION).Table(
        f"{TABLE_PREFIX}-stripe-webhook-events"
    )


@pytest.fixture
def db(create_tables: None) -> Any:
    """DynamoDBService bound to the mocked tables."""
    from shelter_shared.services.dynamodb import get_dynamodb_service

    return get_dynamodb_service()


# === Email Fixtures ===


class FakeTransport:
    """In-memory transport that records messages or fails on demand."""

    def __init__(self, name: str, *, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.sent: list[EmailMessage] = []
        self.attempts = 0

    def send(self, message: EmailMessage) -> DeliveryResult:
        self.attempts += 1
        if self.fail:
            raise EmailTransportError(f"{self.name} is down", self.name)
        self.sent.append(message)
        return DeliveryResult(transport=self.name, message_id=f"{self.name}-{len(self.sent)}")


@pytest.fixture
def primary_transport() -> FakeTransport:
    return FakeTransport("primary")


@pytest.fixture
def secondary_transport() -> FakeTransport:
    return FakeTransport("secondary")


@pytest.fixture
def dispatcher(primary_transport: FakeTransport, secondary_transport: FakeTransport) -> Any:
    """Dispatcher with two fake transports."""
    from shelter_shared.services.notification_service import NotificationDispatcher

    return NotificationDispatcher([primary_transport, secondary_transport])


# === Stripe Fixtures ===


@pytest.fixture
def stripe_customer_lookup() -> MagicMock:
    """StripeService stand-in for customer lookups (nothing found by default)."""
    service = MagicMock()
    service.get_customer_contact.return_value = (None, None)
    return service


@pytest.fixture
def webhook_handler(db: Any, dispatcher: Any, stripe_customer_lookup: MagicMock) -> Any:
    """DonationWebhookHandler wired to moto DynamoDB and fake transports."""
    from shelter_shared.services.donation_store import DonationStore
    from shelter_shared.services.webhook_handler import DonationWebhookHandler

    return DonationWebhookHandler(
        store=DonationStore(db),
        stripe_service=stripe_customer_lookup,
        dispatcher=dispatcher,
        db=db,
    )


@pytest.fixture
def sign() -> Callable[..., str]:
    """Build a Stripe-Signature header for a payload.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """

    def _sign(
        payload: bytes,
        secret: str = TEST_WEBHOOK_SECRET,
        timestamp: int | None = None,
    ) -> str:
        ts = str(int(time.time()) if timestamp is None else timestamp)
        signed_payload = f"{ts}.{payload.decode('utf-8')}"
        signature = hmac.new(
            secret.encode("utf-8"),
            signed_payload.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return f"t={ts},v1={signature}"

    return _sign


@pytest.fixture
def make_event() -> Callable[..., dict[str, Any]]:
    """Build a Stripe event wrapping a PaymentIntent-like object."""

    def _make(
        event_type: str = "payment_intent.succeeded",
        *,
        event_id: str = "evt_1",
        intent_id: str = "pi_1",
        amount: Any = 2500,
        currency: str = "usd",
        metadata: dict[str, Any] | None = None,
        **fields: Any,
    ) -> dict[str, Any]:
        intent: dict[str, Any] = {
            "id": intent_id,
            "object": "payment_intent",
            "amount": amount,
            "currency": currency,
            "metadata": (
                {"donor_name": "Jane Doe", "donor_email": "jane@example.com"}
                if metadata is None
                else metadata
            ),
        }
        intent.update(fields)
        return {
            "id": event_id,
            "type": event_type,
            "created": int(time.time()),
            "data": {"object": intent},
        }

    return _make


@pytest.fixture
def encode() -> Callable[[dict[str, Any]], bytes]:
    """Serialize an event the way Stripe sends it."""

    def _encode(event: dict[str, Any]) -> bytes:
        return json.dumps(event, separators=(",", ":")).encode("utf-8")

    return _encode


@pytest.fixture
def transport_factory() -> type[FakeTransport]:
    """The FakeTransport class, for tests that need extra transports."""
    return FakeTransport
