"""FastAPI dependency injection providers for shared services.

Services are lazily instantiated on first use and cached with @lru_cache,
so the email configuration is read from the environment exactly once per
process.

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── DonationStore
        │       └── DonationWebhookHandler
        └── DonationWebhookHandler (audit log)
    EmailSettings
        └── NotificationDispatcher
                └── DonationWebhookHandler
    StripeService (singleton via get_stripe_service)
        └── DonationWebhookHandler

Testing:
    Use app.dependency_overrides to swap in fakes, and reset_services() to
    clear cached instances between tests.
"""

from functools import lru_cache

from shelter_shared.config import EmailSettings
from shelter_shared.services.donation_store import DonationStore
from shelter_shared.services.dynamodb import get_dynamodb_service
from shelter_shared.services.notification_service import NotificationDispatcher
from shelter_shared.services.stripe_service import StripeService
from shelter_shared.services.stripe_service import get_stripe_service as _shared_stripe_service
from shelter_shared.services.webhook_handler import DonationWebhookHandler


@lru_cache
def get_email_settings() -> EmailSettings:
    """Get the email settings read from the environment at first use."""
    return EmailSettings.from_env()


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Get cached NotificationDispatcher built from the email settings."""
    return NotificationDispatcher.from_settings(get_email_settings())


@lru_cache
def get_donation_store() -> DonationStore:
    """Get cached DonationStore instance.

    Returns:
        DonationStore configured with DynamoDB singleton.
    """
    return DonationStore(db=get_dynamodb_service())


def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance."""
    return _shared_stripe_service()


@lru_cache
def get_webhook_handler() -> DonationWebhookHandler:
    """Get cached DonationWebhookHandler instance.

    Returns:
        DonationWebhookHandler configured with all required dependencies.
    """
    return DonationWebhookHandler(
        store=get_donation_store(),
        stripe_service=get_stripe_service(),
        dispatcher=get_notification_dispatcher(),
        db=get_dynamodb_service(),
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB and Stripe singletons.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    from shelter_shared.services.dynamodb import reset_dynamodb_service

    get_email_settings.cache_clear()
    get_notification_dispatcher.cache_clear()
    get_donation_store.cache_clear()
    get_webhook_handler.cache_clear()
    _shared_stripe_service.cache_clear()

    reset_dynamodb_service()
