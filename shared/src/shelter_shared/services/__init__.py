"""Backend services for HALT Shelter donations."""

from .donation_store import DonationStore
from .dynamodb import DynamoDBService, get_dynamodb_service
from .email_transports import (
    EmailTransportError,
    NotificationError,
    SesTransport,
    SmtpTransport,
)
from .notification_service import (
    AllTransportsFailedError,
    NoTransportConfiguredError,
    NotificationDispatcher,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import (
    StripeConfigurationError,
    StripeService,
    StripeServiceError,
    get_stripe_service,
)
from .webhook_handler import DonationWebhookHandler, UnprocessableEventError

__all__ = [
    "DonationStore",
    "DynamoDBService",
    "get_dynamodb_service",
    "EmailTransportError",
    "NotificationError",
    "SesTransport",
    "SmtpTransport",
    "AllTransportsFailedError",
    "NoTransportConfiguredError",
    "NotificationDispatcher",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeConfigurationError",
    "StripeService",
    "StripeServiceError",
    "get_stripe_service",
    "DonationWebhookHandler",
    "UnprocessableEventError",
]
