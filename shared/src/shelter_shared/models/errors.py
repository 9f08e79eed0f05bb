"""Standard error codes for the donations backend.

Every domain failure that reaches the HTTP layer is raised as a ShelterError
carrying one of these codes. api.exceptions maps the codes to HTTP statuses.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Webhook rejection codes (ERR_WEBHOOK_001-ERR_WEBHOOK_005)
    MISSING_WEBHOOK_SIGNATURE = "ERR_WEBHOOK_001"
    INVALID_WEBHOOK_SIGNATURE = "ERR_WEBHOOK_002"
    WEBHOOK_SECRET_NOT_CONFIGURED = "ERR_WEBHOOK_003"
    INVALID_WEBHOOK_PAYLOAD = "ERR_WEBHOOK_004"
    UNPROCESSABLE_EVENT = "ERR_WEBHOOK_005"
    WEBHOOK_PROCESSING_FAILED = "ERR_WEBHOOK_006"

    # Stripe API codes (ERR_STRIPE_001-ERR_STRIPE_002)
    STRIPE_API_ERROR = "ERR_STRIPE_001"
    STRIPE_NOT_CONFIGURED = "ERR_STRIPE_002"

    # Donation codes
    INVALID_DONATION_REQUEST = "ERR_DONATION_001"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.MISSING_WEBHOOK_SIGNATURE: "Missing stripe-signature header",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.WEBHOOK_SECRET_NOT_CONFIGURED: "Webhook secret not configured",
    ErrorCode.INVALID_WEBHOOK_PAYLOAD: "Webhook payload is not valid JSON",
    ErrorCode.UNPROCESSABLE_EVENT: "Cannot process event",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "Webhook processing failed",
    ErrorCode.STRIPE_API_ERROR: "Stripe API error occurred",
    ErrorCode.STRIPE_NOT_CONFIGURED: "Stripe is not configured",
    ErrorCode.INVALID_DONATION_REQUEST: "Invalid donation request",
}

ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.MISSING_WEBHOOK_SIGNATURE: "Send the request through Stripe webhooks",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.WEBHOOK_SECRET_NOT_CONFIGURED: "Set STRIPE_WEBHOOK_SECRET or the SSM parameter",
    ErrorCode.INVALID_WEBHOOK_PAYLOAD: "Resend the event from the Stripe dashboard",
    ErrorCode.UNPROCESSABLE_EVENT: "Record the donation manually from the Stripe dashboard",
    ErrorCode.WEBHOOK_PROCESSING_FAILED: "Stripe will retry the delivery",
    ErrorCode.STRIPE_API_ERROR: "Try again or contact support",
    ErrorCode.STRIPE_NOT_CONFIGURED: "Set STRIPE_SECRET_KEY or the SSM parameter",
    ErrorCode.INVALID_DONATION_REQUEST: "Check the donation amount and donor details",
}


class ToolError(BaseModel):
    """Standard error response body for failed API operations."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ToolError":
        """Create a ToolError from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            A ToolError with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class ShelterError(Exception):
    """Exception raised by donation operations.

    Converted to an HTTP response by the handlers in api.exceptions.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_tool_error(self) -> ToolError:
        """Convert this exception to a ToolError response body."""
        error = ToolError.from_code(self.code, self.details)
        error.message = self.message
        return error


class WebhookError(ShelterError):
    """Webhook delivery rejected before or during processing.

    Rendered as ``{"error": ..., "received": false}`` so Stripe's dashboard
    shows the reason next to the failed delivery.
    """
