"""FastAPI exception handlers for converting ShelterError to HTTP responses.

This module provides exception handlers that convert domain errors to HTTP
responses with a consistent JSON structure:

- WebhookError renders as {"error": ..., "received": false, "error_code": ...}
  so Stripe's dashboard shows the reason next to the failed delivery.
- Any other ShelterError renders as a ToolError body.
- Anything else is logged and rendered as a 500; on the webhook paths it
  uses the webhook body with ERR_WEBHOOK_006.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: Rejected webhook deliveries and invalid requests
- 500 Internal Server Error: Unexpected webhook processing failures
- 502 Bad Gateway: Stripe API failures
- 503 Service Unavailable: Stripe not configured

Usage:
    from shelter_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from shelter_shared.models.errors import ErrorCode, ShelterError, WebhookError
from shelter_shared.utils.logging import get_logger

logger = get_logger(__name__)

WEBHOOK_PATHS = frozenset({"/api/donations/webhook", "/api/webhooks/stripe"})

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Webhook rejections -> 400 so Stripe shows the reason
    ErrorCode.MISSING_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: HTTP_400_BAD_REQUEST,
    ErrorCode.WEBHOOK_SECRET_NOT_CONFIGURED: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_WEBHOOK_PAYLOAD: HTTP_400_BAD_REQUEST,
    ErrorCode.UNPROCESSABLE_EVENT: HTTP_400_BAD_REQUEST,
    # Unexpected failure -> 500, Stripe retries
    ErrorCode.WEBHOOK_PROCESSING_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    # Upstream payment provider
    ErrorCode.STRIPE_API_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.STRIPE_NOT_CONFIGURED: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.INVALID_DONATION_REQUEST: HTTP_400_BAD_REQUEST,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode.

    Args:
        code: The ErrorCode to map

    Returns:
        HTTP status code, defaults to 400 if not explicitly mapped.
    """
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def webhook_error_handler(request: Request, exc: WebhookError) -> JSONResponse:
    """Render a rejected or failed webhook delivery."""
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("Webhook failed (%s): %s", exc.code.value, exc.message)
    else:
        logger.warning("Webhook rejected (%s): %s", exc.code.value, exc.message)

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.message,
            "received": False,
            "error_code": exc.code.value,
        },
    )


async def shelter_error_handler(request: Request, exc: ShelterError) -> JSONResponse:
    """Handle ShelterError exceptions and convert to JSON response.

    Args:
        request: The incoming request (unused but required by FastAPI)
        exc: The ShelterError exception

    Returns:
        JSONResponse with ToolError body and the mapped status code.
    """
    status_code = get_http_status_for_error(exc.code)
    tool_error = exc.to_tool_error()

    return JSONResponse(
        status_code=status_code,
        content=tool_error.model_dump(mode="json"),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render an exception no other handler caught.

    Webhook deliveries get the webhook error body so Stripe records the
    failure and retries; other routes get a bare 500 body.
    """
    logger.error(
        "Unhandled %s on %s", type(exc).__name__, request.url.path, exc_info=exc
    )
    if request.url.path in WEBHOOK_PATHS:
        return await webhook_error_handler(
            request, WebhookError(ErrorCode.WEBHOOK_PROCESSING_FAILED)
        )
    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Starlette picks the handler for the most specific class, so WebhookError
    gets its own body even though it is a ShelterError.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(WebhookError, webhook_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ShelterError, shelter_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
