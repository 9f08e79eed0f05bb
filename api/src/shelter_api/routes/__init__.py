"""API routes package.

Routers are organized by domain:

- health: Health check endpoints
- webhooks: Stripe webhook receiver
- donations: PaymentIntent creation and public statistics

All routers are registered in main.py with /api prefix.
"""

from shelter_api.routes.donations import router as donations_router
from shelter_api.routes.health import router as health_router
from shelter_api.routes.webhooks import router as webhooks_router

__all__ = [
    "donations_router",
    "health_router",
    "webhooks_router",
]
