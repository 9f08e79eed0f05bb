"""API-specific request/response models.

Domain models (DonationRecord, DonationStats, etc.) are in shelter_shared.models
and should be reused here where appropriate.

Modules:
- webhooks: Stripe webhook response models
- donations: PaymentIntent and statistics models
"""

__all__: list[str] = []
