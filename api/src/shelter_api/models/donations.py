"""API models for donation endpoints."""

from pydantic import BaseModel, ConfigDict, Field

MIN_DONATION_CENTS = 100


class DonationMetadata(BaseModel):
    """Donor details stored on the PaymentIntent and read back by the webhook.

    The webhook cannot record a donation without a receipt address, so both
    donor fields are required here.
    """

    model_config = ConfigDict(strict=True)

    donor_name: str = Field(..., min_length=1, max_length=200, examples=["Jane Doe"])
    donor_email: str = Field(..., min_length=3, max_length=254, examples=["jane@example.com"])
    donation_type: str = Field(
        default="one-time",
        description="one-time, monthly, quarterly or annual",
        examples=["monthly"],
    )
    is_emergency: bool = False


class CreatePaymentIntentRequest(BaseModel):
    """Request to start a donation payment."""

    model_config = ConfigDict(
        strict=True,
        json_schema_extra={
            "examples": [
                {
                    "amount": 2500,
                    "currency": "usd",
                    "metadata": {
                        "donor_name": "Jane Doe",
                        "donor_email": "jane@example.com",
                        "donation_type": "one-time",
                        "is_emergency": False,
                    },
                }
            ]
        },
    )

    amount: int = Field(
        ...,
        ge=MIN_DONATION_CENTS,
        description="Amount in minor currency units (cents)",
        examples=[2500],
    )
    currency: str = Field(default="usd", min_length=3, max_length=3, examples=["usd"])
    metadata: DonationMetadata


class CreatePaymentIntentResponse(BaseModel):
    """Client secret for confirming the payment in the browser."""

    client_secret: str
    payment_intent_id: str = Field(..., examples=["pi_3ABC123DEF456"])


class DonationStatsBody(BaseModel):
    """Public donation totals in major currency units.

    Serialized with the camelCase keys the donation page reads.
    """

    model_config = ConfigDict(populate_by_name=True)

    total_raised: float = Field(..., alias="totalRaised", examples=[1250.0])
    donation_count: int = Field(..., alias="donationCount", examples=[42])
    monthly_total: float = Field(..., alias="monthlyTotal", examples=[300.0])
    monthly_count: int = Field(..., alias="monthlyCount", examples=[9])


class DonationStatsResponse(BaseModel):
    """Response wrapper for donation statistics."""

    success: bool = True
    stats: DonationStatsBody
