"""Email notification models."""

from pydantic import BaseModel, ConfigDict, Field


class EmailMessage(BaseModel):
    """A formatted email addressed to one recipient."""

    model_config = ConfigDict(strict=True, frozen=True)

    to: str
    subject: str
    html: str
    text: str


class DeliveryResult(BaseModel):
    """Outcome of a successful delivery."""

    model_config = ConfigDict(strict=True)

    transport: str = Field(..., description="Transport that delivered the email", examples=["ses"])
    message_id: str | None = Field(default=None, description="Provider message ID")
    fallback_used: bool = Field(
        default=False,
        description="True when the primary transport failed and the secondary delivered",
    )
