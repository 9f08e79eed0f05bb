"""Receipt delivery with one fallback hop.

The dispatcher holds at most two configured transports in priority order.
The primary is tried first; if it raises anything the secondary gets the
identical message. There are no further retries. Failures of any kind
surface as NotificationError subclasses.
"""

import logging
from collections.abc import Sequence

from shelter_shared.config import EmailSettings
from shelter_shared.models.donation import is_valid_email
from shelter_shared.models.notification import DeliveryResult, EmailMessage

from .email_transports import (
    EmailTransport,
    EmailTransportError,
    NotificationError,
    SesTransport,
    SmtpTransport,
)

logger = logging.getLogger(__name__)


class NoTransportConfiguredError(NotificationError):
    """Raised when neither SES nor SMTP is configured."""

    def __init__(self) -> None:
        super().__init__("No email transport configured (set SES_FROM_EMAIL or SMTP_*)")


class AllTransportsFailedError(NotificationError):
    """Raised when the primary and the fallback transport both failed."""

    def __init__(
        self,
        primary: str,
        primary_error: EmailTransportError,
        secondary: str,
        secondary_error: EmailTransportError,
    ) -> None:
        super().__init__(
            f"All email transports failed. {primary}: {primary_error}; "
            f"{secondary}: {secondary_error}"
        )
        self.primary_error = primary_error
        self.secondary_error = secondary_error


class NotificationDispatcher:
    """Send a message through the primary transport, falling back once.

    Usage:
        dispatcher = NotificationDispatcher.from_settings(EmailSettings.from_env())
        result = dispatcher.send(to, subject, html, text)
    """

    def __init__(self, transports: Sequence[EmailTransport]) -> None:
        if len(transports) > 2:
            raise ValueError("At most a primary and one fallback transport are supported")
        self._transports = list(transports)

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> "NotificationDispatcher":
        """Build a dispatcher from the configured transports.

        Unconfigured transports are left out. When both are configured,
        use_ses_first decides which one is primary.
        """
        transports: list[EmailTransport] = []
        if settings.ses_configured:
            transports.append(SesTransport.from_settings(settings))
        if settings.smtp_configured:
            transports.append(SmtpTransport.from_settings(settings))
        if len(transports) == 2 and not settings.use_ses_first:
            transports.reverse()

        logger.info(
            "Email transports: %s",
            " -> ".join(t.name for t in transports) or "none",
        )
        return cls(transports)

    @property
    def transport_names(self) -> list[str]:
        return [t.name for t in self._transports]

    @staticmethod
    def _attempt(transport: EmailTransport, message: EmailMessage) -> DeliveryResult:
        """Send through one transport; any failure becomes EmailTransportError."""
        try:
            return transport.send(message)
        except EmailTransportError:
            raise
        except Exception as e:
            raise EmailTransportError(
                f"{transport.name} failed ({type(e).__name__}): {e}", transport.name
            ) from e

    def send(self, to: str, subject: str, html: str, text: str) -> DeliveryResult:
        """Deliver a message.

        Args:
            to: Recipient address
            subject: Subject line
            html: HTML body
            text: Plain-text body

        Returns:
            DeliveryResult of the transport that delivered the message

        Raises:
            EmailTransportError: Recipient is invalid, or the only transport failed
            NoTransportConfiguredError: No transport is configured
            AllTransportsFailedError: Both transports failed
        """
        if not is_valid_email(to):
            raise EmailTransportError(f"Invalid recipient address: {to!r}")
        if not self._transports:
            raise NoTransportConfiguredError()

        message = EmailMessage(to=to, subject=subject, html=html, text=text)
        primary = self._transports[0]

        try:
            return self._attempt(primary, message)
        except EmailTransportError as primary_error:
            if len(self._transports) == 1:
                logger.error("Email via %s failed: %s", primary.name, primary_error)
                raise

            secondary = self._transports[1]
            logger.warning(
                "Email via %s failed, falling back to %s: %s",
                primary.name,
                secondary.name,
                primary_error,
            )
            try:
                result = self._attempt(secondary, message)
            except EmailTransportError as secondary_error:
                logger.error(
                    "Email fallback via %s failed: %s", secondary.name, secondary_error
                )
                raise AllTransportsFailedError(
                    primary.name, primary_error, secondary.name, secondary_error
                ) from secondary_error

            return result.model_copy(update={"fallback_used": True})
