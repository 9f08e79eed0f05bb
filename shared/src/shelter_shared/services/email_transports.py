"""Email transports used by the notification dispatcher.

Two transports are supported:
- SesTransport: Amazon SES through boto3
- SmtpTransport: any SMTP relay through smtplib (implicit TLS or STARTTLS)

A transport either returns a DeliveryResult or raises EmailTransportError.
Credentials are never logged.
"""

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from shelter_shared.config import EmailSettings
from shelter_shared.models.notification import DeliveryResult, EmailMessage

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 15


class NotificationError(Exception):
    """Base class for receipt delivery failures."""


class EmailTransportError(NotificationError):
    """Raised when a single transport fails to deliver a message."""

    def __init__(self, message: str, transport: str | None = None) -> None:
        super().__init__(message)
        self.transport = transport


class EmailTransport(Protocol):
    """A way of delivering one EmailMessage."""

    name: str

    def send(self, message: EmailMessage) -> DeliveryResult: ...


class SesTransport:
    """Deliver email through Amazon SES."""

    name = "ses"

    def __init__(
        self,
        from_email: str,
        *,
        sender_name: str = "HALT",
        region: str | None = None,
        reply_to: str | None = None,
        client: Any | None = None,
    ) -> None:
        self._source = formataddr((sender_name, from_email))
        self._reply_to = reply_to
        self._client = client or boto3.client("ses", region_name=region)

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> "SesTransport":
        if not settings.ses_from_email:
            raise ValueError("SES transport needs SES_FROM_EMAIL")
        return cls(
            settings.ses_from_email,
            sender_name=settings.sender_name,
            region=settings.ses_region,
            reply_to=settings.reply_to,
        )

    def send(self, message: EmailMessage) -> DeliveryResult:
        """Send a message with HTML and text bodies.

        Raises:
            EmailTransportError: If SES rejects the message or is unreachable.
        """
        kwargs: dict[str, Any] = {
            "Source": self._source,
            "Destination": {"ToAddresses": [message.to]},
            "Message": {
                "Subject": {"Data": message.subject, "Charset": "UTF-8"},
                "Body": {
                    "Text": {"Data": message.text, "Charset": "UTF-8"},
                    "Html": {"Data": message.html, "Charset": "UTF-8"},
                },
            },
        }
        if self._reply_to:
            kwargs["ReplyToAddresses"] = [self._reply_to]

        try:
            response = self._client.send_email(**kwargs)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            raise EmailTransportError(f"SES error ({error_code}): {e}", self.name) from e
        except BotoCoreError as e:
            raise EmailTransportError(f"SES error: {e}", self.name) from e

        message_id = response.get("MessageId")
        logger.info("Sent email via SES (message_id=%s)", message_id)
        return DeliveryResult(transport=self.name, message_id=message_id)


class SmtpTransport:
    """Deliver email through an authenticated SMTP relay."""

    name = "smtp"

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        *,
        from_email: str | None = None,
        sender_name: str = "HALT",
        use_ssl: bool = True,
        reply_to: str | None = None,
        timeout: float = SMTP_TIMEOUT_SECONDS,
    ) -> None:
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._from = formataddr((sender_name, from_email or user))
        self._use_ssl = use_ssl
        self._reply_to = reply_to
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: EmailSettings) -> "SmtpTransport":
        if not settings.smtp_configured:
            raise ValueError("SMTP transport needs SMTP_HOST, SMTP_PORT, SMTP_USER and SMTP_PASS")
        return cls(
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_user,
            settings.smtp_password,
            from_email=settings.smtp_from,
            sender_name=settings.sender_name,
            use_ssl=settings.smtp_use_ssl,
            reply_to=settings.reply_to,
        )

    def format_message(self, message: EmailMessage) -> MIMEMultipart:
        """Format as a multipart/alternative MIME message."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = self._from
        msg["To"] = message.to
        msg["Message-ID"] = make_msgid()
        if self._reply_to:
            msg["Reply-To"] = self._reply_to

        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self._use_ssl:
            return smtplib.SMTP_SSL(self._host, self._port, timeout=self._timeout)
        server = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        try:
            server.starttls()
        except (smtplib.SMTPException, OSError):
            server.close()
            raise
        return server

    def send(self, message: EmailMessage) -> DeliveryResult:
        """Send via SMTP.

        Raises:
            EmailTransportError: On any SMTP or connection failure.
        """
        formatted = self.format_message(message)
        try:
            with self._connect() as server:
                server.login(self._user, self._password)
                server.send_message(formatted)
        except smtplib.SMTPException as e:
            raise EmailTransportError(f"SMTP error: {e}", self.name) from e
        except OSError as e:
            raise EmailTransportError(f"SMTP connection failed: {e}", self.name) from e

        logger.info("Sent email via SMTP host %s", self._host)
        return DeliveryResult(transport=self.name, message_id=formatted["Message-ID"])
