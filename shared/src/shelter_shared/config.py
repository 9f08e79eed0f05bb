"""Email delivery configuration.

EmailSettings is built once at process start and passed to the
NotificationDispatcher; nothing reads the email environment variables
after that.

Environment variables:
    SES_FROM_EMAIL, SES_REGION
    SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_SECURE
    USE_SES_FIRST (default true)
    EMAIL_SENDER_NAME (default "HALT"), EMAIL_REPLY_TO
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SMTP_PORT = 465


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() == "true"


class EmailSettings(BaseModel):
    """Read-only email transport configuration."""

    model_config = ConfigDict(frozen=True)

    sender_name: str = "HALT"
    reply_to: str | None = None

    # Amazon SES
    ses_from_email: str | None = None
    ses_region: str | None = None

    # SMTP
    smtp_host: str | None = None
    smtp_port: int | None = None
    smtp_user: str | None = None
    smtp_password: str | None = Field(default=None, repr=False)
    smtp_from: str | None = None
    smtp_secure: bool | None = None

    use_ses_first: bool = True

    @property
    def ses_configured(self) -> bool:
        """SES is usable when a verified sender address is configured."""
        return bool(self.ses_from_email)

    @property
    def smtp_configured(self) -> bool:
        """SMTP is usable only when host, port, user and password are all set."""
        return bool(
            self.smtp_host and self.smtp_port and self.smtp_user and self.smtp_password
        )

    @property
    def smtp_use_ssl(self) -> bool:
        """Implicit TLS when SMTP_SECURE=true or the port is 465."""
        return bool(self.smtp_secure) or self.smtp_port == DEFAULT_SMTP_PORT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "EmailSettings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read instead of os.environ (for tests)

        Returns:
            Frozen EmailSettings instance
        """
        env = os.environ if environ is None else environ

        smtp_port_raw = env.get("SMTP_PORT")
        smtp_port = int(smtp_port_raw) if smtp_port_raw else None
        smtp_secure_raw = env.get("SMTP_SECURE")

        return cls(
            sender_name=env.get("EMAIL_SENDER_NAME") or "HALT",
            reply_to=env.get("EMAIL_REPLY_TO") or None,
            ses_from_email=env.get("SES_FROM_EMAIL") or None,
            ses_region=env.get("SES_REGION") or None,
            smtp_host=env.get("SMTP_HOST") or None,
            smtp_port=smtp_port,
            smtp_user=env.get("SMTP_USER") or None,
            smtp_password=env.get("SMTP_PASS") or None,
            smtp_from=env.get("SMTP_FROM") or None,
            smtp_secure=(
                _env_bool(smtp_secure_raw, False) if smtp_secure_raw is not None else None
            ),
            use_ses_first=_env_bool(env.get("USE_SES_FIRST"), True),
        )
