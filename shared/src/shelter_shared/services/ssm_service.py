"""SSM Parameter Store lookups for HALT secrets.

Secrets live under /halt/{environment}/{group}/{name} as SecureString
parameters. Values are cached per process for SSM_CACHE_TTL seconds
(default 300).
"""

import logging
import os
import time
from functools import lru_cache
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

PARAMETER_ROOT = "/halt"
DEFAULT_CACHE_TTL = 300


def parameter_path(environment: str, group: str, name: str) -> str:
    """Build the parameter name for a secret.

    >>> parameter_path("prod", "stripe", "webhook_secret")
    '/halt/prod/stripe/webhook_secret'
    """
    return f"{PARAMETER_ROOT}/{environment}/{group}/{name}"


class SSMServiceError(Exception):
    """Raised when a parameter cannot be read."""

    def __init__(self, message: str, not_found: bool = False) -> None:
        super().__init__(message)
        self.not_found = not_found


class SSMService:
    """Reads decrypted SecureString parameters with a short-lived cache.

    Usage:
        ssm = get_ssm_service()
        secret = ssm.get_parameter(parameter_path("dev", "stripe", "webhook_secret"))
    """

    def __init__(self, cache_ttl: float | None = None, client: Any | None = None) -> None:
        self._client = client or boto3.client("ssm")
        self._cache_ttl = (
            float(os.environ.get("SSM_CACHE_TTL", DEFAULT_CACHE_TTL))
            if cache_ttl is None
            else cache_ttl
        )
        self._cache: dict[str, tuple[str, float]] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of a parameter.

        Args:
            name: Full parameter name, see parameter_path()
            use_cache: Serve a cached value younger than the TTL

        Raises:
            SSMServiceError: If the parameter is missing or unreadable.
                not_found is True only for a missing parameter.
        """
        if use_cache:
            cached = self._cache.get(name)
            if cached and time.monotonic() - cached[1] < self._cache_ttl:
                return cached[0]

        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            if code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}", not_found=True) from e
            if code == "AccessDeniedException":
                raise SSMServiceError(
                    f"Access denied to SSM parameter {name} (needs ssm:GetParameter and kms:Decrypt)"
                ) from e
            raise SSMServiceError(f"Failed to read SSM parameter {name}: {code}") from e
        except BotoCoreError as e:
            raise SSMServiceError(f"Failed to read SSM parameter {name}: {e}") from e

        value = response["Parameter"]["Value"]
        self._cache[name] = (value, time.monotonic())
        logger.info("Loaded SSM parameter %s", name)
        return value

    def clear_cache(self) -> None:
        self._cache.clear()


@lru_cache(maxsize=1)
def get_ssm_service() -> SSMService:
    """Get the process-wide SSMService."""
    return SSMService()
