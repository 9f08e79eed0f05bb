"""Unit tests for SSMService against moto SSM."""

from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import ClientError

from shelter_shared.services.ssm_service import SSMService, SSMServiceError, parameter_path

NAME = "/halt/test/stripe/webhook_secret"


@pytest.fixture
def ssm_client(aws: None) -> Any:
    client = boto3.client("ssm")
    client.put_parameter(Name=NAME, Value="whsec_from_ssm", Type="SecureString")
    return client


class TestParameterPath:
    def test_layout(self) -> None:
        assert parameter_path("prod", "stripe", "secret_key") == "/halt/prod/stripe/secret_key"


class TestGetParameter:
    """Decrypted reads, caching and error mapping."""

    def test_reads_secure_string(self, ssm_client: Any) -> None:
        assert SSMService().get_parameter(NAME) == "whsec_from_ssm"

    def test_missing_parameter(self, ssm_client: Any) -> None:
        with pytest.raises(SSMServiceError) as exc_info:
            SSMService().get_parameter("/halt/test/stripe/nope")

        assert exc_info.value.not_found is True

    def test_cached_within_ttl(self, ssm_client: Any) -> None:
        service = SSMService(cache_ttl=300)
        service.get_parameter(NAME)
        ssm_client.put_parameter(Name=NAME, Value="whsec_rotated", Type="SecureString", Overwrite=True)

        assert service.get_parameter(NAME) == "whsec_from_ssm"
        assert service.get_parameter(NAME, use_cache=False) == "whsec_rotated"

    def test_expired_cache_refetches(self, ssm_client: Any) -> None:
        service = SSMService(cache_ttl=0)
        service.get_parameter(NAME)
        ssm_client.put_parameter(Name=NAME, Value="whsec_rotated", Type="SecureString", Overwrite=True)

        assert service.get_parameter(NAME) == "whsec_rotated"

    def test_access_denied_is_not_not_found(self) -> None:
        client = MagicMock()
        client.get_parameter.side_effect = ClientError(
            {"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetParameter"
        )

        with pytest.raises(SSMServiceError, match="Access denied") as exc_info:
            SSMService(client=client).get_parameter(NAME)

        assert exc_info.value.not_found is False
