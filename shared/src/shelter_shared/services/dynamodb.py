"""Thin DynamoDB wrapper shared by the donation store and the audit log.

Table names are "{prefix}-{table}". The prefix comes from
DYNAMODB_TABLE_PREFIX and defaults to "halt-{ENVIRONMENT}".
DYNAMODB_ENDPOINT_URL points the client at DynamoDB Local.
"""

import os
from typing import Any

import boto3
from botocore.exceptions import ClientError

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

_service: "DynamoDBService | None" = None


def get_dynamodb_service(environment: str | None = None) -> "DynamoDBService":
    """Return the process-wide DynamoDBService, creating it on first use.

    Args:
        environment: Only honoured by the call that creates the instance.
    """
    global _service
    if _service is None:
        _service = DynamoDBService(environment)
    return _service


def reset_dynamodb_service() -> None:
    """Drop the process-wide instance so the next call builds a new client."""
    global _service
    _service = None


class DynamoDBService:
    """Item-level operations on prefixed tables."""

    def __init__(self, environment: str | None = None) -> None:
        self.environment = environment or os.getenv("ENVIRONMENT", "dev")
        self.name_prefix = os.getenv("DYNAMODB_TABLE_PREFIX") or f"halt-{self.environment}"
        self._dynamodb = boto3.resource(
            "dynamodb", endpoint_url=os.getenv("DYNAMODB_ENDPOINT_URL") or None
        )

    def table_name(self, table: str) -> str:
        return f"{self.name_prefix}-{table}"

    def _table(self, table: str) -> Any:
        return self._dynamodb.Table(self.table_name(table))

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Fetch one item by primary key, or None."""
        response = self._table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write an item, optionally guarded by a condition.

        Args:
            table: Table name without prefix
            item: Full item
            condition_expression: DynamoDB condition the write must satisfy

        Returns:
            False when the condition rejected the write, True otherwise.

        Raises:
            ClientError: Any failure other than a failed condition.
        """
        kwargs: dict[str, Any] = {"Item": item}
        if condition_expression:
            kwargs["ConditionExpression"] = condition_expression
        try:
            self._table(table).put_item(**kwargs)
        except ClientError as e:
            if e.response["Error"]["Code"] == CONDITIONAL_CHECK_FAILED:
                return False
            raise
        return True

    def scan(
        self,
        table: str,
        filter_expression: Any | None = None,
    ) -> list[dict[str, Any]]:
        """Scan the whole table, following LastEvaluatedKey.

        Args:
            table: Table name without prefix
            filter_expression: boto3 condition built with Attr, if any
        """
        kwargs: dict[str, Any] = {}
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        table_resource = self._table(table)
        while True:
            response = table_resource.scan(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key
