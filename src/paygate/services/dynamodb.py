"""Thin DynamoDB access layer for the ledger and entitlement tables.

Table names are ``{prefix}-{table}``; the prefix defaults to
``paygate-{environment}`` (see WebhookSettings.dynamodb_table_prefix).
All calls are blocking; async callers wrap them in ``asyncio.to_thread``.
"""

from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError

CONDITIONAL_CHECK_FAILED = "ConditionalCheckFailedException"

_service: "DynamoDBService | None" = None


def get_dynamodb_service(table_prefix: str | None = None) -> "DynamoDBService":
    """Return the process-wide DynamoDBService, creating it on first use.

    ``table_prefix`` only applies to the call that creates the instance.
    """
    global _service
    if _service is None:
        _service = DynamoDBService(table_prefix or "paygate-dev")
    return _service


def reset_dynamodb_service() -> None:
    """Drop the shared instance so the next call builds a new one (tests)."""
    global _service
    _service = None


class DynamoDBService:
    """Item-level operations against prefixed tables."""

    def __init__(self, table_prefix: str) -> None:
        self.table_prefix = table_prefix
        self._resource = boto3.resource("dynamodb")

    def table(self, name: str) -> Any:
        return self._resource.Table(f"{self.table_prefix}-{name}")

    def get_item(self, table: str, key: dict[str, Any]) -> dict[str, Any] | None:
        """Strongly consistent read; None when the key is absent."""
        response = self.table(table).get_item(Key=key, ConsistentRead=True)
        return response.get("Item")

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Write ``item``, optionally guarded by a condition.

        Returns:
            False if the condition rejected the write, True otherwise.
        """
        params: dict[str, Any] = {"Item": item}
        if condition_expression:
            params["ConditionExpression"] = condition_expression
        try:
            self.table(table).put_item(**params)
        except ClientError as e:
            if e.response["Error"]["Code"] == CONDITIONAL_CHECK_FAILED:
                return False
            raise
        return True

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        """Apply an update expression and return the item as stored afterwards."""
        params: dict[str, Any] = {
            "Key": key,
            "UpdateExpression": update_expression,
            "ExpressionAttributeValues": expression_attribute_values,
            "ReturnValues": "ALL_NEW",
        }
        if expression_attribute_names:
            params["ExpressionAttributeNames"] = expression_attribute_names
        return self.table(table).update_item(**params).get("Attributes")

    def delete_item(self, table: str, key: dict[str, Any]) -> None:
        # Deleting a missing key is not an error in DynamoDB
        self.table(table).delete_item(Key=key)

    def query_by_gsi(
        self,
        table: str,
        index_name: str,
        key_name: str,
        key_value: Any,
    ) -> list[dict[str, Any]]:
        """Collect every item whose ``key_name`` equals ``key_value`` on a GSI.

        Follows ``LastEvaluatedKey`` until the result set is exhausted.
        """
        params: dict[str, Any] = {
            "IndexName": index_name,
            "KeyConditionExpression": Key(key_name).eq(key_value),
        }
        items: list[dict[str, Any]] = []
        while True:
            page = self.table(table).query(**params)
            items.extend(page.get("Items", []))
            if "LastEvaluatedKey" not in page:
                return items
            params["ExclusiveStartKey"] = page["LastEvaluatedKey"]
