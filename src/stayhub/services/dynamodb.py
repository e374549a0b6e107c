"""DynamoDB service wrapper for type-safe table operations.

Transient AWS failures (throttling, timeouts, 5xx, dropped connections) are
raised as ``StoreUnavailableError`` so that callers never mistake them for
a business-rule outcome.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import (
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from stayhub.config import get_settings
from stayhub.models.errors import StoreUnavailableError
from stayhub.utils.logging import get_logger

logger = get_logger(__name__)

TRANSIENT_ERROR_CODES = frozenset(
    {
        "InternalServerError",
        "ProvisionedThroughputExceededException",
        "RequestLimitExceeded",
        "ServiceUnavailable",
        "ThrottlingException",
        "TransactionConflictException",
        "TransactionInProgressException",
    }
)

# Transaction cancellations caused by load rather than by a failed condition
TRANSIENT_CANCELLATION_REASONS = frozenset(
    {"ProvisionedThroughputExceeded", "ThrottlingError", "TransactionConflict"}
)

_CONNECTION_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

# Module-level singleton for connection reuse
_dynamodb_service_instance: "DynamoDBService | None" = None


def get_dynamodb_service() -> "DynamoDBService":
    """Get or create the singleton DynamoDB service instance.

    Avoids creating new boto3 clients on every request.
    """
    global _dynamodb_service_instance
    if _dynamodb_service_instance is None:
        _dynamodb_service_instance = DynamoDBService()
    return _dynamodb_service_instance


def reset_dynamodb_service() -> None:
    """Reset the singleton instance (for testing only).

    This allows tests to create a fresh DynamoDBService inside
    a mock_aws context.
    """
    global _dynamodb_service_instance
    _dynamodb_service_instance = None


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Re-raise transient AWS failures as StoreUnavailableError."""
    try:
        yield
    except ClientError as e:
        code = _error_code(e)
        if code in TRANSIENT_ERROR_CODES:
            logger.warning("DynamoDB %s failed transiently: %s", operation, code)
            raise StoreUnavailableError(f"{operation}: {code}") from e
        raise
    except _CONNECTION_ERRORS as e:
        logger.warning("DynamoDB %s could not reach the endpoint: %s", operation, e)
        raise StoreUnavailableError(f"{operation}: {e}") from e


class DynamoDBService:
    """Service for DynamoDB operations with environment-aware table names."""

    def __init__(self, name_prefix: str | None = None, region: str | None = None) -> None:
        """Initialize DynamoDB service.

        Args:
            name_prefix: Table name prefix. Defaults to DYNAMODB_TABLE_PREFIX.
            region: AWS region. Defaults to AWS_DEFAULT_REGION.
        """
        settings = get_settings()
        self.name_prefix = name_prefix or settings.dynamodb_table_prefix
        self.region = region or settings.aws_region
        self._dynamodb = boto3.resource("dynamodb", region_name=self.region)
        self._client = boto3.client("dynamodb", region_name=self.region)

    @property
    def client(self) -> Any:
        """Low-level DynamoDB client (table management, transactions)."""
        return self._client

    def table_name(self, table: str) -> str:
        """Get full table name with prefix."""
        return f"{self.name_prefix}-{table}"

    def _get_table(self, table: str) -> Any:
        """Get DynamoDB table resource."""
        return self._dynamodb.Table(self.table_name(table))

    # Generic CRUD operations

    def get_item(
        self,
        table: str,
        key: dict[str, Any],
        consistent_read: bool = False,
    ) -> dict[str, Any] | None:
        """Get a single item by key.

        Args:
            table: Table name without prefix
            key: Primary key dict
            consistent_read: Use a strongly consistent read

        Returns:
            Item dict or None if not found
        """
        with translate_errors("get_item"):
            response = self._get_table(table).get_item(Key=key, ConsistentRead=consistent_read)
        item: dict[str, Any] | None = response.get("Item")
        return item

    def put_item(
        self,
        table: str,
        item: dict[str, Any],
        condition_expression: str | None = None,
    ) -> bool:
        """Put an item into the table.

        Args:
            table: Table name without prefix
            item: Item to store
            condition_expression: Optional condition for write

        Returns:
            True if successful, False if condition failed
        """
        try:
            kwargs: dict[str, Any] = {"Item": item}
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            with translate_errors("put_item"):
                self._get_table(table).put_item(**kwargs)
            return True
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return False
            raise

    def update_item(
        self,
        table: str,
        key: dict[str, Any],
        update_expression: str,
        expression_attribute_values: dict[str, Any],
        expression_attribute_names: dict[str, str] | None = None,
        condition_expression: str | None = None,
    ) -> dict[str, Any] | None:
        """Update an item with expressions.

        Args:
            table: Table name without prefix
            key: Primary key dict
            update_expression: DynamoDB update expression
            expression_attribute_values: Values for expression
            expression_attribute_names: Names for expression (for reserved words)
            condition_expression: Optional condition for update

        Returns:
            Updated attributes or None if condition failed
        """
        try:
            kwargs: dict[str, Any] = {
                "Key": key,
                "UpdateExpression": update_expression,
                "ExpressionAttributeValues": expression_attribute_values,
                "ReturnValues": "ALL_NEW",
            }
            if expression_attribute_names:
                kwargs["ExpressionAttributeNames"] = expression_attribute_names
            if condition_expression:
                kwargs["ConditionExpression"] = condition_expression

            with translate_errors("update_item"):
                response = self._get_table(table).update_item(**kwargs)
            attrs: dict[str, Any] | None = response.get("Attributes")
            return attrs
        except ClientError as e:
            if _error_code(e) == "ConditionalCheckFailedException":
                return None
            raise

    def query(
        self,
        table: str,
        key_condition: Any,
        index_name: str | None = None,
        filter_expression: Any | None = None,
        scan_index_forward: bool = True,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Query table or GSI, following pagination to the last page.

        Args:
            table: Table name without prefix
            key_condition: Boto3 Key condition
            index_name: GSI name (optional)
            filter_expression: Additional filter (optional)
            scan_index_forward: Sort order (True=ascending)
            consistent_read: Strongly consistent read (base table only)

        Returns:
            List of items
        """
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": key_condition,
            "ScanIndexForward": scan_index_forward,
        }
        if consistent_read:
            kwargs["ConsistentRead"] = True
        if index_name:
            kwargs["IndexName"] = index_name
        if filter_expression is not None:
            kwargs["FilterExpression"] = filter_expression

        items: list[dict[str, Any]] = []
        dynamo_table = self._get_table(table)
        while True:
            with translate_errors("query"):
                response = dynamo_table.query(**kwargs)
            items.extend(response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return items
            kwargs["ExclusiveStartKey"] = last_key

    def query_by_partition(
        self,
        table: str,
        partition_key_name: str,
        partition_key_value: str,
        index_name: str | None = None,
        sort_key_condition: Any | None = None,
        filter_expression: Any | None = None,
        consistent_read: bool = False,
    ) -> list[dict[str, Any]]:
        """Query a table or GSI by partition key.

        Args:
            table: Table name without prefix
            partition_key_name: Name of partition key attribute
            partition_key_value: Value to query
            index_name: GSI name (optional)
            sort_key_condition: Optional sort key condition
            filter_expression: Optional filter on non-key attributes
            consistent_read: Strongly consistent read (base table only)

        Returns:
            List of items in sort key order
        """
        key_condition = Key(partition_key_name).eq(partition_key_value)
        if sort_key_condition is not None:
            key_condition = key_condition & sort_key_condition

        return self.query(
            table,
            key_condition,
            index_name=index_name,
            filter_expression=filter_expression,
            consistent_read=consistent_read,
        )

    def batch_write(
        self,
        table: str,
        put_items: list[dict[str, Any]] | None = None,
        delete_keys: list[dict[str, Any]] | None = None,
    ) -> None:
        """Write and delete many items (not atomic across items).

        Args:
            table: Table name without prefix
            put_items: Items to store (overwriting)
            delete_keys: Primary keys to delete
        """
        with translate_errors("batch_write"):
            with self._get_table(table).batch_writer() as batch:
                for item in put_items or []:
                    batch.put_item(Item=item)
                for key in delete_keys or []:
                    batch.delete_item(Key=key)

    def transact_write(
        self,
        items: list[dict[str, Any]],
    ) -> bool:
        """Execute transactional write for multiple items.

        Args:
            items: List of TransactWriteItem dicts (low-level attribute format)

        Returns:
            True if successful, False if a condition cancelled the transaction
        """
        try:
            with translate_errors("transact_write"):
                self._client.transact_write_items(TransactItems=items)
            return True
        except ClientError as e:
            if _error_code(e) != "TransactionCanceledException":
                raise
            reasons = e.response.get("CancellationReasons") or []
            if any(r.get("Code") in TRANSIENT_CANCELLATION_REASONS for r in reasons):
                raise StoreUnavailableError("transact_write: transaction conflict") from e
            return False
