"""Pagination helpers shared by the DynamoDB repositories."""

from typing import Any

from mypy_boto3_dynamodb.service_resource import Table


def scan_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Scan a table following ``LastEvaluatedKey`` until exhausted."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Query a table following ``LastEvaluatedKey`` until exhausted."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key
