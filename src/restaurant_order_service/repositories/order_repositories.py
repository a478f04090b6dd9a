"""DynamoDB repository classes for orders and order items.

Writes follow the simple-return-value pattern (True/False) so the service layer
can decide on compensating actions. Reads raise ``PersistenceError`` on store
failures, since "not found" and "store unavailable" must be told apart.
"""

import logging
from typing import Any

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_order_service.models.order_models import Order, OrderItem
from restaurant_order_service.repositories.dynamodb_utils import query_all, scan_all
from restaurant_order_service.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)

READ_ERROR = "Erro ao consultar pedidos"


class OrderRepository:
    """Repository for order rows.

    Manages order records in DynamoDB with ``id`` as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order row by id (items are not attached).

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise

        Raises:
            PersistenceError: If the store call fails
        """
        try:
            response = self.table.get_item(Key={"id": order_id})
        except ClientError as e:
            logger.error(f"Failed to get order {order_id}: {e}")
            raise PersistenceError(READ_ERROR) from e

        if "Item" not in response:
            return None

        return Order.from_dynamodb_item(response["Item"])

    def list_orders(self, user_id: str | None = None) -> list[Order]:
        """List orders, newest first.

        Args:
            user_id: Restrict to orders linked to this customer identity

        Returns:
            list: Orders without items attached
        """
        kwargs: dict[str, Any] = {}
        if user_id is not None:
            kwargs["FilterExpression"] = Attr("user_id").eq(user_id)

        try:
            raw_items = scan_all(self.table, **kwargs)
        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")
            raise PersistenceError(READ_ERROR) from e

        orders = [Order.from_dynamodb_item(item) for item in raw_items]
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def save_order(self, order: Order) -> bool:
        """Insert a new order row.

        Args:
            order: Order to save

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(
                Item=order.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(id)",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to save order {order.id}: {e}")
            return False

    def update_fields(self, order_id: str, fields: dict[str, Any]) -> bool:
        """Set the given attributes on an existing order row.

        ``None`` values are skipped so callers can leave attributes untouched.
        There is no version check: the last write wins.

        Args:
            order_id: Order identifier
            fields: Attribute name to new value

        Returns:
            bool: True if update succeeded, False otherwise
        """
        values = {k: v for k, v in fields.items() if v is not None}
        if not values:
            return True

        names = {f"#f{i}": name for i, name in enumerate(values)}
        expression = ", ".join(f"#f{i} = :v{i}" for i in range(len(values)))
        attribute_values = {f":v{i}": value for i, value in enumerate(values.values())}

        try:
            self.table.update_item(
                Key={"id": order_id},
                UpdateExpression=f"SET {expression}",
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=attribute_values,
                ConditionExpression="attribute_exists(id)",
            )
            return True

        except ClientError as e:
            logger.error(f"Failed to update order {order_id}: {e}")
            return False

    def delete_order(self, order_id: str) -> bool:
        """Delete an order row.

        Args:
            order_id: Order identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"id": order_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete order {order_id}: {e}")
            return False


class OrderItemRepository:
    """Repository for order line items.

    Manages order item records in DynamoDB with composite key (order_id, id).
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def list_items(self, order_id: str) -> list[OrderItem]:
        """List all line items of an order.

        Raises:
            PersistenceError: If the store call fails
        """
        try:
            raw_items = query_all(self.table, KeyConditionExpression=Key("order_id").eq(order_id))
        except ClientError as e:
            logger.error(f"Failed to list items for order {order_id}: {e}")
            raise PersistenceError(READ_ERROR) from e

        return [OrderItem.from_dynamodb_item(item) for item in raw_items]

    def save_items(self, items: list[OrderItem]) -> bool:
        """Insert a batch of order items.

        Args:
            items: Order items to insert

        Returns:
            bool: True if every item was written, False otherwise
        """
        try:
            with self.table.batch_writer() as batch:
                for item in items:
                    batch.put_item(Item=item.to_dynamodb_item())
            return True

        except ClientError as e:
            order_ids = ", ".join(sorted({i.order_id for i in items}))
            logger.error(f"Failed to save items for order {order_ids}: {e}")
            return False

    def delete_items(self, order_id: str) -> bool:
        """Delete every line item of an order.

        Args:
            order_id: Order identifier

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            keys = query_all(
                self.table,
                KeyConditionExpression=Key("order_id").eq(order_id),
                ProjectionExpression="order_id, id",
            )
            with self.table.batch_writer() as batch:
                for key in keys:
                    batch.delete_item(Key={"order_id": key["order_id"], "id": key["id"]})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete items for order {order_id}: {e}")
            return False
