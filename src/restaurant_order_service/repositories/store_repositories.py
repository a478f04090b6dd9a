"""DynamoDB repositories for the settings singleton and user roles."""

import logging

from boto3.dynamodb.conditions import Key
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from restaurant_order_service.models.settings_models import SETTINGS_ID, StoreSettings
from restaurant_order_service.repositories.dynamodb_utils import query_all
from restaurant_order_service.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Repository for the single settings row."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_settings(self) -> StoreSettings | None:
        """Retrieve the settings row.

        Returns:
            StoreSettings if the row exists, None otherwise

        Raises:
            PersistenceError: If the store call fails
        """
        try:
            response = self.table.get_item(Key={"id": SETTINGS_ID})
        except ClientError as e:
            logger.error(f"Failed to get settings: {e}")
            raise PersistenceError("Erro ao consultar configurações") from e

        if "Item" not in response:
            return None

        return StoreSettings.from_dynamodb_item(response["Item"])

    def save_settings(self, settings: StoreSettings) -> bool:
        """Save or replace the settings row.

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=settings.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save settings: {e}")
            return False


class UserRoleRepository:
    """Repository for server-side role assignments.

    Manages role records in DynamoDB with composite key (user_id, role).
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_roles(self, user_id: str) -> set[str]:
        """Return every role granted to a user (empty when none).

        Raises:
            PersistenceError: If the store call fails
        """
        try:
            raw_items = query_all(self.table, KeyConditionExpression=Key("user_id").eq(user_id))
        except ClientError as e:
            logger.error(f"Failed to get roles for user {user_id}: {e}")
            raise PersistenceError("Erro ao verificar permissões") from e

        return {item["role"] for item in raw_items}
