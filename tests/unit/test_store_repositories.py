"""Unit tests for settings and role repositories."""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from restaurant_order_service.models.settings_models import StoreSettings
from restaurant_order_service.repositories.store_repositories import (
    SettingsRepository,
    UserRoleRepository,
)
from restaurant_order_service.services.exceptions import PersistenceError


def client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "InternalServerError", "Message": "boom"}}, operation)


@pytest.mark.unit
class TestSettingsRepository:
    """Test suite for SettingsRepository."""

    @pytest.fixture
    def table(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def repository(self, table: MagicMock) -> SettingsRepository:
        dynamodb = MagicMock()
        dynamodb.Table.return_value = table
        return SettingsRepository(dynamodb_resource=dynamodb, table_name="t-settings")

    def test_get_settings(self, repository: SettingsRepository, table: MagicMock) -> None:
        table.get_item.return_value = {"Item": {"id": "singleton", "is_open": True}}

        settings = repository.get_settings()

        assert settings is not None
        assert settings.is_open is True
        table.get_item.assert_called_once_with(Key={"id": "singleton"})

    def test_get_settings_missing(self, repository: SettingsRepository, table: MagicMock) -> None:
        table.get_item.return_value = {}

        assert repository.get_settings() is None

    def test_get_settings_store_error(
        self, repository: SettingsRepository, table: MagicMock
    ) -> None:
        table.get_item.side_effect = client_error("GetItem")

        with pytest.raises(PersistenceError):
            repository.get_settings()

    def test_save_settings(self, repository: SettingsRepository, table: MagicMock) -> None:
        assert repository.save_settings(StoreSettings(is_open=True)) is True
        assert table.put_item.call_args.kwargs["Item"]["is_open"] is True

    def test_save_settings_store_error(
        self, repository: SettingsRepository, table: MagicMock
    ) -> None:
        table.put_item.side_effect = client_error("PutItem")

        assert repository.save_settings(StoreSettings()) is False


@pytest.mark.unit
class TestUserRoleRepository:
    """Test suite for UserRoleRepository."""

    @pytest.fixture
    def table(self) -> MagicMock:
        return MagicMock()

    @pytest.fixture
    def repository(self, table: MagicMock) -> UserRoleRepository:
        dynamodb = MagicMock()
        dynamodb.Table.return_value = table
        return UserRoleRepository(dynamodb_resource=dynamodb, table_name="t-roles")

    def test_get_roles(self, repository: UserRoleRepository, table: MagicMock) -> None:
        table.query.return_value = {
            "Items": [{"user_id": "u1", "role": "staff"}, {"user_id": "u1", "role": "admin"}]
        }

        assert repository.get_roles("u1") == {"staff", "admin"}

    def test_get_roles_none(self, repository: UserRoleRepository, table: MagicMock) -> None:
        table.query.return_value = {"Items": []}

        assert repository.get_roles("u1") == set()

    def test_get_roles_store_error(self, repository: UserRoleRepository, table: MagicMock) -> None:
        table.query.side_effect = client_error("Query")

        with pytest.raises(PersistenceError):
            repository.get_roles("u1")
