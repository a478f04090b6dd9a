"""Store settings access."""

import logging

from restaurant_order_service.models.settings_models import (
    PublicSettings,
    SettingsUpdate,
    StoreSettings,
)
from restaurant_order_service.repositories.store_repositories import SettingsRepository
from restaurant_order_service.services.business_hours import StoreClock
from restaurant_order_service.services.exceptions import PersistenceError

logger = logging.getLogger(__name__)


class SettingsService:
    """Service for the settings singleton.

    A missing row behaves like the defaults: store closed and every integration
    disabled.
    """

    def __init__(self, settings_repository: SettingsRepository, clock: StoreClock | None = None) -> None:
        self.settings_repository = settings_repository
        self.clock = clock or StoreClock()

    async def current(self) -> StoreSettings:
        """Settings for request handling; never writes."""
        return self.settings_repository.get_settings() or StoreSettings()

    async def get_or_create(self) -> StoreSettings:
        """Settings for the admin screen, creating the default row if missing.

        Raises:
            PersistenceError: The default row could not be written
        """
        settings = self.settings_repository.get_settings()
        if settings is not None:
            return settings

        logger.info("No settings found, creating default")
        settings = StoreSettings(updated_at=self.clock.now())
        if not self.settings_repository.save_settings(settings):
            raise PersistenceError("Erro ao salvar configurações")
        return settings

    async def update(self, changes: SettingsUpdate) -> StoreSettings:
        """Apply only the provided fields and stamp ``updated_at``.

        Raises:
            PersistenceError: The row could not be written
        """
        current = self.settings_repository.get_settings() or StoreSettings()
        provided = changes.model_dump(exclude_unset=True)
        updated = current.model_copy(update={**provided, "updated_at": self.clock.now()})

        if not self.settings_repository.save_settings(updated):
            raise PersistenceError("Erro ao salvar configurações")

        logger.info(f"Settings updated: {sorted(provided)}")
        return updated

    async def get_public(self) -> PublicSettings:
        settings = await self.current()
        return PublicSettings(
            auto_print_enabled=settings.auto_print_enabled,
            is_open=settings.is_open,
        )
