"""Store settings singleton model."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, Field

SETTINGS_ID = "singleton"


class StoreSettings(BaseModel):
    """The single configuration row controlling store behaviour.

    Read fresh on every request and passed explicitly to the operations that
    depend on it.
    """

    id: str = Field(default=SETTINGS_ID)
    is_open: bool = Field(default=False, description="Whether the store accepts orders")
    auto_print_enabled: bool = Field(default=False, description="Auto-print new receipts")
    webhook_url: str | None = Field(None, description="Outbound webhook URL")
    whatsapp_enabled: bool = Field(default=False, description="WhatsApp relay enabled")
    updated_at: datetime | None = None

    def to_dynamodb_item(self) -> dict[str, Any]:
        item: dict[str, Any] = {
            "id": self.id,
            "is_open": self.is_open,
            "auto_print_enabled": self.auto_print_enabled,
            "whatsapp_enabled": self.whatsapp_enabled,
        }
        if self.webhook_url is not None:
            item["webhook_url"] = self.webhook_url
        if self.updated_at is not None:
            item["updated_at"] = self.updated_at.isoformat()
        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "StoreSettings":
        data: dict[str, Any] = {
            "id": item.get("id", SETTINGS_ID),
            "is_open": bool(item.get("is_open", False)),
            "auto_print_enabled": bool(item.get("auto_print_enabled", False)),
            "whatsapp_enabled": bool(item.get("whatsapp_enabled", False)),
            "webhook_url": item.get("webhook_url"),
        }
        if "updated_at" in item:
            data["updated_at"] = datetime.fromisoformat(item["updated_at"])
        return cls(**data)


class PublicSettings(BaseModel):
    """Read-only subset of settings exposed to staff."""

    auto_print_enabled: bool = False
    is_open: bool = False


class SettingsUpdate(BaseModel):
    """Partial settings update; only provided fields are applied."""

    is_open: bool | None = None
    auto_print_enabled: bool | None = None
    webhook_url: str | None = Field(
        None, max_length=500, validation_alias=AliasChoices("webhook_url", "webhook_n8n_url")
    )
    whatsapp_enabled: bool | None = None
