"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import os
from typing import Literal

import yaml
from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class SmsConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SMS_")

    enabled: bool = False
    base_url: str = "https://api.smsmobileapi.com"
    api_key: str = ""
    sender_id: str = ""
    default_country_code: str = "382"


class EmailConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="EMAIL_")

    enabled: bool = False
    resend_api_key: str = ""
    sender: str = "RepairDesk <servis@repairdesk.local>"
    company_phone: str = ""


class SupplierRouteConfig(BaseModel):
    """A third-party contact notified for services of the listed brands.

    SMS goes to phone and the supplier report email to email; either may be empty.
    """

    name: str
    phone: str = ""
    email: str = ""
    brands: list[str] = Field(default_factory=list)
    notify_on: list[str] = Field(default_factory=lambda: [
        "status_changed", "parts_ordered", "parts_arrived",
    ])


class NotificationConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NOTIFICATIONS_")

    background: bool = False
    send_timeout_seconds: float = 10.0
    extra_admin_phones: list[str] = Field(default_factory=list)
    suppliers: list[SupplierRouteConfig] = Field(default_factory=list)


class Settings(BaseSettings):
    environment: Literal["development", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///data/repairdesk.db"
    sms: SmsConfig = Field(default_factory=SmsConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def _below_env(values: dict, prefix: str = "") -> dict:
    """Drop YAML keys that an environment variable already sets, so env wins."""
    env = {k.upper() for k in os.environ}
    return {k: v for k, v in values.items() if f"{prefix}{k}".upper() not in env}


def get_settings() -> Settings:
    """Build Settings from YAML defaults; environment variables take precedence."""
    y = _yaml
    sms = SmsConfig(**_below_env(y.get("sms", {}), "SMS_"))
    email = EmailConfig(**_below_env(y.get("email", {}), "EMAIL_"))
    notif = dict(y.get("notifications", {}))
    suppliers = [SupplierRouteConfig(**s) for s in notif.pop("suppliers", [])]
    notifications = NotificationConfig(**_below_env(notif, "NOTIFICATIONS_"), suppliers=suppliers)
    top = _below_env({
        "environment": y.get("environment", "development"),
        "log_level": y.get("log_level", "INFO"),
        "database_url": y.get("database", {}).get("url", "sqlite+aiosqlite:///data/repairdesk.db"),
    })
    return Settings(**top, sms=sms, email=email, notifications=notifications)
