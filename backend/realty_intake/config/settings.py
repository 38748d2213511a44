# /realty_intake/config/settings.py

import sys
import re
from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # WhatsApp Cloud API
    whatsapp_verify_token: str
    whatsapp_access_token: str
    whatsapp_phone_id: str
    whatsapp_app_secret: Optional[str] = None  # When set, POST deliveries must carry a valid signature
    graph_api_version: str = "v19.0"

    # Airtable (lead record store)
    airtable_api_key: Optional[str] = None
    airtable_base_id: Optional[str] = None
    airtable_table: str = "Leads"

    # Sessions
    session_idle_timeout_seconds: int = Field(default=86400, ge=0)  # 0 disables the sweeper
    session_sweep_interval_seconds: int = Field(default=300, gt=0)

    # Deployment
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "production"
    log_level: str = "INFO"

    # Observability
    alerting_webhook_url: Optional[str] = None
    api_key: Optional[str] = None

    # ---------------- Validators ---------------- #

    @field_validator("whatsapp_phone_id")
    @classmethod
    def phone_id_must_be_digits(cls, v):
        if not re.match(r"^\d+$", v):
            raise ValueError("WHATSAPP_PHONE_ID must contain only digits")
        return v

    @field_validator("environment")
    @classmethod
    def environment_must_be_known(cls, v):
        if v not in ("development", "production", "test"):
            raise ValueError("ENVIRONMENT must be one of development, production, test")
        return v

    @property
    def airtable_configured(self) -> bool:
        return bool(self.airtable_api_key and self.airtable_base_id)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


def validate_environment(settings_obj: Settings):
    try:
        if not settings_obj.whatsapp_verify_token:
            raise ValueError("WHATSAPP_VERIFY_TOKEN is required")

        if settings_obj.environment == "production" and not settings_obj.whatsapp_access_token:
            raise ValueError("WHATSAPP_ACCESS_TOKEN is required in production")

        return settings_obj

    except Exception as e:
        print(f"--- [ERROR] Environment validation failed: {e}")
        sys.exit(1)


settings = Settings()
validate_environment(settings)
