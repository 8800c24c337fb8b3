"""Application configuration and settings management."""

from pathlib import Path
from typing import Annotated, Any, Literal, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DISPATCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Delivery Dispatch Hub"
    api_prefix: str = "/api"
    websocket_path: str = "/ws"
    data_root: Path = Field(default=Path("data"), description="Root directory for report outputs.")
    static_root: Path = Field(
        default=Path("public"),
        description="Dashboard assets served at the site root when the directory exists.",
    )
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=("*",),
        description="Permitted web origins for browser clients (CORS).",
    )
    log_level: str = Field(default="INFO")
    timezone: Optional[str] = Field(
        default=None,
        description="IANA timezone used to compute today's date (server local time when unset).",
    )

    # Record store
    record_store: Literal["memory", "supabase"] = Field(
        default="memory",
        description="Backend holding customers, deliveries and couriers.",
    )
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    courier_auth_mode: Literal["username", "plaintext"] = Field(
        default="username",
        description="'username' matches the courier by userName only; 'plaintext' also compares senha.",
    )

    # Messaging relay (WhatsApp HTTP gateway)
    relay_base_url: Optional[str] = Field(
        default=None,
        description="Base URL of the WhatsApp HTTP gateway (e.g., http://localhost:3000). Relay is disabled when unset.",
    )
    relay_api_key: Optional[str] = Field(default=None)
    relay_session: str = Field(default="default")
    relay_timeout_seconds: float = Field(default=30.0, gt=0.0)
    relay_max_retries: int = Field(default=3, ge=0)
    relay_backoff_seconds: float = Field(default=1.0, ge=0.0)
    relay_repairing_delay_seconds: float = Field(default=1.0, ge=0.0)
    relay_autostart: bool = Field(default=True)
    relay_country_code: str = Field(default="55", min_length=2, max_length=2)
    relay_address_suffix: str = Field(default="@c.us")

    @field_validator("data_root", "static_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown IANA timezone '{value}'") from exc
        return value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: Any) -> tuple[str, ...]:
        """Accept a JSON array or a comma-separated list of origins."""
        if isinstance(value, (tuple, list)):
            return tuple(str(item) for item in value)
        if not isinstance(value, str):
            return ()
        text = value.strip()
        if text.startswith("["):
            try:
                return tuple(str(item) for item in json.loads(text))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid origin list: {text}") from exc
        return tuple(item.strip() for item in text.split(",") if item.strip())


settings = Settings()
