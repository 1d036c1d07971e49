import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, model_validator
from typing import Optional
from pydantic_settings import BaseSettings
from sqlalchemy.engine.url import make_url, URL

# Project root (parent of app/) - used so .env and data/ resolve regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent

DEFAULT_DATABASE_URL = f"sqlite:///{_PROJECT_ROOT / 'data' / 'stats.db'}"
DEFAULT_TEST_DATABASE_URL = "sqlite://"

# Explicitly load .env into os.environ so it works in tests and subprocesses
load_dotenv(_PROJECT_ROOT / ".env")


def _split_ids(raw: Optional[str]) -> frozenset[str]:
    """Parse a comma-separated list of user ids, dropping blanks."""
    if not raw:
        return frozenset()
    return frozenset(part.strip() for part in raw.split(",") if part.strip())


class Settings(BaseSettings):
    app_name: str = "sales-ledger"
    database_url: Optional[str] = None  # Will be set dynamically
    database_auto_create: bool = Field(
        default=True, json_schema_extra={"env": "DATABASE_AUTO_CREATE"}
    )
    database_pool_size: int = Field(
        default=10, json_schema_extra={"env": "DATABASE_POOL_SIZE"}
    )
    database_max_overflow: int = Field(
        default=20, json_schema_extra={"env": "DATABASE_MAX_OVERFLOW"}
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("ENV", "ENVIRONMENT"),
    )
    log_level: str = Field(default="INFO", json_schema_extra={"env": "LOG_LEVEL"})
    port: int = Field(default=8000, json_schema_extra={"env": "PORT"})

    # Telegram
    telegram_enabled: bool = Field(
        default=False, json_schema_extra={"env": "TELEGRAM_ENABLED"}
    )
    telegram_bot_token: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TELEGRAM_BOT_TOKEN"}
    )
    telegram_webhook_secret: Optional[str] = Field(
        default=None, json_schema_extra={"env": "TELEGRAM_WEBHOOK_SECRET"}
    )

    # Civil-day boundaries for stats windows. None = host time zone.
    ledger_timezone: Optional[str] = Field(
        default=None, json_schema_extra={"env": "LEDGER_TIMEZONE"}
    )

    # Roles (comma-separated user ids)
    permissions_enabled: bool = Field(
        default=True, json_schema_extra={"env": "PERMISSIONS_ENABLED"}
    )
    admin_user_ids: str = Field(default="", json_schema_extra={"env": "ADMIN_USER_IDS"})
    manager_user_ids: str = Field(
        default="", json_schema_extra={"env": "MANAGER_USER_IDS"}
    )
    closer_user_ids: str = Field(
        default="", json_schema_extra={"env": "CLOSER_USER_IDS"}
    )
    setter_user_ids: str = Field(
        default="", json_schema_extra={"env": "SETTER_USER_IDS"}
    )
    export_user_ids: str = Field(
        default="",
        validation_alias=AliasChoices(
            "export_user_ids", "EXPORT_USER_IDS", "ALLOWED_DUMP_USER_IDS"
        ),
    )

    # Deletion workflow
    delete_list_limit: int = Field(
        default=10, ge=1, le=50, json_schema_extra={"env": "DELETE_LIST_LIMIT"}
    )
    delete_list_timeout_seconds: float = Field(
        default=60.0, gt=0, json_schema_extra={"env": "DELETE_LIST_TIMEOUT_SECONDS"}
    )
    delete_confirm_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        json_schema_extra={"env": "DELETE_CONFIRM_TIMEOUT_SECONDS"},
    )

    @model_validator(mode="before")
    def set_database_url(cls, values):
        """Set the database_url dynamically based on the environment field."""
        environment = values.get("environment", os.getenv("ENV", "development"))
        if environment.lower() == "test":
            values["database_url"] = os.getenv(
                "TEST_DATABASE_URL", DEFAULT_TEST_DATABASE_URL
            )
        else:
            values["database_url"] = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)

        return values

    @property
    def is_production(self) -> bool:
        """Check if the current environment is production."""
        return self.environment.lower() == "production"

    @property
    def is_test(self) -> bool:
        """Check if the current environment is test."""
        return self.environment.lower() == "test"

    @property
    def database_url_obj(self) -> URL:
        """Return the database URL as a URL object using sqlalchemy's make_url."""
        if not self.database_url:
            raise ValueError("Database URL is not set.")
        return make_url(self.database_url)

    @property
    def role_user_ids(self) -> dict[str, frozenset[str]]:
        """Configured user ids per role name."""
        return {
            "admin": _split_ids(self.admin_user_ids),
            "manager": _split_ids(self.manager_user_ids),
            "closer": _split_ids(self.closer_user_ids),
            "setter": _split_ids(self.setter_user_ids),
        }

    @property
    def export_allow_list(self) -> frozenset[str]:
        return _split_ids(self.export_user_ids)

    class ConfigDict:
        env_file = str(_PROJECT_ROOT / ".env")
        env_file_encoding = "utf-8"
        extra = "allow"  # Allow extra environment variables


def get_settings() -> Settings:
    """Get application settings with required environment variables."""
    return Settings()
