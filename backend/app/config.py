from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = Field(default="Tijaniyah Community API", description="Human readable service name")
    environment: str = Field(default="development", description="Deployment environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    cors_origins: Annotated[List[AnyHttpUrl], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost",
            "http://localhost:3000",
            "http://localhost:8081",
            "http://127.0.0.1",
        ],
        description="List of allowed CORS origins",
    )

    database_user: str = Field(default="community", alias="DB_USER")
    database_password: str = Field(default="community", alias="DB_PASSWORD")
    database_host: str = Field(default="db", alias="DB_HOST")
    database_port: int = Field(default=3306, alias="DB_PORT")
    database_name: str = Field(default="community", alias="DB_NAME")
    database_url_override: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full SQLAlchemy URL; takes precedence over the DB_* parts.",
    )

    jwt_secret_key: str = Field(default="changeme", description="Secret shared with the identity service")
    jwt_algorithm: str = Field(default="HS256")
    access_token_expire_minutes: int = Field(default=15)

    chat_room_name_max_length: int = Field(default=120)
    chat_message_max_length: int = Field(default=1000)
    chat_history_default_limit: int = Field(default=50)
    chat_history_max_limit: int = Field(default=200)

    notification_title_max_length: int = Field(default=200)
    notification_body_max_length: int = Field(default=2000)
    notifications_default_limit: int = Field(default=50)
    notifications_max_limit: int = Field(default=100)

    user_search_max_limit: int = Field(default=50)

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        return (
            f"mysql+pymysql://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v):  # type: ignore[override]
        if v in (None, "", Ellipsis):
            return v
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, (list, tuple, set)):
            return list(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return str(value or "INFO").strip().upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
