"""Configuration management for the Gmail integration adapter.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the GMAIL_INTEGRATION_ prefix (e.g., GMAIL_INTEGRATION_GMAIL_TOPIC_NAME).
    """

    model_config = SettingsConfigDict(
        env_prefix="GMAIL_INTEGRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Google OAuth client
    google_client_id: str | None = Field(
        default=None,
        description="OAuth client ID paired with stored account tokens",
    )
    google_client_secret: str | None = Field(
        default=None,
        description="OAuth client secret paired with stored account tokens",
    )
    google_token_uri: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="Token endpoint used by google-auth when refreshing",
    )

    # Gmail Configuration
    gmail_scope: str = Field(
        default="https://www.googleapis.com/auth/gmail.modify",
        description="OAuth scope attached to account credentials",
    )
    gmail_user_id: str = Field(
        default="me",
        description="Gmail user id; 'me' targets the authenticated mailbox",
    )
    gmail_topic_name: str | None = Field(
        default=None,
        description="Cloud Pub/Sub topic receiving push notifications (projects/<p>/topics/<t>)",
    )
    gmail_watch_label_ids: list[str] = Field(
        default_factory=lambda: ["INBOX"],
        description="Label ids the push subscription is filtered on",
    )

    # Integration store
    integration_kind: str = Field(
        default="gmail",
        description="Kind discriminator written on every integration record",
    )
    db_path: Path = Field(
        default=Path("gmail_integration.sqlite3"),
        description="Path to the SQLite database holding accounts and integrations",
    )

    # Subscription retry policy
    subscribe_max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra push subscription attempts after the first failure",
    )
    subscribe_retry_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Initial delay between subscription attempts in seconds",
    )

    # Diagnostic send route
    test_sender_email: str | None = Field(
        default=None,
        description="Mailbox the /integration/send-email route sends from",
    )
    test_recipient_email: str | None = Field(
        default=None,
        description="Recipient of the /integration/send-email message",
    )

    # Application Configuration
    api_host: str = Field(default="127.0.0.1", description="Bind host for the HTTP server")
    api_port: int = Field(default=8000, description="Bind port for the HTTP server")
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
