import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# Accepts a JSON array or a comma-separated list from the environment.
NameList = Annotated[tuple[str, ...], NoDecode]


class Settings(BaseSettings):
    """Application configuration read from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = Field(default="ChatbotMX Backend")
    app_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")
    api_prefix: str = Field(default="/api")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="%(levelname)s %(name)s %(message)s")

    # Helpdesk (Zendesk) configuration
    zendesk_subdomain: str | None = Field(default=None)
    zendesk_base_url: str | None = Field(default=None)
    zendesk_email: str | None = Field(default=None)
    zendesk_api_token: str | None = Field(default=None)
    zendesk_locale: str = Field(default="en-us")
    upstream_timeout: float = Field(default=10.0)

    # Help center search
    default_page_size: int = Field(default=5, ge=1)
    max_page_size: int = Field(default=10, ge=1)
    help_center_timeout: float = Field(default=5.0)

    # Inline search performed while creating a ticket
    ticket_search_mode: str = Field(default="help_center", pattern="^(help_center|federated)$")
    ticket_search_page_size: int = Field(default=3, ge=1)
    ticket_search_timeout: float = Field(default=3.0)
    derive_search_query: bool = Field(default=False)

    # Unified (federated) search API
    federated_search_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("federated_search_url", "mxchatbot_api_url"),
    )
    federated_search_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("federated_search_api_key", "mxchatbot_api_key"),
    )
    federated_search_limit: int = Field(default=10, ge=1)
    federated_max_limit: int = Field(default=50, ge=1)
    federated_fallback_max: int = Field(default=20, ge=1)
    federated_sources: NameList = Field(default=("zendesk", "docs", "knowledge_base"))
    federated_timeout: float = Field(default=8.0)

    # Ticket handling
    chatbot_tag: str = Field(default="chatbot_new_ticket")
    placeholder_email_domain: str = Field(default="example.com")
    comment_strategies: NameList = Field(default=("ticket_update", "status_update"))
    comment_author_id: int | None = Field(default=None)

    # Observability configuration
    otel_enabled: bool = Field(default=False)
    otel_service_name: str = Field(default="chatdesk")
    otel_exporter_otlp_endpoint: str | None = Field(default=None)
    otel_exporter_otlp_headers: str | None = Field(default=None)

    @field_validator("federated_sources", "comment_strategies", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return tuple(item.strip() for item in text.split(",") if item.strip())

    @property
    def zendesk_api_base(self) -> str | None:
        """Base URL of the helpdesk REST API, or ``None`` when unconfigured."""

        if self.zendesk_base_url:
            return self.zendesk_base_url.rstrip("/")
        if self.zendesk_subdomain:
            return f"https://{self.zendesk_subdomain}.zendesk.com/api/v2"
        return None

    @property
    def zendesk_configured(self) -> bool:
        return bool(self.zendesk_api_base and self.zendesk_email and self.zendesk_api_token)

    @property
    def federated_search_configured(self) -> bool:
        return bool(self.federated_search_url and self.federated_search_api_key)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of the application settings."""

    return Settings()
