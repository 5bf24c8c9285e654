"""Application configuration using Pydantic settings."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # OpenAI (empty key disables the generation endpoint)
    openai_api_key: str = ""

    # Application
    app_name: str = "CRM Email Composer"
    app_version: str = "0.1.0"
    debug: bool = False

    # Browser origins allowed to call the API (comma-separated overrides the defaults)
    crm_app_url: str = "https://powerchoosers.com"
    cors_allowed_origins: str = ""

    # LLM Settings
    openai_model: str = "gpt-4o-mini"
    max_tokens: int = 2048
    temperature: float = 0.7

    # Generation endpoint used by compose sessions
    generation_base_url: str = "http://localhost:8000"
    generation_fallback_base_url: str = "https://power-choosers-crm.vercel.app"
    generation_timeout: float = 60.0

    # CRM data source
    firestore_contacts_collection: str = "contacts"
    firestore_accounts_collection: str = "accounts"
    local_crm_file: str = ".crm_snapshot.json"
    crm_cache_ttl_seconds: int = 300
    search_limit: int = 8

    # Branding for HTML-mode emails
    brand_name: str = "Power Choosers"
    brand_tagline: str = "Your Energy Partner"
    brand_logo_url: str = (
        "https://cdn.prod.website-files.com/6801ddaf27d1495f8a02fd3f/"
        "687d6d9c6ea5d6db744563ee_clear%20logo.png"
    )
    brand_schedule_url: str = "https://powerchoosers.com/schedule"

    @property
    def is_cloud_run(self) -> bool:
        """True when running inside Cloud Run."""
        return os.getenv("K_SERVICE") is not None


settings = Settings()
