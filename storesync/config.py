"""
Configuration management for the storesync ingestion service
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "storesync Shopify Ingestion Service"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_dir: Optional[str] = None  # File logging is off unless a directory is given

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Database
    database_url: str = "sqlite:///./storesync.db"
    db_pool_size: int = 10
    db_max_overflow: int = 5
    db_max_retries: int = 3  # Connection-class errors only
    db_retry_base_delay: float = 0.1

    # Shopify
    shopify_api_version: str = "2024-01"
    shopify_request_timeout: float = 60.0

    # Ingestion
    sync_page_size: int = 250  # Shopify max per page
    sync_log_limit: int = 50

    # Scheduler
    scheduler_enabled: bool = True
    sync_interval_hours: float = 6.0
    sync_initial_delay_seconds: float = 30.0

    # Webhooks
    webhook_secret: str

    # Tenant credentials (Fernet key). When unset, tokens are stored in plaintext.
    token_encryption_key: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
