"""
Configuration management for SitePulse
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "SitePulse SEO Dashboard API"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = ""  # Empty = console logging only

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Storage backend: sql | supabase | memory
    metrics_store_backend: str = "sql"

    # Database (sql backend; SQLite or PostgreSQL)
    database_url: str = "sqlite:///./sitepulse.db"

    # Supabase (supabase backend)
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None  # Service role key preferred over anon key

    # Google Search Console
    gsc_credentials_path: str = "./credentials/gsc-credentials.json"
    # Alternative to the JSON file: explicit service account fields
    google_service_account_email: Optional[str] = None
    google_private_key: Optional[str] = None

    # Sync reconciliation thresholds
    gsc_retention_days: int = 90  # Rows older than this are pruned
    gsc_recent_window_days: int = 3  # Any gap here triggers an incremental sync
    gsc_stale_after_hours: int = 12  # Cache age that triggers a refresh
    gsc_stale_window_days: int = 14  # Window re-checked when the cache is stale
    gsc_incremental_buffer_days: int = 7  # Extra days fetched on incremental syncs

    # Site import
    gsc_import_days: int = 30

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
