import logging
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Supabase API
    supabase_url: Optional[str] = Field(default=None, validation_alias="SUPABASE_URL")
    supabase_key: Optional[str] = Field(default=None, validation_alias="SUPABASE_KEY")

    # Security
    # Supabase signs its access tokens with the project's JWT secret.
    supabase_jwt_secret: Optional[str] = Field(default=None, validation_alias="SUPABASE_JWT_SECRET")
    algorithm: str = "HS256"
    jwt_audience: str = "authenticated"

    # Storage
    storage_bucket: str = Field(default="documents", validation_alias="STORAGE_BUCKET")
    list_page_size: int = Field(default=100, gt=0, validation_alias="LIST_PAGE_SIZE")
    trash_retention_days: int = Field(default=30, ge=0, validation_alias="TRASH_RETENTION_DAYS")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def has_supabase_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


def load_settings() -> Settings:
    """
    Loads settings from the environment.
    Missing Supabase credentials only produce a warning; remote calls fail later when invoked.
    """
    loaded = Settings()
    if not loaded.has_supabase_credentials():
        logger.warning(
            "Supabase environment variables are missing. "
            "Please define SUPABASE_URL and SUPABASE_KEY in your environment or .env file."
        )
    return loaded


settings = load_settings()
