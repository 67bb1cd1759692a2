from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or a .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "Inventory Admin API"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Redis cache
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL: int = 300  # 5 minutes

    # Inventory defaults
    PLACEHOLDER_IMAGE_URL: str = (
        "https://t3.ftcdn.net/jpg/05/42/85/06/"
        "360_F_542850615_1B16r8qsUa5oR8zq4td8wqi911uczewS.jpg"
    )
    DEFAULT_ACTOR: str = "Admin"

    # Image upload (ImageKit compatible)
    IMAGE_UPLOAD_URL: Optional[str] = None
    IMAGE_UPLOAD_PRIVATE_KEY: Optional[str] = None
    IMAGE_UPLOAD_FOLDER: str = "/products"
    IMAGE_UPLOAD_TIMEOUT: float = 10.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
