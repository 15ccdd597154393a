"""
# Configuration Module

Centralized settings for the Content CMS backend, loaded once at import time.

## Precedence

1. **Environment variables** always win.
2. **`CONTENT_CMS_CONFIG_PATH`**: explicit path to a dotenv-style file.
3. **`.cms`** file in the project root.
4. **`.env`** file in the project root.

If no file is found the application runs in environment-variable-only mode.

## Example `.cms`

```bash
MONGODB_URL=mongodb://localhost:27017
MONGODB_DATABASE=content_cms
ADMIN_API_TOKEN=replace-with-a-long-random-string
DEFAULT_LOG_LEVEL=INFO
```

This module must not import the logging manager; the logging manager reads its level from here.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
CMS_FILENAME: str = ".cms"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "CONTENT_CMS_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Determines the configuration file path.

    Checks, in order, the `CONTENT_CMS_CONFIG_PATH` environment variable, a `.cms` file in
    the project root and a `.env` file in the project root.

    Returns:
        Optional[str]: The path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    cms_path: Path = PROJECT_ROOT / CMS_FILENAME
    if cms_path.exists():
        return str(cms_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=False)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, CORS.
    *   **Database**: MongoDB connection details and pool sizing.
    *   **Security**: Admin API bearer token.
    *   **Content**: Seeding, change-history retention, delivery and deletion policies.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = True

    # CORS
    CORS_ENABLED: bool = True
    CORS_ORIGINS: str = "http://localhost:3000"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "content_cms"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_MIN_POOL_SIZE: int = 5
    MONGODB_MAX_POOL_SIZE: int = 50

    # Authentication (optional)
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Admin API access; admin routes answer 503 while unset
    ADMIN_API_TOKEN: Optional[SecretStr] = None

    # Logging
    DEFAULT_LOG_LEVEL: str = "INFO"

    # Content behaviour
    SEED_DEFAULT_COMPONENT_TYPES: bool = True
    CHANGE_HISTORY_LIMIT: int = 10
    PUBLIC_CONTENT_REQUIRE_PUBLISHED: bool = False
    CASCADE_LAYOUT_DELETE: bool = True

    # Observability
    METRICS_ENABLED: bool = True

    @field_validator("MONGODB_URL", "MONGODB_DATABASE", mode="before")
    @classmethod
    def no_empty_values(cls, v: Any, info: Any) -> Any:
        """Rejects empty MongoDB connection values."""
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .cms and not empty!")
        return v

    @field_validator("MONGODB_MIN_POOL_SIZE", "MONGODB_MAX_POOL_SIZE", mode="before")
    @classmethod
    def validate_pool_size(cls, v: Any, info: Any) -> int:
        """
        Validates that pool sizes are within a reasonable range (1-500).

        Raises:
            ValueError: If the value is out of range.
        """
        value = int(v)
        if value < 1 or value > 500:
            raise ValueError(f"{info.field_name} must be between 1 and 500")
        return value

    @field_validator("CHANGE_HISTORY_LIMIT", mode="before")
    @classmethod
    def validate_history_limit(cls, v: Any) -> int:
        value = int(v)
        if value < 1:
            raise ValueError("CHANGE_HISTORY_LIMIT must be a positive integer")
        return value

    @field_validator("DEFAULT_LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        level = str(v or "INFO").upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @property
    def is_production(self) -> bool:
        """True when debug mode is off."""
        return not self.DEBUG

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins parsed from the comma-separated `CORS_ORIGINS` value."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_token_configured(self) -> bool:
        return bool(self.ADMIN_API_TOKEN and self.ADMIN_API_TOKEN.get_secret_value().strip())


# Global settings instance
settings: Settings = Settings()
