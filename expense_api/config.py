"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This keeps the signing secret out of source code.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from expense_api.config import settings
    print(settings.SECRET_KEY)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Expense Tracker API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Expense Tracker API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # --- Database ---
    # SQLite for local use; swap to a PostgreSQL (asyncpg) URL in production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/expenses.db"

    # --- Authentication ---
    # REQUIRED: No default, forces the deployer to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    # Mobile clients stay signed in for 30 days
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:8081", "http://localhost:19006"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
