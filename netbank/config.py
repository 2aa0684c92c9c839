"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This keeps secrets out of source code — the .env file is
gitignored.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from netbank.config import settings
    print(settings.SECRET_KEY)
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the NetBank API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT session tokens

    All monetary limits are integer cents.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "NetBank API"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "standard"  # "standard" or "json"

    # --- Database ---
    # SQLite for development; swap to a PostgreSQL (asyncpg) URL for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/netbank.db"

    # --- Authentication ---
    # REQUIRED: No default, which forces the operator to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # passlib schemes for passwords and T-PINs; the first one hashes new secrets
    PASSWORD_SCHEMES: list[str] = ["argon2"]

    # --- Login throttle ---
    MAX_FAILED_LOGIN_ATTEMPTS: int = 3
    LOCKOUT_MINUTES: int = 30

    # --- Session-role guard entry points ---
    USER_ENTRY_POINT: str = "/auth/login"
    ADMIN_ENTRY_POINT: str = "/admin/login"

    # --- Transfer engine ---
    TRANSACTION_PIN_MIN_LENGTH: int = 4
    FUND_TRANSFER_MIN_CENTS: int = 1
    FUND_TRANSFER_MAX_CENTS: int = 100_000_000
    CASH_DEPOSIT_MIN_CENTS: int = 100
    CASH_DEPOSIT_MAX_CENTS: int = 5_000_000
    CHECK_DEPOSIT_MIN_CENTS: int = 100
    CHECK_DEPOSIT_MAX_CENTS: int = 10_000_000
    WIRE_INCOMING_MIN_CENTS: int = 100
    WIRE_INCOMING_MAX_CENTS: int = 100_000_000

    # Transfers to account numbers not held at this bank leave the system
    ALLOW_EXTERNAL_TRANSFERS: bool = False

    # Optimistic-concurrency retries before surfacing a ConflictError
    LEDGER_MAX_RETRIES: int = 10
    LEDGER_RETRY_BACKOFF_SECONDS: float = 0.02

    # --- Service requests ---
    MAX_PENDING_SERVICE_REQUESTS: int = 5
    SERVICE_REQUEST_MIN_DESCRIPTION: int = 10
    CARD_ETA_BUSINESS_DAYS: int = 7
    # Seconds between card-ready sweeps; 0 disables the background task
    CARD_READY_SWEEP_INTERVAL_SECONDS: int = 3600

    # --- Default admin bootstrap ---
    BOOTSTRAP_DEFAULT_ADMIN: bool = True
    DEFAULT_ADMIN_USERNAME: str = "admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@netbank.local"
    DEFAULT_ADMIN_PASSWORD: str = "Admin@123"

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
