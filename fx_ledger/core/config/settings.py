# fx_ledger/core/config/settings.py

from typing import Optional
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env file.
    Covers the API shell, the two rate providers, cache lifetimes and
    notification throttling.
    """
    # General App Settings
    APP_NAME: str = "FX Ledger API"
    APP_VERSION: str = "0.1.0"
    DEBUG_MODE: bool = False

    # API Specific Settings
    API_V1_STR: str = "/api/v1"
    ALLOWED_OWNER_ID: Optional[int] = None # When set, every other owner id is rejected

    # Logging Settings
    LOG_LEVEL: str = "INFO"

    # Arithmetic
    DECIMAL_PRECISION: int = 28

    # Currency pair (foreign currency held, local currency of the tax base)
    FOREIGN_CURRENCY: str = "USD"
    LOCAL_CURRENCY: str = "UAH"
    FOREIGN_CURRENCY_NUMERIC: int = 840 # ISO 4217
    LOCAL_CURRENCY_NUMERIC: int = 980

    # Upstream rate providers
    PRIMARY_RATE_URL: str = "https://bank.gov.ua/NBUStatService/v1/statdirectory/exchange"
    SECONDARY_RATE_URL: str = "https://api.monobank.ua/bank/currency"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Rate cache lifetimes
    HISTORICAL_CACHE_TTL_DAYS: int = 180
    LIVE_CACHE_TTL_HOURS: int = 6

    # Storage
    STORAGE_BACKEND: str = "sqlite" # "sqlite" or "memory"
    DATABASE_PATH: Path = Path(__file__).parent.parent.parent.parent / "data" / "fx_ledger.db"

    # Notifications
    NOTIFICATION_MIN_INTERVAL_HOURS: float = 6.0
    TIMEZONE: str = "Europe/Kyiv" # Defines the calendar "today"

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parent.parent.parent.parent / ".env"),
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

settings = Settings()
