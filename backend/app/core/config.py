from decimal import Decimal
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App
    APP_NAME: str = "Hotel P&L Costing"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Costing
    COGS_ESTIMATE_RATE: Decimal = Decimal("0.30")  # recipe-less items
    LINE_TOTAL_TOLERANCE: Decimal = Decimal("0.01")

    # Sync verification
    SYNC_ABSOLUTE_TOLERANCE: Decimal = Decimal("1")  # currency units
    SYNC_PERCENT_TOLERANCE: Decimal = Decimal("0.1")  # percent of the pair average

    # Rendering
    CURRENCY_SYMBOL: str = "₹"

    # Report engine
    REPORT_CACHE_ENABLED: bool = True
    REPORT_CACHE_MAX_ENTRIES: int = 256

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
