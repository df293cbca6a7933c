import os
from dataclasses import dataclass
from decimal import Decimal


def _get_bool(env_name: str, default: bool = False) -> bool:
    val = os.getenv(env_name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass
class Settings:
    # App
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Database (SQLite by default, any SQLAlchemy async URL works)
    DB_URL: str = os.getenv("DB_URL", "sqlite+aiosqlite:///./storefront.db")
    DB_ECHO: bool = _get_bool("DB_ECHO", False)

    # Auth (tokens are issued elsewhere, only verified here)
    JWT_SECRET: str = os.getenv("JWT_SECRET", "change-me")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Pricing policy
    FREE_SHIPPING_THRESHOLD: Decimal = Decimal(os.getenv("FREE_SHIPPING_THRESHOLD", "100.00"))
    FLAT_SHIPPING_COST: Decimal = Decimal(os.getenv("FLAT_SHIPPING_COST", "10.00"))
    TAX_RATE: Decimal = Decimal(os.getenv("TAX_RATE", "0.08"))
    ORDER_NUMBER_PREFIX: str = os.getenv("ORDER_NUMBER_PREFIX", "ORD")

    # Redis
    STOCK_EVENTS_ENABLED: bool = _get_bool("STOCK_EVENTS_ENABLED", True)
    REDIS_HOST: str = os.getenv("REDIS_HOST", "redis")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_DB: int = int(os.getenv("REDIS_DB", "0"))
    REDIS_USERNAME: str = os.getenv("REDIS_USERNAME", "")
    REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
    REDIS_SSL: bool = _get_bool("REDIS_SSL", False)
    REDIS_STOCK_CHANNEL: str = os.getenv("REDIS_STOCK_CHANNEL", "stock-updates")


settings = Settings()
