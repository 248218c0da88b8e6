# wholesale_orders/config.py

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    AUTH_SECRET_KEY: str = "change-me"
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60
    ADMIN_LOGIN: str = "admin"        # seeded super admin
    ADMIN_PASSWORD: str = "admin"

    DATABASE_URL: str = "sqlite+aiosqlite:///./orders.db"

    TAX_RATE: Decimal = Decimal("0.18")       # IGV
    MAX_INSTALLMENTS: int = 24
    INSTALLMENT_INTERVAL_DAYS: int = 30

    LOG_DIR: str = "log"
    LOG_PRINT: str = "0"
    LOG_PRINT_DB: str = "0"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
