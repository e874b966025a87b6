"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the ordering service."""

    app_name: str = "Restaurant Self-Order API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    database_url: str = getenv("DATABASE_URL", "sqlite:///./self_order.db")
    seed_demo_menu: bool = getenv("SEED_DEMO_MENU", "1") == "1"
    order_min_total: Decimal = Decimal(getenv("ORDER_MIN_TOTAL", "10000"))
    order_max_total: Decimal = Decimal(getenv("ORDER_MAX_TOTAL", "1000000"))
    order_max_item_quantity: int = int(getenv("ORDER_MAX_ITEM_QUANTITY", "99"))
    cash_payment_max: Decimal = Decimal(getenv("CASH_PAYMENT_MAX", "500000"))
    digital_payment_min: Decimal = Decimal(getenv("DIGITAL_PAYMENT_MIN", "1000"))
    order_conflict_retries: int = int(getenv("ORDER_CONFLICT_RETRIES", "3"))


settings: Settings = Settings()
