from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class TableTypeSettings(BaseModel):
    name: str
    seats: int = Field(..., gt=0)
    inventory_size: int = Field(10, gt=0)
    fee: Optional[Decimal] = Field(None, ge=0)  # None -> seats * BOOKING_FEE_PER_SEAT


DEFAULT_TABLE_TYPES = [
    TableTypeSettings(name="Table2", seats=2, fee=Decimal("100")),
    TableTypeSettings(name="Table4", seats=4, fee=Decimal("200")),
    TableTypeSettings(name="Table6", seats=6, fee=Decimal("300")),
    TableTypeSettings(name="Table8", seats=8, fee=Decimal("400")),
    TableTypeSettings(name="Table10", seats=10, fee=Decimal("500")),
]


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite+aiosqlite:///./restaurant.db"
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    TAX_RATE: Decimal = Decimal("0.05")
    COUPON_CODE: str = "SAVE100"
    COUPON_DISCOUNT_AMOUNT: Decimal = Decimal("100")
    COUPON_DISCOUNT_PERCENT: Optional[Decimal] = None  # если задан, важнее фиксированной суммы
    MIN_ORDER_FOR_COUPON: Decimal = Decimal("300")

    BOOKING_FEE_PER_SEAT: Decimal = Decimal("50")
    TABLE_TYPES: List[TableTypeSettings] = Field(default_factory=lambda: list(DEFAULT_TABLE_TYPES))

    SEED_DEFAULT_MENU: bool = True

    class Config:
        env_file = ".env"


settings = Settings()
