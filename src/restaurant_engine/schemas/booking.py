from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, conint, constr

from restaurant_engine.models.enums import INACTIVE_PAYMENT_STATUSES, PaymentMethod, PaymentStatus


class TableType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    seats: int
    inventory_size: int = 10
    fee: Optional[Decimal] = None


class TableBooking(BaseModel):
    """Бронь стола. customer_id ("CUST1001") служит внешним ключом брони."""

    model_config = ConfigDict(validate_assignment=True)

    customer_id: str
    customer_name: constr(strip_whitespace=True, min_length=1)
    phone: constr(strip_whitespace=True, min_length=1)
    table_type: TableType
    table_number: conint(ge=1)
    booking_fee: Decimal
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def seats(self) -> int:
        return self.table_type.seats

    @property
    def is_active(self) -> bool:
        return self.payment_status not in INACTIVE_PAYMENT_STATUSES

    @property
    def slot(self):
        return self.table_type.name, self.table_number


class BookingCreate(BaseModel):
    customer_name: constr(strip_whitespace=True, min_length=1)
    phone: constr(strip_whitespace=True, min_length=1)
    table_type: Optional[str] = None
    party_size: Optional[conint(ge=1)] = None
    table_number: Optional[conint(ge=1)] = None


class BookingRead(BaseModel):
    customer_id: str
    customer_name: str
    phone: str
    table_type: str
    table_number: int
    seats: int
    booking_fee: Decimal
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    created_at: datetime

    @classmethod
    def from_booking(cls, booking: TableBooking):
        return cls(
            customer_id=booking.customer_id,
            customer_name=booking.customer_name,
            phone=booking.phone,
            table_type=booking.table_type.name,
            table_number=booking.table_number,
            seats=booking.seats,
            booking_fee=booking.booking_fee,
            payment_status=booking.payment_status,
            payment_method=booking.payment_method,
            created_at=booking.created_at,
        )


class TableAvailabilityRead(BaseModel):
    table_type: str
    seats: int
    fee: Decimal
    free_tables: List[int]
    occupied_tables: List[int]
