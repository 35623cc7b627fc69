from sqlalchemy import Column, Integer, String, Numeric, DateTime, Index, func, text

from ..db.base import Base

ACTIVE_BOOKING_CLAUSE = text("payment_status NOT IN ('Cancelled', 'Refunded')")


class TableBooking(Base):
    __tablename__ = "table_bookings"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(50), nullable=False, unique=True)  # "CUST1001"
    customer_name = Column(String(255), nullable=False)
    phone = Column(String(40), nullable=False)
    table_type = Column(String(50), nullable=False)
    table_number = Column(Integer, nullable=False)
    seats = Column(Integer, nullable=False)
    booking_fee = Column(Numeric(10, 2), nullable=False)
    payment_status = Column(String(50), nullable=False)
    payment_method = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        # одна активная бронь на стол: отменённые и возвращённые не считаются
        Index(
            "uq_active_table_slot",
            "table_type",
            "table_number",
            unique=True,
            sqlite_where=ACTIVE_BOOKING_CLAUSE,
            postgresql_where=ACTIVE_BOOKING_CLAUSE,
        ),
    )
