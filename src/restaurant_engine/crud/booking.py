import logging
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine import models
from restaurant_engine.exceptions import DataCorruption, PersistenceFailure
from restaurant_engine.models.enums import PaymentMethod, PaymentStatus
from restaurant_engine.money import to_money
from restaurant_engine.schemas.booking import TableBooking, TableType

logger = logging.getLogger(__name__)

TableTypeLookup = Callable[[str], TableType]


async def save_booking(db: AsyncSession, booking: TableBooking, new: bool = False) -> None:
    """
    Создаёт или обновляет бронь по customer_id.
    С new=True существующая строка с тем же customer_id не перезаписывается.

    БД дополнительно держит уникальный индекс на активную пару
    (table_type, table_number); нарушение откатывает транзакцию.
    """
    try:
        result = await db.execute(
            select(models.TableBooking).where(models.TableBooking.customer_id == booking.customer_id)
        )
        row = result.scalars().first()
        if row is not None and new:
            raise PersistenceFailure(f"Booking {booking.customer_id} already exists in storage")
        if row is None:
            row = models.TableBooking(customer_id=booking.customer_id, created_at=booking.created_at)
            db.add(row)

        row.customer_name = booking.customer_name
        row.phone = booking.phone
        row.table_type = booking.table_type.name
        row.table_number = booking.table_number
        row.seats = booking.seats
        row.booking_fee = booking.booking_fee
        row.payment_status = booking.payment_status.value
        row.payment_method = booking.payment_method.value if booking.payment_method else None

        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        logger.error("Booking %s violates a storage constraint: %s", booking.customer_id, exc)
        raise PersistenceFailure(
            f"{booking.table_type.name} table {booking.table_number} is already held by another booking"
        ) from exc
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Booking %s save rolled back: %s", booking.customer_id, exc)
        raise PersistenceFailure(f"Could not save booking {booking.customer_id}") from exc

    logger.info(
        "Saved booking %s: %s #%s (%s)",
        booking.customer_id, booking.table_type.name, booking.table_number, booking.payment_status,
    )


def _booking_from_row(row: models.TableBooking, table_type_lookup: TableTypeLookup) -> TableBooking:
    table_type = table_type_lookup(row.table_type)  # UnknownTableType для неизвестного типа
    return TableBooking(
        customer_id=row.customer_id,
        customer_name=row.customer_name,
        phone=row.phone,
        table_type=table_type,
        table_number=row.table_number,
        booking_fee=to_money(row.booking_fee),
        payment_status=PaymentStatus.decode(row.payment_status),
        payment_method=PaymentMethod.decode(row.payment_method) if row.payment_method else None,
        created_at=row.created_at,
    )


async def load_bookings(
    db: AsyncSession,
    table_type_lookup: TableTypeLookup,
    customer_id: Optional[str] = None,
    skipped: Optional[list] = None,
) -> List[TableBooking]:
    """
    Загружает брони. Записи с неизвестным типом стола или статусом
    логируются и пропускаются.
    """
    stmt = (
        select(models.TableBooking)
        .order_by(models.TableBooking.id)
        .execution_options(populate_existing=True)
    )
    if customer_id is not None:
        stmt = stmt.where(models.TableBooking.customer_id == customer_id)

    try:
        result = await db.execute(stmt)
        rows = result.scalars().all()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceFailure("Could not load bookings") from exc

    bookings = []
    for row in rows:
        try:
            bookings.append(_booking_from_row(row, table_type_lookup))
        except (DataCorruption, ValidationError) as exc:
            logger.error("Skipping booking %s: %s", row.customer_id, exc)
            if skipped is not None:
                skipped.append(exc)
    logger.info("Loaded %d bookings", len(bookings))
    return bookings


async def list_customer_ids(db: AsyncSession) -> List[str]:
    """customer_id всех броней, включая те, что не прошли загрузку."""
    result = await db.execute(select(models.TableBooking.customer_id))
    return list(result.scalars().all())
