"""
Бронирование столов: выделение стола, оплата сбора, отмена.
"""
import logging
from typing import Callable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.crud.booking import save_booking
from restaurant_engine.exceptions import InvalidTransition, PaymentRejected, UnknownTableType, ValidationFailed
from restaurant_engine.models.enums import PAYMENT_TRANSITIONS, PaymentMethod, PaymentStatus
from restaurant_engine.schemas.booking import TableBooking, TableType
from restaurant_engine.services.context import RestaurantContext
from restaurant_engine.services.payment import AmountFn, OtpFn, PaymentOutcome, generate_otp, verify_payment
from restaurant_engine.services.tables import booking_fee

logger = logging.getLogger(__name__)


def resolve_table_type(
    ctx: RestaurantContext,
    table_type: Optional[str] = None,
    party_size: Optional[int] = None,
) -> TableType:
    if table_type is None:
        if party_size is None:
            raise ValidationFailed("Either a table type or a party size is required")
        return ctx.inventory.table_type_for_party(party_size)

    try:
        resolved = ctx.inventory.get_type(table_type)
    except UnknownTableType:
        raise ValidationFailed(f"Unknown table type: {table_type}")
    if party_size is not None and party_size > resolved.seats:
        raise ValidationFailed(f"{resolved.name} seats {resolved.seats}, party of {party_size} does not fit")
    return resolved


async def reserve_table(
    db: AsyncSession,
    ctx: RestaurantContext,
    customer_name: str,
    phone: str,
    table_type: Optional[str] = None,
    party_size: Optional[int] = None,
    table_number: Optional[int] = None,
) -> TableBooking:
    """
    Занимает стол и сохраняет неоплаченную бронь.

    Если номер не указан, берётся первый свободный стол типа.
    Если бронь не удалось сохранить, стол освобождается.
    """
    resolved = resolve_table_type(ctx, table_type, party_size)
    customer_id = ctx.customer_ids.next_id()
    number = ctx.inventory.try_reserve(resolved.name, holder=customer_id, number=table_number)

    try:
        booking = TableBooking(
            customer_id=customer_id,
            customer_name=customer_name,
            phone=phone,
            table_type=resolved,
            table_number=number,
            booking_fee=booking_fee(resolved, ctx.settings.BOOKING_FEE_PER_SEAT),
        )
        await save_booking(db, booking, new=True)
    except Exception:
        ctx.inventory.release(resolved.name, number, holder=customer_id)
        raise

    ctx.bookings[customer_id] = booking
    logger.info("Reserved %s #%s for %s (%s)", resolved.name, number, customer_name, customer_id)
    return booking


async def pay_booking(
    db: AsyncSession,
    ctx: RestaurantContext,
    booking: TableBooking,
    method: PaymentMethod,
    otp_fn: OtpFn,
    amount_fn: AmountFn,
    otp_factory: Callable[[], str] = generate_otp,
) -> PaymentOutcome:
    if PaymentStatus.PAID not in PAYMENT_TRANSITIONS[booking.payment_status]:
        raise InvalidTransition(booking.payment_status, PaymentStatus.PAID)

    outcome = verify_payment(booking.booking_fee, method, otp_fn, amount_fn, otp_factory=otp_factory)

    candidate = booking.model_copy(update={"payment_status": PaymentStatus.PAID, "payment_method": outcome.method})
    await save_booking(db, candidate)
    booking.payment_status = PaymentStatus.PAID
    booking.payment_method = outcome.method
    logger.info("Booking %s paid by %s", booking.customer_id, outcome.method)
    return outcome


async def cancel_booking(db: AsyncSession, ctx: RestaurantContext, booking: TableBooking) -> TableBooking:
    """Неоплаченная бронь отменяется, оплаченная возвращается; стол освобождается."""
    target = PaymentStatus.REFUNDED if booking.payment_status is PaymentStatus.PAID else PaymentStatus.CANCELLED
    if target not in PAYMENT_TRANSITIONS[booking.payment_status]:
        raise InvalidTransition(booking.payment_status, target)

    candidate = booking.model_copy(update={"payment_status": target})
    await save_booking(db, candidate)
    booking.payment_status = target
    ctx.inventory.release(booking.table_type.name, booking.table_number, holder=booking.customer_id)
    logger.info("Booking %s %s, table %s #%s released", booking.customer_id, target, *booking.slot)
    return booking


async def book_table(
    db: AsyncSession,
    ctx: RestaurantContext,
    customer_name: str,
    phone: str,
    method: PaymentMethod,
    otp_fn: OtpFn,
    amount_fn: AmountFn,
    table_type: Optional[str] = None,
    party_size: Optional[int] = None,
    table_number: Optional[int] = None,
    otp_factory: Callable[[], str] = generate_otp,
) -> Tuple[TableBooking, PaymentOutcome]:
    """Бронь и оплата за один шаг: без оплаты стол не остаётся занятым."""
    booking = await reserve_table(db, ctx, customer_name, phone, table_type, party_size, table_number)
    try:
        outcome = await pay_booking(db, ctx, booking, method, otp_fn, amount_fn, otp_factory=otp_factory)
    except PaymentRejected:
        await cancel_booking(db, ctx, booking)
        raise
    return booking, outcome
