from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.api import payment_flow
from restaurant_engine.db.deps import get_async_session, get_context
from restaurant_engine.exceptions import InvalidTransition
from restaurant_engine.models.enums import PaymentStatus
from restaurant_engine.schemas.booking import BookingCreate, BookingRead
from restaurant_engine.schemas.payment import PaymentChallengeRead, PaymentChallengeRequest, PaymentReceipt, PaymentRequest
from restaurant_engine.services import booking as booking_service
from restaurant_engine.services.context import RestaurantContext

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("/", response_model=List[BookingRead])
async def list_bookings(
    customer_id: Optional[str] = Query(None, description="Фильтр по клиенту"),
    ctx: RestaurantContext = Depends(get_context),
):
    return [BookingRead.from_booking(b) for b in ctx.list_bookings(customer_id)]


@router.post("/", response_model=BookingRead, status_code=201)
async def create_booking_endpoint(
    booking_in: BookingCreate,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Занимает стол. Тип берётся из запроса или подбирается по размеру компании;
    без номера выдаётся первый свободный стол. Бронь ждёт оплаты сбора.
    """
    booking = await booking_service.reserve_table(
        db,
        ctx,
        booking_in.customer_name,
        booking_in.phone,
        table_type=booking_in.table_type,
        party_size=booking_in.party_size,
        table_number=booking_in.table_number,
    )
    return BookingRead.from_booking(booking)


@router.post("/{customer_id}/payment/challenge", response_model=PaymentChallengeRead)
async def booking_payment_challenge_endpoint(
    customer_id: str,
    challenge_in: PaymentChallengeRequest,
    ctx: RestaurantContext = Depends(get_context),
):
    booking = ctx.get_booking(customer_id)
    if booking.payment_status is not PaymentStatus.PENDING:
        raise InvalidTransition(booking.payment_status, PaymentStatus.PAID)
    return payment_flow.issue_challenge(ctx, f"booking:{customer_id}", challenge_in.method, booking.booking_fee)


@router.post("/{customer_id}/payment", response_model=PaymentReceipt)
async def pay_booking_endpoint(
    customer_id: str,
    payment_in: PaymentRequest,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Оплата сбора за бронь. При отказе бронь остаётся неоплаченной,
    стол держится до отмены.
    """
    key = f"booking:{customer_id}"
    booking = ctx.get_booking(customer_id)
    otp_fn, amount_fn, otp_factory = payment_flow.prompts_for(ctx, key, payment_in)
    outcome = await booking_service.pay_booking(
        db, ctx, booking, payment_in.method, otp_fn, amount_fn, otp_factory=otp_factory
    )
    payment_flow.finish(ctx, key)
    return PaymentReceipt(
        method=outcome.method,
        amount_due=outcome.expected,
        amount_paid=outcome.paid,
        change_due=outcome.change_due,
    )


@router.post("/{customer_id}/cancel", response_model=BookingRead)
async def cancel_booking_endpoint(
    customer_id: str,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Отменяет бронь (оплаченная помечается как возвращённая) и освобождает стол.
    """
    booking = ctx.get_booking(customer_id)
    await booking_service.cancel_booking(db, ctx, booking)
    return BookingRead.from_booking(booking)
