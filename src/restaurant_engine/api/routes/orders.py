from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.api import payment_flow
from restaurant_engine.crud.order import get_sales_summary
from restaurant_engine.db.deps import get_async_session, get_context
from restaurant_engine.exceptions import OrderNotEditable, ValidationFailed
from restaurant_engine.schemas.order import (
    CouponApply,
    OrderCreate,
    OrderItemAdd,
    OrderRead,
    OrderStatusUpdate,
    SalesSummary,
)
from restaurant_engine.schemas.payment import PaymentChallengeRead, PaymentChallengeRequest, PaymentReceipt, PaymentRequest
from restaurant_engine.services import order_lifecycle
from restaurant_engine.services.context import RestaurantContext

router = APIRouter(prefix="/orders", tags=["orders"])


def _read(ctx: RestaurantContext, order) -> OrderRead:
    return OrderRead.from_order(order, ctx.price(order))


@router.get("/", response_model=List[OrderRead])
async def list_orders(
    customer_id: Optional[str] = Query(None, description="Фильтр по клиенту"),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Возвращает сохранённые заказы (корзины не показываются).
    """
    return [_read(ctx, order) for order in ctx.list_orders(customer_id)]


@router.post("/", response_model=OrderRead, status_code=201)
async def create_order_endpoint(order_in: OrderCreate, ctx: RestaurantContext = Depends(get_context)):
    """
    Создаёт пустой заказ. В БД он попадает при размещении или оплате.
    """
    order = order_lifecycle.create_order(ctx, customer_id=order_in.customer_id)
    return _read(ctx, order)


@router.get("/summary", response_model=SalesSummary)
async def get_orders_summary_endpoint(db: AsyncSession = Depends(get_async_session)):
    """
    Статистика по оплаченным заказам:
    - count_orders (кол-во заказов)
    - total_revenue (сумма)
    - average_check (средний чек)
    """
    return await get_sales_summary(db)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int = Path(..., description="ID заказа"),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Возвращает заказ с позициями и расчётом суммы.
    """
    return _read(ctx, ctx.get_order(order_id))


@router.post("/{order_id}/items", response_model=OrderRead)
async def add_item_endpoint(
    order_id: int,
    item_in: OrderItemAdd,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    order = ctx.get_order(order_id)
    await order_lifecycle.add_item_by_id(db, ctx, order, item_in.menu_item_id, item_in.quantity)
    return _read(ctx, order)


@router.delete("/{order_id}/items/{menu_item_id}", response_model=OrderRead)
async def remove_item_endpoint(
    order_id: int,
    menu_item_id: int,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Убирает одну единицу позиции из заказа.
    """
    order = ctx.get_order(order_id)
    await order_lifecycle.remove_item(db, ctx, order, menu_item_id)
    return _read(ctx, order)


@router.post("/{order_id}/coupon", response_model=OrderRead)
async def apply_coupon_endpoint(
    order_id: int,
    coupon_in: CouponApply,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    order = ctx.get_order(order_id)
    await order_lifecycle.apply_discount(db, ctx, order, coupon_in.code)
    return _read(ctx, order)


@router.post("/{order_id}/place", response_model=OrderRead)
async def place_order_endpoint(
    order_id: int,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    order = ctx.get_order(order_id)
    await order_lifecycle.place_order(db, ctx, order)
    return _read(ctx, order)


@router.post("/{order_id}/payment/challenge", response_model=PaymentChallengeRead)
async def payment_challenge_endpoint(
    order_id: int,
    challenge_in: PaymentChallengeRequest,
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Начинает оплату: возвращает сумму к оплате и, для онлайн-оплаты, OTP.
    """
    order = ctx.get_order(order_id)
    if not order.is_editable:
        raise OrderNotEditable(order.id, order.status)
    if not order.items:
        raise ValidationFailed("Cannot pay for an empty order")
    return payment_flow.issue_challenge(ctx, f"order:{order_id}", challenge_in.method, ctx.price(order).total)


@router.post("/{order_id}/payment", response_model=PaymentReceipt)
async def pay_order_endpoint(
    order_id: int,
    payment_in: PaymentRequest,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Оплачивает заказ. Недостаточная сумма или неверный OTP -> 402,
    заказ остаётся неоплаченным.
    """
    key = f"order:{order_id}"
    order = ctx.get_order(order_id)
    otp_fn, amount_fn, otp_factory = payment_flow.prompts_for(ctx, key, payment_in)
    outcome = await order_lifecycle.confirm_and_pay(
        db, ctx, order, payment_in.method, otp_fn, amount_fn, otp_factory=otp_factory
    )
    payment_flow.finish(ctx, key)
    return PaymentReceipt(
        method=outcome.method,
        amount_due=outcome.expected,
        amount_paid=outcome.paid,
        change_due=outcome.change_due,
    )


@router.patch("/{order_id}/status", response_model=OrderRead)
async def patch_order_status_endpoint(
    order_id: int,
    status_in: OrderStatusUpdate,
    db: AsyncSession = Depends(get_async_session),
    ctx: RestaurantContext = Depends(get_context),
):
    """
    Административная смена статуса заказа по графу переходов.
    """
    order = ctx.get_order(order_id)
    await order_lifecycle.set_status(db, ctx, order, status_in.status)
    return _read(ctx, order)
