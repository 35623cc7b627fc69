"""
Жизненный цикл заказа.

Правило для всех переходов: сначала пишем новое состояние в БД, и только
после успешного commit меняем объект в памяти. Если запись упала, заказ
остаётся в прежнем состоянии и операцию можно повторить.
"""
import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.crud.order import save_order
from restaurant_engine.exceptions import (
    CouponNotEligible,
    DiscountExceedsSubtotal,
    InvalidCoupon,
    InvalidTransition,
    ItemNotInOrder,
    NotFound,
    OrderNotEditable,
    ValidationFailed,
)
from restaurant_engine.models.enums import (
    ORDER_TRANSITIONS,
    PAYMENT_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.schemas.order import Order
from restaurant_engine.services import pricing
from restaurant_engine.services.context import RestaurantContext
from restaurant_engine.services.payment import AmountFn, OtpFn, PaymentOutcome, generate_otp, verify_payment

logger = logging.getLogger(__name__)


def create_order(ctx: RestaurantContext, customer_id: Optional[str] = None) -> Order:
    order = Order(id=ctx.order_ids.next(), customer_id=customer_id)
    ctx.carts[order.id] = order
    return order


def _ensure_editable(order: Order) -> None:
    if not order.is_editable:
        raise OrderNotEditable(order.id, order.status)


def _refresh_coupon(ctx: RestaurantContext, order: Order) -> None:
    """Пересчитывает скидку после изменения состава; неподходящий купон снимается."""
    if not order.coupon_code:
        return
    s = ctx.settings
    try:
        order.discount_applied = pricing.coupon_discount(
            order.coupon_code,
            order.items,
            s.COUPON_CODE,
            s.MIN_ORDER_FOR_COUPON,
            s.COUPON_DISCOUNT_AMOUNT,
            s.COUPON_DISCOUNT_PERCENT,
        )
    except (InvalidCoupon, CouponNotEligible, DiscountExceedsSubtotal) as exc:
        logger.info("Coupon %s removed from order %s: %s", order.coupon_code, order.id, exc)
        order.discount_applied = pricing.ZERO
        order.coupon_code = None


def _draft(order: Order) -> Order:
    # своя копия списка позиций: правки черновика не должны задеть заказ
    return order.model_copy(update={"items": list(order.items)})


async def _commit_edit(db: AsyncSession, ctx: RestaurantContext, order: Order, draft: Order) -> None:
    """
    Переносит правку черновика в заказ. Заказ, который уже есть в БД
    (размещённый), сначала перезаписывается там вместе с суммами.
    """
    if order.id in ctx.orders:
        await save_order(db, draft, ctx.price(draft))
    order.items = draft.items
    order.discount_applied = draft.discount_applied
    order.coupon_code = draft.coupon_code


async def add_item(db: AsyncSession, ctx: RestaurantContext, order: Order, item: MenuItem, quantity: int = 1) -> None:
    _ensure_editable(order)
    if quantity < 1:
        raise ValidationFailed(f"Quantity must be at least 1, got {quantity}")
    draft = _draft(order)
    draft.items.extend([item] * quantity)
    _refresh_coupon(ctx, draft)
    await _commit_edit(db, ctx, order, draft)


async def add_item_by_id(
    db: AsyncSession, ctx: RestaurantContext, order: Order, menu_item_id: int, quantity: int = 1
) -> MenuItem:
    item = ctx.catalog.get_menu_item(menu_item_id)
    if item is None:
        raise NotFound(f"Menu item {menu_item_id} not found")
    await add_item(db, ctx, order, item, quantity)
    return item


async def remove_item(db: AsyncSession, ctx: RestaurantContext, order: Order, menu_item_id: int) -> MenuItem:
    """Убирает одну единицу позиции (первое совпадение)."""
    _ensure_editable(order)
    draft = _draft(order)
    for index, item in enumerate(draft.items):
        if item.id == menu_item_id:
            del draft.items[index]
            break
    else:
        raise ItemNotInOrder(order.id, menu_item_id)
    _refresh_coupon(ctx, draft)
    await _commit_edit(db, ctx, order, draft)
    return item


async def apply_discount(db: AsyncSession, ctx: RestaurantContext, order: Order, code: str):
    """
    Применяет купон. Второй купон заменяет первый, скидки не суммируются.
    При ошибке скидка заказа не меняется.
    """
    _ensure_editable(order)
    s = ctx.settings
    discount = pricing.coupon_discount(
        code,
        order.items,
        s.COUPON_CODE,
        s.MIN_ORDER_FOR_COUPON,
        s.COUPON_DISCOUNT_AMOUNT,
        s.COUPON_DISCOUNT_PERCENT,
    )
    draft = _draft(order)
    draft.discount_applied = discount
    draft.coupon_code = s.COUPON_CODE
    await _commit_edit(db, ctx, order, draft)
    logger.info("Coupon %s applied to order %s: -%s", s.COUPON_CODE, order.id, discount)
    return discount


async def _persist_and_apply(db: AsyncSession, ctx: RestaurantContext, order: Order, **changes) -> None:
    candidate = order.model_copy(update=changes)
    await save_order(db, candidate, ctx.price(candidate), new=order.id not in ctx.orders)
    for field, value in changes.items():
        setattr(order, field, value)
    ctx.register_order(order)


async def place_order(db: AsyncSession, ctx: RestaurantContext, order: Order) -> Order:
    if OrderStatus.PLACED not in ORDER_TRANSITIONS[order.status]:
        raise InvalidTransition(order.status, OrderStatus.PLACED)
    if not order.items:
        raise ValidationFailed("Cannot place an empty order")
    await _persist_and_apply(db, ctx, order, status=OrderStatus.PLACED)
    logger.info("Order %s placed", order.id)
    return order


async def confirm_and_pay(
    db: AsyncSession,
    ctx: RestaurantContext,
    order: Order,
    method: PaymentMethod,
    otp_fn: OtpFn,
    amount_fn: AmountFn,
    otp_factory: Callable[[], str] = generate_otp,
) -> PaymentOutcome:
    """
    Проводит оплату заказа и переводит его в PAID/CONFIRMED.

    Единственный путь, после которого заказ нельзя редактировать.
    Отказ от оплаты или ошибка БД оставляют заказ как был.
    """
    _ensure_editable(order)
    if not order.items:
        raise ValidationFailed("Cannot pay for an empty order")

    breakdown = ctx.price(order)
    outcome = verify_payment(breakdown.total, method, otp_fn, amount_fn, otp_factory=otp_factory)

    await _persist_and_apply(
        db,
        ctx,
        order,
        status=OrderStatus.CONFIRMED,
        payment_status=PaymentStatus.PAID,
        payment_method=outcome.method,
    )
    logger.info("Order %s paid by %s, change due %s", order.id, outcome.method, outcome.change_due)
    return outcome


async def set_status(db: AsyncSession, ctx: RestaurantContext, order: Order, new_status) -> Order:
    """
    Административный переход по графу статусов. Отмена оплаченного заказа
    переводит оплату в REFUNDED, неоплаченного в CANCELLED.
    """
    new_status = OrderStatus(new_status)
    if new_status not in ORDER_TRANSITIONS[order.status]:
        raise InvalidTransition(order.status, new_status)

    changes = {"status": new_status}
    if new_status is OrderStatus.CANCELLED:
        payment_status = PaymentStatus.REFUNDED if order.is_paid else PaymentStatus.CANCELLED
        if payment_status not in PAYMENT_TRANSITIONS[order.payment_status]:
            raise InvalidTransition(order.payment_status, payment_status)
        changes["payment_status"] = payment_status

    previous = order.status
    await _persist_and_apply(db, ctx, order, **changes)
    logger.info("Order %s: %s -> %s", order.id, previous, new_status)
    return order


async def cancel_order(db: AsyncSession, ctx: RestaurantContext, order: Order) -> Order:
    return await set_status(db, ctx, order, OrderStatus.CANCELLED)
