import logging
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from restaurant_engine import models
from restaurant_engine.exceptions import DataCorruption, PersistenceFailure
from restaurant_engine.models.enums import OrderStatus, PaymentMethod, PaymentStatus
from restaurant_engine.money import to_money
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.schemas.order import Order, PriceBreakdown, SalesSummary

logger = logging.getLogger(__name__)

CatalogLookup = Callable[[int], Optional[MenuItem]]


def placeholder_name(menu_item_id: int) -> str:
    return f"Unknown Item (ID: {menu_item_id})"


async def save_order(db: AsyncSession, order: Order, breakdown: PriceBreakdown, new: bool = False) -> None:
    """
    Сохраняет заказ и его позиции одной транзакцией.

    new=True: заказ ещё ни разу не сохранялся, строки с таким id быть не
    должно. Если она есть (например, пропущенная при загрузке как
    повреждённая), запись отклоняется, а не перезаписывает её.

    Шапка заказа создаётся или обновляется, позиции полностью заменяются
    сгруппированными строками (menu_item_id, quantity, цена на момент заказа).
    При любой ошибке БД транзакция откатывается и поднимается
    PersistenceFailure, частичной записи не бывает.
    """
    lines = [
        models.OrderItem(menu_item_id=line.menu_item_id, quantity=line.quantity, price=line.price)
        for line in order.grouped_items()
    ]
    try:
        result = await db.execute(
            select(models.Order)
            .where(models.Order.id == order.id)
            .options(selectinload(models.Order.items))
        )
        row = result.scalars().first()
        if row is not None and new:
            raise PersistenceFailure(f"Order {order.id} already exists in storage")
        if row is None:
            row = models.Order(id=order.id, created_at=order.created_at)
            db.add(row)

        row.customer_id = order.customer_id
        row.status = order.status.value
        row.payment_status = order.payment_status.value
        row.payment_method = order.payment_method.value if order.payment_method else None
        row.coupon_code = order.coupon_code
        row.discount_applied = breakdown.discount
        row.subtotal_amount = breakdown.subtotal
        row.net_amount = breakdown.net
        row.tax_amount = breakdown.tax
        row.total_amount = breakdown.total
        row.items = lines

        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Order %s save rolled back: %s", order.id, exc)
        raise PersistenceFailure(f"Could not save order {order.id}") from exc

    logger.info("Saved order %s (%s/%s) total %s", order.id, order.status, order.payment_status, breakdown.total)


def _order_from_row(row: models.Order, lookup: CatalogLookup) -> Order:
    # статусы декодируем строго: неизвестное значение -> UnknownStatus
    status = OrderStatus.decode(row.status)
    payment_status = PaymentStatus.decode(row.payment_status)
    payment_method = PaymentMethod.decode(row.payment_method) if row.payment_method else None

    items: List[MenuItem] = []
    for line in sorted(row.items, key=lambda i: i.id):
        if line.quantity < 1:
            raise DataCorruption(f"Order {row.id} has a line with quantity {line.quantity}")
        known = lookup(line.menu_item_id)
        name = known.name if known is not None else placeholder_name(line.menu_item_id)
        item = MenuItem(id=line.menu_item_id, name=name, price=line.price)
        items.extend([item] * line.quantity)

    return Order(
        id=row.id,
        customer_id=row.customer_id,
        items=items,
        status=status,
        payment_status=payment_status,
        payment_method=payment_method,
        discount_applied=to_money(row.discount_applied or 0),
        coupon_code=row.coupon_code,
        created_at=row.created_at,
    )


async def load_orders(
    db: AsyncSession,
    lookup: CatalogLookup,
    customer_id: Optional[str] = None,
    skipped: Optional[list] = None,
) -> List[Order]:
    """
    Загружает заказы с позициями. Каждая сгруппированная строка
    разворачивается обратно в quantity отдельных MenuItem с ценой на момент
    заказа. Повреждённые записи логируются и пропускаются, ошибка
    добавляется в skipped.
    """
    stmt = (
        select(models.Order)
        .options(selectinload(models.Order.items))
        .order_by(models.Order.id)
        .execution_options(populate_existing=True)
    )
    if customer_id is not None:
        stmt = stmt.where(models.Order.customer_id == customer_id)

    try:
        result = await db.execute(stmt)
        rows = result.scalars().unique().all()
    except SQLAlchemyError as exc:
        await db.rollback()
        raise PersistenceFailure("Could not load orders") from exc

    orders = []
    for row in rows:
        try:
            orders.append(_order_from_row(row, lookup))
        except (DataCorruption, ValidationError) as exc:
            logger.error("Skipping order %s: %s", row.id, exc)
            if skipped is not None:
                skipped.append(exc)
    logger.info("Loaded %d orders", len(orders))
    return orders


async def get_max_order_id(db: AsyncSession) -> Optional[int]:
    """Максимальный id по всем строкам, включая те, что не прошли загрузку."""
    result = await db.execute(select(func.max(models.Order.id)))
    return result.scalar()


async def get_sales_summary(db: AsyncSession) -> SalesSummary:
    """
    Возвращает статистику по оплаченным заказам:
    - количество заказов
    - общую сумму (total_revenue)
    - средний чек (average_check)
    """
    stmt = select(
        func.count(models.Order.id).label("count_orders"),
        func.sum(models.Order.total_amount).label("total_revenue"),
    ).where(models.Order.payment_status == PaymentStatus.PAID.value)

    result = await db.execute(stmt)
    row = result.first()
    count_orders = row.count_orders or 0
    total_revenue = to_money(row.total_revenue or 0)
    average_check = to_money(total_revenue / count_orders) if count_orders else to_money(0)

    return SalesSummary(
        count_orders=count_orders,
        total_revenue=total_revenue,
        average_check=average_check,
    )
