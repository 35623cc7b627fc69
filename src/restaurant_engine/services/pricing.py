"""
Расчёт стоимости заказа: subtotal -> скидка -> налог -> итог.

Все суммы Decimal с двумя знаками, округление half-up.
"""
from decimal import Decimal
from typing import Iterable, Optional

from restaurant_engine.exceptions import (
    CouponNotEligible,
    DiscountExceedsSubtotal,
    InvalidCoupon,
    ValidationFailed,
)
from restaurant_engine.money import to_money
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.schemas.order import PriceBreakdown

ZERO = Decimal("0.00")


def subtotal(items: Iterable[MenuItem]) -> Decimal:
    """Сумма цен, каждая единица считается отдельно."""
    return to_money(sum((item.price for item in items), ZERO))


def net_amount(items: Iterable[MenuItem], discount: Decimal) -> Decimal:
    items = list(items)
    discount = to_money(discount)
    if discount < ZERO:
        raise ValidationFailed(f"Discount cannot be negative: {discount}")
    sub = subtotal(items)
    if discount > sub:
        raise DiscountExceedsSubtotal(discount, sub)
    return sub - discount


def tax_amount(net: Decimal, tax_rate: Decimal) -> Decimal:
    return to_money(net * Decimal(str(tax_rate)))


def price_breakdown(items: Iterable[MenuItem], discount: Decimal, tax_rate: Decimal) -> PriceBreakdown:
    items = list(items)
    net = net_amount(items, discount)
    tax = tax_amount(net, tax_rate)
    return PriceBreakdown(
        subtotal=subtotal(items),
        discount=to_money(discount),
        net=net,
        tax=tax,
        total=to_money(net + tax),
    )


def coupon_discount(
    code: str,
    items: Iterable[MenuItem],
    coupon_code: str,
    min_order: Decimal,
    flat_amount: Decimal,
    percent: Optional[Decimal] = None,
) -> Decimal:
    """
    Проверяет купон и возвращает сумму скидки.

    Код сравнивается без учёта регистра, subtotal должен быть не меньше
    min_order. Если задан percent, скидка считается от subtotal,
    иначе это фиксированная flat_amount.
    """
    if (code or "").strip().lower() != coupon_code.strip().lower():
        raise InvalidCoupon(code)

    sub = subtotal(items)
    if sub < to_money(min_order):
        raise CouponNotEligible(sub, to_money(min_order))

    if percent is not None:
        discount = to_money(sub * Decimal(str(percent)) / Decimal("100"))
    else:
        discount = to_money(flat_amount)

    if discount > sub:
        raise DiscountExceedsSubtotal(discount, sub)
    return discount
