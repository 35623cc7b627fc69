from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, conint, condecimal

from restaurant_engine.models.enums import (
    EDITABLE_ORDER_STATUSES,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from restaurant_engine.schemas.menu import MenuItem


class OrderLine(BaseModel):
    """Сгруппированная строка заказа: так она и хранится в order_items."""

    menu_item_id: int
    name: str
    quantity: int
    price: Decimal

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class Order(BaseModel):
    """
    Заказ в памяти. Одна запись в items на каждую заказанную единицу.
    Итоговая сумма не кэшируется, её всегда считает services.pricing.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: int
    customer_id: Optional[str] = None
    items: List[MenuItem] = Field(default_factory=list)
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: Optional[PaymentMethod] = None
    discount_applied: condecimal(ge=0) = Decimal("0.00")
    coupon_code: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_ORDER_STATUSES and self.payment_status is PaymentStatus.PENDING

    @property
    def is_paid(self) -> bool:
        return self.payment_status is PaymentStatus.PAID

    def grouped_items(self) -> List[OrderLine]:
        """
        Группирует позиции по (menu_item_id, цена на момент заказа)
        в порядке первого появления.
        """
        lines: Dict[Tuple[int, Decimal], OrderLine] = {}
        for item in self.items:
            key = (item.id, item.price)
            if key in lines:
                lines[key].quantity += 1
            else:
                lines[key] = OrderLine(menu_item_id=item.id, name=item.name, quantity=1, price=item.price)
        return list(lines.values())


class PriceBreakdown(BaseModel):
    subtotal: Decimal
    discount: Decimal
    net: Decimal
    tax: Decimal
    total: Decimal


class OrderCreate(BaseModel):
    customer_id: Optional[str] = None


class OrderItemAdd(BaseModel):
    menu_item_id: int
    quantity: conint(ge=1) = 1


class CouponApply(BaseModel):
    code: str


class OrderStatusUpdate(BaseModel):
    status: OrderStatus

    class Config:
        extra = "forbid"


class OrderLineRead(BaseModel):
    menu_item_id: int
    name: str
    quantity: int
    price: Decimal
    line_total: Decimal


class OrderRead(BaseModel):
    id: int
    customer_id: Optional[str] = None
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: Optional[PaymentMethod] = None
    coupon_code: Optional[str] = None
    created_at: datetime
    items: List[OrderLineRead] = []
    count_items: int
    subtotal: Decimal
    discount: Decimal
    net: Decimal
    tax: Decimal
    total: Decimal

    @classmethod
    def from_order(cls, order: Order, breakdown: PriceBreakdown):
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            coupon_code=order.coupon_code,
            created_at=order.created_at,
            items=[
                OrderLineRead(
                    menu_item_id=line.menu_item_id,
                    name=line.name,
                    quantity=line.quantity,
                    price=line.price,
                    line_total=line.line_total,
                )
                for line in order.grouped_items()
            ],
            count_items=len(order.items),
            subtotal=breakdown.subtotal,
            discount=breakdown.discount,
            net=breakdown.net,
            tax=breakdown.tax,
            total=breakdown.total,
        )


class SalesSummary(BaseModel):
    count_orders: int
    total_revenue: Decimal
    average_check: Decimal
