from .enums import OrderStatus, PaymentStatus, PaymentMethod
from .menu_item import MenuItem
from .order import Order
from .order_item import OrderItem
from .table_booking import TableBooking

__all__ = [
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "MenuItem",
    "Order",
    "OrderItem",
    "TableBooking",
]
