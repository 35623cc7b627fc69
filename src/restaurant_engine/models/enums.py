import enum

from restaurant_engine.exceptions import UnknownStatus


class DisplayEnum(str, enum.Enum):
    """
    Enum, значением которого служит строка из БД ("Pending", "Paid").

    Декодирование строгое: неизвестное или пустое значение поднимает
    UnknownStatus, а не подставляет значение по умолчанию.
    """

    @classmethod
    def decode(cls, raw):
        if raw is not None:
            text = str(raw).strip()
            for member in cls:
                if member.value.lower() == text.lower():
                    return member
        raise UnknownStatus(cls.__name__, raw)

    def __str__(self) -> str:
        return self.value


class OrderStatus(DisplayEnum):
    PENDING = "Pending"
    PLACED = "Placed"
    CONFIRMED = "Confirmed"
    PREPARING = "Preparing"
    READY = "Ready"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentStatus(DisplayEnum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"
    CANCELLED = "Cancelled"


class PaymentMethod(DisplayEnum):
    CASH = "Cash"
    CARD = "Card"
    ONLINE = "Online"

    @property
    def requires_otp(self) -> bool:
        return self is PaymentMethod.ONLINE


EDITABLE_ORDER_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PLACED})
INACTIVE_PAYMENT_STATUSES = frozenset({PaymentStatus.CANCELLED, PaymentStatus.REFUNDED})

ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PLACED, OrderStatus.CANCELLED},
    # в CONFIRMED попадаем только через оплату
    OrderStatus.PLACED: {OrderStatus.CANCELLED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED},
    OrderStatus.PREPARING: {OrderStatus.READY, OrderStatus.CANCELLED},
    OrderStatus.READY: {OrderStatus.DELIVERED, OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.COMPLETED: set(),
    OrderStatus.CANCELLED: set(),
}

PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID, PaymentStatus.CANCELLED},
    PaymentStatus.PAID: {PaymentStatus.REFUNDED},
    PaymentStatus.REFUNDED: set(),
    PaymentStatus.CANCELLED: set(),
}
