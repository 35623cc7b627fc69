"""
Типизированные ошибки движка заказов и бронирований.

Каждая ошибка знает свой HTTP-статус, поэтому роуты не переводят их вручную.
"""


class EngineError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# --- validation -----------------------------------------------------------

class ValidationFailed(EngineError, ValueError):
    status_code = 400


class InvalidCoupon(ValidationFailed):
    def __init__(self, code: str):
        super().__init__(f"Invalid coupon code: {code!r}")
        self.code = code


class CouponNotEligible(ValidationFailed):
    def __init__(self, subtotal, minimum):
        super().__init__(f"Order subtotal {subtotal} is below the coupon minimum of {minimum}")
        self.subtotal = subtotal
        self.minimum = minimum


class DiscountExceedsSubtotal(ValidationFailed):
    def __init__(self, discount, subtotal):
        super().__init__(f"Discount {discount} exceeds order subtotal {subtotal}")
        self.discount = discount
        self.subtotal = subtotal


class OrderNotEditable(ValidationFailed):
    def __init__(self, order_id: int, status):
        super().__init__(f"Order {order_id} cannot be modified in status {status}")
        self.order_id = order_id
        self.status = status


class ItemNotInOrder(ValidationFailed):
    def __init__(self, order_id: int, menu_item_id: int):
        super().__init__(f"Menu item {menu_item_id} is not in order {order_id}")
        self.order_id = order_id
        self.menu_item_id = menu_item_id


class NotFound(EngineError, LookupError):
    status_code = 404


# --- state machine ----------------------------------------------------------

class InvalidTransition(EngineError):
    status_code = 409

    def __init__(self, current, requested):
        super().__init__(f"Cannot move from {current} to {requested}")
        self.current = current
        self.requested = requested


# --- tables -----------------------------------------------------------------

class ResourceUnavailable(EngineError):
    status_code = 409


class TableUnavailable(ResourceUnavailable):
    def __init__(self, table_type: str, table_number: int):
        super().__init__(f"{table_type} table {table_number} is already booked")
        self.table_type = table_type
        self.table_number = table_number


class NoTablesAvailable(ResourceUnavailable):
    def __init__(self, table_type: str):
        super().__init__(f"No {table_type} tables available")
        self.table_type = table_type


# --- payment ----------------------------------------------------------------

class PaymentRejected(EngineError):
    status_code = 402


class OtpMismatch(PaymentRejected):
    def __init__(self, entered):
        super().__init__("Incorrect OTP, please try again")
        self.entered = entered


class InsufficientAmount(PaymentRejected):
    def __init__(self, paid, expected):
        super().__init__(f"Paid amount {paid} is less than the amount due {expected}")
        self.paid = paid
        self.expected = expected


class InvalidAmount(PaymentRejected):
    def __init__(self, raw):
        super().__init__(f"Not a valid amount: {raw!r}")
        self.raw = raw


class PaymentAborted(PaymentRejected):
    def __init__(self, last_rejection: PaymentRejected = None):
        message = "Payment aborted"
        if last_rejection is not None:
            message = f"{message}: {last_rejection.message}"
        super().__init__(message)
        self.last_rejection = last_rejection


# --- storage ----------------------------------------------------------------

class PersistenceFailure(EngineError):
    status_code = 503


class DataCorruption(EngineError):
    status_code = 500


class UnknownStatus(DataCorruption):
    def __init__(self, kind: str, raw):
        super().__init__(f"Unknown {kind} value: {raw!r}")
        self.kind = kind
        self.raw = raw


class UnknownTableType(DataCorruption):
    def __init__(self, raw):
        super().__init__(f"Unknown table type: {raw!r}")
        self.raw = raw
