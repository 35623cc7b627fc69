"""
Подтверждение оплаты: OTP (для онлайн-оплаты) и проверка суммы.

Протокол одинаковый для заказов и броней. Сам модуль ничего не читает и
не пишет: хост (консоль, диалог, HTTP) передаёт функции-подсказки.
Функция возвращает ввод пользователя или None, если он отказался.
"""
import logging
import secrets
from decimal import Decimal, InvalidOperation
from typing import Callable, NamedTuple, Optional, Union

from restaurant_engine.exceptions import (
    InsufficientAmount,
    InvalidAmount,
    OtpMismatch,
    PaymentAborted,
    PaymentRejected,
)
from restaurant_engine.models.enums import PaymentMethod
from restaurant_engine.money import to_money

logger = logging.getLogger(__name__)


class OtpChallenge(NamedTuple):
    code: str
    attempt: int
    last_rejection: Optional[PaymentRejected] = None


class AmountRequest(NamedTuple):
    expected: Decimal
    attempt: int
    last_rejection: Optional[PaymentRejected] = None


class PaymentOutcome(NamedTuple):
    method: PaymentMethod
    expected: Decimal
    paid: Decimal
    change_due: Decimal
    otp_attempts: int
    amount_attempts: int


OtpFn = Callable[[OtpChallenge], Optional[str]]
AmountFn = Callable[[AmountRequest], Optional[Union[Decimal, str, int, float]]]


def generate_otp() -> str:
    """Случайный 4-значный код 1000..9999."""
    return str(1000 + secrets.randbelow(9000))


def answer_once(value):
    """
    Подсказка, которая отвечает value один раз, а на повторный вопрос
    возвращает None. Так HTTP-запрос проходит протокол за один шаг.
    """
    answers = [value]

    def prompt(_request):
        return answers.pop() if answers else None

    return prompt


def _parse_amount(raw) -> Decimal:
    try:
        amount = to_money(raw)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmount(raw)
    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(raw)
    return amount


def verify_payment(
    expected,
    method: PaymentMethod,
    otp_fn: OtpFn,
    amount_fn: AmountFn,
    otp_factory: Callable[[], str] = generate_otp,
) -> PaymentOutcome:
    expected = to_money(expected)
    method = PaymentMethod(method)

    otp_attempts = 0
    if method.requires_otp:
        code = otp_factory()
        last_rejection = None
        while True:
            entered = otp_fn(OtpChallenge(code, otp_attempts + 1, last_rejection))
            if entered is None:
                raise PaymentAborted(last_rejection)
            otp_attempts += 1
            if str(entered).strip() == code:
                break
            last_rejection = OtpMismatch(entered)
            logger.info("OTP mismatch on attempt %d", otp_attempts)

    amount_attempts = 0
    last_rejection = None
    while True:
        raw = amount_fn(AmountRequest(expected, amount_attempts + 1, last_rejection))
        if raw is None:
            raise PaymentAborted(last_rejection)
        amount_attempts += 1
        try:
            paid = _parse_amount(raw)
        except InvalidAmount as exc:
            last_rejection = exc
            logger.info("Rejected payment amount %r", raw)
            continue
        if paid < expected:
            last_rejection = InsufficientAmount(paid, expected)
            logger.info("Paid %s is less than %s, asking again", paid, expected)
            continue
        return PaymentOutcome(
            method=method,
            expected=expected,
            paid=paid,
            change_due=paid - expected,
            otp_attempts=otp_attempts,
            amount_attempts=amount_attempts,
        )
