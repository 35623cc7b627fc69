"""
Протокол оплаты поверх HTTP.

Challenge-запрос выдаёт и запоминает OTP, запрос оплаты отвечает на
подсказки протокола один раз. Повторная подсказка означает, что ответ
не подошёл: протокол прерывается, клиент получает 402 с причиной.
"""
from decimal import Decimal
from typing import Callable, Tuple

from restaurant_engine.exceptions import ValidationFailed
from restaurant_engine.models.enums import PaymentMethod
from restaurant_engine.schemas.payment import PaymentChallengeRead, PaymentRequest
from restaurant_engine.services.context import RestaurantContext
from restaurant_engine.services.payment import answer_once, generate_otp


def issue_challenge(ctx: RestaurantContext, key: str, method: PaymentMethod, amount_due: Decimal) -> PaymentChallengeRead:
    otp = None
    if method.requires_otp:
        otp = generate_otp()
        ctx.pending_otps[key] = otp
    return PaymentChallengeRead(method=method, amount_due=amount_due, otp=otp)


def prompts_for(ctx: RestaurantContext, key: str, payment: PaymentRequest) -> Tuple[Callable, Callable, Callable]:
    """Возвращает (otp_fn, amount_fn, otp_factory) для verify_payment."""
    code = ctx.pending_otps.get(key)
    if payment.method.requires_otp and code is None:
        raise ValidationFailed("Request a payment challenge before paying online")
    return answer_once(payment.otp), answer_once(payment.amount), lambda: code


def finish(ctx: RestaurantContext, key: str) -> None:
    ctx.pending_otps.pop(key, None)
