from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from restaurant_engine.models.enums import PaymentMethod


class PaymentChallengeRequest(BaseModel):
    method: PaymentMethod


class PaymentChallengeRead(BaseModel):
    method: PaymentMethod
    amount_due: Decimal
    # OTP показываем клиенту сразу, как в кассовом интерфейсе
    otp: Optional[str] = None


class PaymentRequest(BaseModel):
    method: PaymentMethod
    amount: Decimal
    otp: Optional[str] = None


class PaymentReceipt(BaseModel):
    method: PaymentMethod
    amount_due: Decimal
    amount_paid: Decimal
    change_due: Decimal
