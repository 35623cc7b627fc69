from decimal import Decimal

from pydantic import BaseModel, ConfigDict, condecimal, constr, field_validator

from restaurant_engine.money import to_money


class MenuItem(BaseModel):
    """
    Позиция меню. Заказ хранит копии позиций на момент добавления,
    поэтому модель неизменяемая.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: int
    name: constr(strip_whitespace=True, min_length=1)
    price: condecimal(gt=0)

    @field_validator("price")
    @classmethod
    def round_price(cls, value: Decimal) -> Decimal:
        return to_money(value)


class MenuItemRead(BaseModel):
    id: int
    name: str
    price: Decimal

    class Config:
        from_attributes = True
