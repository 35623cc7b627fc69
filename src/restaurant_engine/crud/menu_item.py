import logging
from decimal import Decimal
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine import models
from restaurant_engine.exceptions import PersistenceFailure
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.services.sequences import SequenceGenerator

logger = logging.getLogger(__name__)

DEFAULT_MENU = [
    ("chicken biryani", "150.00"),
    ("mutton biryani", "200.00"),
    ("veg biryani", "100.00"),
    ("chicken curry", "180.00"),
    ("mutton curry", "220.00"),
    ("veg curry", "120.00"),
    ("chicken tikka", "160.00"),
    ("mutton tikka", "210.00"),
    ("veg tikka", "130.00"),
    ("chicken kebab", "170.00"),
    ("mutton kebab", "230.00"),
    ("veg kebab", "140.00"),
    ("soft drink", "50.00"),
    ("water", "20.00"),
    ("salad", "30.00"),
    ("dessert", "80.00"),
]


async def load_menu_items(db: AsyncSession) -> List[MenuItem]:
    """
    Возвращает всё меню, отсортированное по id.
    """
    result = await db.execute(select(models.MenuItem).order_by(models.MenuItem.id))
    return [MenuItem.model_validate(row) for row in result.scalars().all()]


async def seed_default_menu(db: AsyncSession, sequence: SequenceGenerator) -> List[MenuItem]:
    """
    Заполняет пустое меню стандартными блюдами одной транзакцией.
    """
    items = [MenuItem(id=sequence.next(), name=name, price=Decimal(price)) for name, price in DEFAULT_MENU]
    try:
        db.add_all([models.MenuItem(id=item.id, name=item.name, price=item.price) for item in items])
        await db.commit()
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.error("Failed to seed default menu: %s", exc)
        raise PersistenceFailure("Could not seed the default menu") from exc
    logger.info("Seeded %d default menu items", len(items))
    return items
