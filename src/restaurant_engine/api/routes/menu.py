from typing import List

from fastapi import APIRouter, Depends

from restaurant_engine.db.deps import get_context
from restaurant_engine.schemas.menu import MenuItemRead
from restaurant_engine.services.context import RestaurantContext

router = APIRouter(prefix="/menu", tags=["menu"])


@router.get("/", response_model=List[MenuItemRead])
async def list_menu(ctx: RestaurantContext = Depends(get_context)):
    """
    Возвращает меню, отсортированное по id.
    """
    return [MenuItemRead.model_validate(item, from_attributes=True) for item in ctx.catalog.list_menu_items()]
