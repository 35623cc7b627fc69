from datetime import datetime

from fastapi import APIRouter, Depends

from restaurant_engine.db.deps import get_context
from restaurant_engine.services.context import RestaurantContext

router = APIRouter()


@router.get("/health", summary="Health check")
async def health_check(ctx: RestaurantContext = Depends(get_context)):
    """
    Health-check: кроме статуса показывает, сколько записей загружено
    и сколько пропущено как повреждённые.
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(),
        "menu_items": len(ctx.catalog),
        "orders": len(ctx.orders),
        "bookings": len(ctx.bookings),
        "skipped_records": len(ctx.skipped),
    }
