from typing import List

from fastapi import APIRouter, Depends

from restaurant_engine.db.deps import get_context
from restaurant_engine.schemas.booking import TableAvailabilityRead
from restaurant_engine.services.context import RestaurantContext
from restaurant_engine.services.tables import booking_fee

router = APIRouter(prefix="/tables", tags=["tables"])


@router.get("/availability", response_model=List[TableAvailabilityRead])
async def table_availability(ctx: RestaurantContext = Depends(get_context)):
    """
    Свободные и занятые столы по каждому типу.
    """
    result = []
    for table_type in ctx.inventory.table_types:
        occupancy = ctx.inventory.occupancy(table_type.name)
        result.append(
            TableAvailabilityRead(
                table_type=table_type.name,
                seats=table_type.seats,
                fee=booking_fee(table_type, ctx.settings.BOOKING_FEE_PER_SEAT),
                free_tables=[n for n, busy in enumerate(occupancy, start=1) if not busy],
                occupied_tables=[n for n, busy in enumerate(occupancy, start=1) if busy],
            )
        )
    return result
