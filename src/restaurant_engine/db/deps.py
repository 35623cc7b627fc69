from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from restaurant_engine.services.context import RestaurantContext


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Использовать в Depends(get_async_session)
    Пример: async def endpoint(db: AsyncSession = Depends(get_async_session))
    """
    async with request.app.state.session_factory() as session:
        yield session


def get_context(request: Request) -> RestaurantContext:
    """Контекст движка создаётся в lifespan приложения."""
    return request.app.state.context
