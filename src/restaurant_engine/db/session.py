from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from restaurant_engine.config import settings

# Асинхронный движок
engine = create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, future=True)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    """Фабрика сессий для движка (в тестах свой движок на in-memory SQLite)."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )
