import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from restaurant_engine import models  # noqa: F401  регистрирует таблицы в Base.metadata
from restaurant_engine.api import health
from restaurant_engine.api.routes.bookings import router as bookings_router
from restaurant_engine.api.routes.menu import router as menu_router
from restaurant_engine.api.routes.orders import router as orders_router
from restaurant_engine.api.routes.tables import router as tables_router
from restaurant_engine.config import Settings, settings
from restaurant_engine.db.base import Base
from restaurant_engine.db.session import engine, make_session_factory
from restaurant_engine.exceptions import EngineError
from restaurant_engine.log import configure_logging
from restaurant_engine.services.context import RestaurantContext

logger = logging.getLogger(__name__)


def create_app(app_settings: Optional[Settings] = None, db_engine: Optional[AsyncEngine] = None) -> FastAPI:
    app_settings = app_settings or settings
    db_engine = db_engine or engine
    session_factory = make_session_factory(db_engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(app_settings.LOG_LEVEL)
        # схема для локального запуска; в проде таблицы создаёт alembic upgrade head
        async with db_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        ctx = RestaurantContext(app_settings)
        async with session_factory() as db:
            await ctx.reload(db)
        app.state.context = ctx
        logger.info("Application started")
        yield
        logger.info("Application stopped")

    app = FastAPI(title="Restaurant Engine", lifespan=lifespan)
    app.state.session_factory = session_factory

    @app.exception_handler(EngineError)
    async def engine_error_handler(request: Request, exc: EngineError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    # Подключаем роуты
    app.include_router(health.router)
    app.include_router(menu_router)
    app.include_router(orders_router)
    app.include_router(tables_router)
    app.include_router(bookings_router)
    return app


app = create_app()
