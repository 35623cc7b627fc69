import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

from restaurant_engine import models  # noqa: F401  регистрирует таблицы
from restaurant_engine.db.base import Base
from restaurant_engine.config import settings

config = context.config

if config.config_file_name is not None:
    # логгеры приложения не отключаем: миграции запускаются и из тестов
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def database_url() -> str:
    """
    Куда мигрировать: `alembic -x database_url=...` важнее настроек,
    так можно прогнать миграции на отдельной БД, не трогая .env.
    """
    return context.get_x_argument(as_dictionary=True).get("database_url") or settings.DATABASE_URL


def configure(**kwargs):
    context.configure(
        target_metadata=target_metadata,
        # статусы хранятся строками, поэтому autogenerate должен видеть смену длины
        compare_type=True,
        **kwargs,
    )


def run_migrations_offline():
    """Offline mode: SQL-скрипт без подключения к БД."""
    configure(url=database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    # SQLite не умеет ALTER COLUMN, изменения идут через пересоздание таблицы
    configure(connection=connection, render_as_batch=connection.dialect.name == "sqlite")

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    connectable = create_async_engine(database_url(), poolclass=pool.NullPool)
    try:
        async with connectable.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
