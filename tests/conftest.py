from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from restaurant_engine import models  # noqa: F401
from restaurant_engine.config import Settings
from restaurant_engine.db.base import Base
from restaurant_engine.db.session import make_session_factory
from restaurant_engine.main import create_app
from restaurant_engine.schemas.menu import MenuItem
from restaurant_engine.services.context import RestaurantContext

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def memory_engine():
    # одно соединение на всё время теста, иначе у каждой сессии своя пустая БД
    return create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def settings():
    return Settings(_env_file=None, DATABASE_URL=TEST_DATABASE_URL, LOG_LEVEL="DEBUG")


@pytest_asyncio.fixture
async def engine():
    engine = memory_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db(engine):
    async with make_session_factory(engine)() as session:
        yield session


@pytest_asyncio.fixture
async def ctx(settings, db):
    ctx = RestaurantContext(settings)
    await ctx.reload(db)
    return ctx


@pytest.fixture
def biryani():
    return MenuItem(id=101, name="chicken biryani", price=Decimal("150"))


@pytest.fixture
def coke():
    return MenuItem(id=113, name="soft drink", price=Decimal("50"))


@pytest.fixture
def client(settings):
    app = create_app(settings, memory_engine())
    with TestClient(app) as client:
        yield client


class Prompts:
    """Заранее заданные ответы для протокола оплаты; None, когда ответы кончились."""

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return self.answers.pop(0) if self.answers else None


@pytest.fixture
def prompts():
    return Prompts
