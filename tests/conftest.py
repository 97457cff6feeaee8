import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from main import app
from shared.config.database import Base, get_db
from shared.security import CurrentUser, create_access_token, limiter
from services.product_service.models import Product


@pytest.fixture()
async def engine(tmp_path):
    # File-backed so every session gets its own connection and transaction
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shop.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
def call(session_factory):
    """Runs a service call in its own session, the way each request does."""
    async def _call(fn, *args, **kwargs):
        async with session_factory() as session:
            return await fn(session, *args, **kwargs)
    return _call


@pytest.fixture()
def set_product(session_factory):
    async def _set(product_id, **values):
        async with session_factory() as session:
            product = await session.get(Product, product_id)
            for key, value in values.items():
                setattr(product, key, value)
            await session.commit()
    return _set


@pytest.fixture()
def make_product(session_factory):
    async def _make(**overrides):
        values = {"name": "Widget", "image": "widget.png", "price": 10.0, "stock": 5}
        values.update(overrides)
        async with session_factory() as session:
            product = Product(**values)
            session.add(product)
            await session.commit()
            return product.id
    return _make


@pytest.fixture()
def stock_of(session_factory):
    async def _stock(product_id):
        async with session_factory() as session:
            return (await session.get(Product, product_id)).stock
    return _stock


@pytest.fixture()
def customer():
    return CurrentUser(id="user-1")


@pytest.fixture()
def other_customer():
    return CurrentUser(id="user-2")


@pytest.fixture()
def admin():
    return CurrentUser(id="admin-1", role="admin")


# --- HTTP ---

@pytest.fixture()
def auth():
    def _headers(user: CurrentUser) -> dict:
        token = create_access_token({"sub": user.id, "role": user.role})
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture()
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
    limiter.enabled = True
