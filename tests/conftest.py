"""Pytest fixtures for LogiTrack tests.

Services and routers run against an in-memory SQLite database (aiosqlite);
``with_for_update`` is a no-op there, everything else behaves as on
PostgreSQL for these tests.
"""

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import logitrack.models  # noqa: F401
from logitrack.app import app
from logitrack.database.base import Base
from logitrack.database.session import get_db
from logitrack.models.enums import ShippingCategory, UserType
from logitrack.models.user import User
from logitrack.modules.auth.passwords import hash_password
from logitrack.modules.orders.service import OrderService
from logitrack.modules.products.service import ProductService
from logitrack.rate_limit import limiter
from tests.helpers import TEST_PASSWORD, as_actor

# Hashed once for the whole session
_TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)

limiter.enabled = False


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session on a fresh schema."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Yield an httpx AsyncClient wired to the FastAPI app with the test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        try:
            yield db
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db: AsyncSession):
    async def _make(
        username: str | None = None,
        user_type: UserType = UserType.USER,
        **fields,
    ) -> User:
        username = username or f"user_{uuid.uuid4().hex[:8]}"
        defaults = {
            "email": f"{username}@example.com",
            "full_name": username.replace("_", " ").title(),
            "city": "Palembang",
            "address": "Jl. Sudirman No. 1",
            "postal_code": "30111",
        }
        user = User(
            username=username,
            password_hash=_TEST_PASSWORD_HASH,
            user_type=user_type,
            **{**defaults, **fields},
        )
        db.add(user)
        await db.flush()
        return user

    return _make


@pytest_asyncio.fixture
async def seller(make_user) -> User:
    return await make_user("seller", city="Jakarta")


@pytest_asyncio.fixture
async def buyer(make_user) -> User:
    return await make_user("buyer", city="Bandung", address="Jl. Braga No. 5", postal_code="40111")


@pytest_asyncio.fixture
async def driver(make_user) -> User:
    return await make_user("driver_one", user_type=UserType.DRIVER, service_area="Ilir Timur I")


@pytest_asyncio.fixture
async def other_driver(make_user) -> User:
    return await make_user("driver_two", user_type=UserType.DRIVER, service_area="Seberang Ulu I")


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user("admin", user_type=UserType.ADMIN)


@pytest.fixture
def make_product(db: AsyncSession):
    async def _make(seller: User, **fields):
        data = {
            "name": "Mechanical Keyboard",
            "shipping_category": ShippingCategory.B,
            "price": Decimal("150000"),
            "weight": Decimal("1.5"),
            "pickup_address": "Jl. Thamrin No. 2",
            "city": "Jakarta",
            "postal_code": "10310",
            **fields,
        }
        return await ProductService(db).create_product(seller_id=seller.id, **data)

    return _make


@pytest_asyncio.fixture
async def product(make_product, seller):
    return await make_product(seller)


@pytest_asyncio.fixture
async def order_service(db: AsyncSession) -> OrderService:
    return OrderService(db)


@pytest_asyncio.fixture
async def listed_order(order_service, product, seller):
    """A pending listing with no buyer."""
    return await order_service.create_order(product.id, as_actor(seller))


@pytest_asyncio.fixture
async def paid_order(order_service, listed_order, buyer):
    """Purchased, payment started at the gateway and confirmed."""
    order = await order_service.purchase(listed_order.id, as_actor(buyer))
    await order_service.start_payment(
        order,
        buyer,
        payment_id=order.transaction_id,
        payment_link="https://pay.example/checkout",
        provider="midtrans",
        amount=Decimal("170000"),
    )
    await order_service.confirm_payment(order)
    return order
