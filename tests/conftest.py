"""Pytest fixtures for storefront tests."""

from decimal import Decimal
from typing import List, Optional, Tuple

import pytest
import sqlalchemy as sa

from storefront.app import create_app
from storefront.cart.model import CartItem
from storefront.cart.service import CartStore
from storefront.categories.model import Category, CategoryType
from storefront.common.auth import create_access_token
from storefront.common.config import Settings
from storefront.common.database import init_db, make_engine, make_session_factory
from storefront.inventory.model import Product
from storefront.inventory.service import ProductStore
from storefront.orders.service import OrderService


class RecordingNotifier:
    """Stands in for the Redis notifier and remembers what would have been published."""

    def __init__(self):
        self.published: List[List[Tuple[int, int]]] = []

    async def publish(self, products) -> None:
        self.published.append([(p.id, p.stock) for p in products])


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        DB_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        STOCK_EVENTS_ENABLED=False,
        JWT_SECRET="test-secret",
    )


@pytest.fixture
async def engine(test_settings):
    engine = make_engine(test_settings.DB_URL)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def order_service(session_factory, notifier):
    return OrderService(session_factory, ProductStore(), CartStore(), notifier=notifier)


@pytest.fixture
def make_product(session_factory):
    async def _make(
        name: str = "Widget",
        price: str = "20.00",
        stock: int = 10,
        is_active: bool = True,
        sales_count: int = 0,
        category_id: Optional[int] = None,
        is_featured: bool = False,
        rating: str = "0.00",
        description: Optional[str] = None,
    ) -> Product:
        async with session_factory() as session:
            async with session.begin():
                product = Product(
                    name=name,
                    description=description,
                    price=Decimal(price),
                    stock=stock,
                    is_active=is_active,
                    sales_count=sales_count,
                    category_id=category_id,
                    is_featured=is_featured,
                    rating=Decimal(rating),
                )
                session.add(product)
        return product

    return _make


@pytest.fixture
def make_category(session_factory):
    async def _make(name: str = "Dresses", category_type: CategoryType = CategoryType.dress) -> Category:
        async with session_factory() as session:
            async with session.begin():
                category = Category(name=name, type=category_type)
                session.add(category)
        return category

    return _make


@pytest.fixture
def put_in_cart(session_factory):
    async def _put(user_id: str, product_id: int, quantity: int = 1, size: Optional[str] = None) -> CartItem:
        async with session_factory() as session:
            async with session.begin():
                item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity, selected_size=size)
                session.add(item)
        return item

    return _put


@pytest.fixture
def fetch_product(session_factory):
    async def _fetch(product_id: int) -> Product:
        async with session_factory() as session:
            return await session.get(Product, product_id)

    return _fetch


@pytest.fixture
def count_rows(session_factory):
    async def _count(model, *criteria) -> int:
        async with session_factory() as session:
            stmt = sa.select(sa.func.count()).select_from(model).where(*criteria)
            return int((await session.execute(stmt)).scalar_one())

    return _count


@pytest.fixture
async def app(test_settings, engine):
    # engine fixture first so both engines see the same schema
    app = create_app(test_settings)
    async with app.test_app() as test_app:
        yield test_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(test_settings):
    def _headers(user_id: str = "user-1"):
        return {"Authorization": f"Bearer {create_access_token(user_id, test_settings)}"}

    return _headers
