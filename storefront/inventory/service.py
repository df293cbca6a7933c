import logging
from decimal import Decimal
from typing import List, Optional, Tuple

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..categories.service import CategoryStore
from ..common.db import utcnow
from ..common.errors import InsufficientStockError, NotFoundError
from .events import StockNotifier
from .model import Product
from .schemas import CreateProductRequest, ProductFilter, UpdateProductRequest

_logger = logging.getLogger(__name__)


class ProductStore:
    """Product lookups and stock mutations. Every call runs on the caller's session."""

    async def get(self, session: AsyncSession, product_id: int, refresh: bool = False) -> Product:
        product = await session.get(Product, product_id, populate_existing=refresh)
        if product is None:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def get_active(self, session: AsyncSession, product_id: int) -> Product:
        product = await self.get(session, product_id)
        if not product.is_active:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    async def decrement_stock(self, session: AsyncSession, product_id: int, quantity: int) -> Product:
        """Conditional decrement; the affected-row count decides, not an earlier read."""
        stmt = (
            sa.update(Product)
            .where(Product.id == product_id, Product.is_active.is_(True), Product.stock >= quantity)
            .values(
                stock=Product.stock - quantity,
                sales_count=Product.sales_count + quantity,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        res = await session.execute(stmt)
        if (res.rowcount or 0) == 0:
            _logger.warning("Stock decrement rejected | product_id=%s qty=%s", product_id, quantity)
            raise InsufficientStockError(f"Insufficient stock for product {product_id}", product_id=product_id)
        return await self.get(session, product_id, refresh=True)

    async def restore_stock(self, session: AsyncSession, product_id: int, quantity: int) -> Product:
        stmt = (
            sa.update(Product)
            .where(Product.id == product_id)
            .values(
                stock=Product.stock + quantity,
                sales_count=sa.case(
                    (Product.sales_count >= quantity, Product.sales_count - quantity),
                    else_=0,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        res = await session.execute(stmt)
        if (res.rowcount or 0) == 0:
            raise NotFoundError(f"Product {product_id} not found")
        return await self.get(session, product_id, refresh=True)

    async def list_active(self, session: AsyncSession, filters: ProductFilter) -> Tuple[List[Product], int]:
        conditions = [Product.is_active.is_(True)]
        if filters.search:
            conditions.append(
                sa.or_(
                    Product.name.icontains(filters.search, autoescape=True),
                    Product.description.icontains(filters.search, autoescape=True),
                )
            )
        if filters.category_id is not None:
            conditions.append(Product.category_id == filters.category_id)
        if filters.min_price is not None:
            conditions.append(Product.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Product.price <= filters.max_price)
        if filters.min_rating is not None:
            conditions.append(Product.rating >= filters.min_rating)
        if filters.is_featured is not None:
            conditions.append(Product.is_featured.is_(filters.is_featured))

        sort_column = getattr(Product, filters.sort_by)
        ordering = sort_column.asc() if filters.sort_order == "ASC" else sort_column.desc()

        total = (await session.execute(sa.select(sa.func.count(Product.id)).where(*conditions))).scalar_one()
        stmt = (
            sa.select(Product)
            .where(*conditions)
            .order_by(ordering, Product.id.desc())
            .offset((filters.page - 1) * filters.limit)
            .limit(filters.limit)
        )
        res = await session.execute(stmt)
        return list(res.scalars().all()), int(total)

    async def set_stock(self, session: AsyncSession, product_id: int, stock: int) -> Product:
        product = await self.get(session, product_id)
        product.stock = stock
        await session.flush()
        return product

    async def set_rating(self, session: AsyncSession, product_id: int, rating: Decimal, review_count: int) -> None:
        res = await session.execute(
            sa.update(Product)
            .where(Product.id == product_id)
            .values(rating=rating, review_count=review_count, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if (res.rowcount or 0) == 0:
            raise NotFoundError(f"Product {product_id} not found")


class InventoryService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: ProductStore,
        notifier: Optional[StockNotifier] = None,
        categories: Optional[CategoryStore] = None,
    ):
        self._session_factory = session_factory
        self._store = store
        self._notifier = notifier
        self._categories = categories or CategoryStore()

    async def list_products(self, filters: Optional[ProductFilter] = None) -> Tuple[List[Product], int]:
        async with self._session_factory() as session:
            return await self._store.list_active(session, filters or ProductFilter())

    async def get_product(self, product_id: int) -> Product:
        async with self._session_factory() as session:
            return await self._store.get(session, product_id)

    async def create_product(self, payload: CreateProductRequest) -> Product:
        async with self._session_factory() as session:
            async with session.begin():
                if payload.category_id is not None:
                    await self._categories.get(session, payload.category_id)
                product = Product(**payload.model_dump())
                session.add(product)
            await session.refresh(product)
        _logger.info("Product created | product_id=%s name=%s stock=%s", product.id, product.name, product.stock)
        return product

    async def update_product(self, product_id: int, payload: UpdateProductRequest) -> Product:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        async with self._session_factory() as session:
            async with session.begin():
                product = await self._store.get(session, product_id)
                if "category_id" in changes:
                    await self._categories.get(session, changes["category_id"])
                for field, value in changes.items():
                    setattr(product, field, value)
            await session.refresh(product)
        _logger.info("Product updated | product_id=%s fields=%s", product_id, sorted(changes))
        return product

    async def set_stock(self, product_id: int, stock: int) -> Product:
        async with self._session_factory() as session:
            async with session.begin():
                product = await self._store.set_stock(session, product_id, stock)
        _logger.info("DB set stock | product_id=%s new_stock=%s", product_id, stock)
        if self._notifier is not None:
            await self._notifier.publish([product])
        return product

    async def deactivate_product(self, product_id: int) -> Product:
        # Soft delete, order lines and cart rows keep their references
        async with self._session_factory() as session:
            async with session.begin():
                product = await self._store.get(session, product_id)
                product.is_active = False
        _logger.info("Product deactivated | product_id=%s", product_id)
        return product
