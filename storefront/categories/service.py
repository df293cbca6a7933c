import logging
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..common.errors import ConflictError, NotFoundError
from ..inventory.model import Product
from .model import Category, CategoryType
from .schemas import CreateCategoryRequest, UpdateCategoryRequest

_logger = logging.getLogger(__name__)


class CategoryStore:
    async def get(self, session: AsyncSession, category_id: int) -> Category:
        category = await session.get(Category, category_id)
        if category is None:
            raise NotFoundError("Category not found")
        return category

    async def find_by_name(self, session: AsyncSession, name: str) -> Optional[Category]:
        res = await session.execute(sa.select(Category).where(Category.name == name))
        return res.scalars().first()

    async def list_active(self, session: AsyncSession, category_type: Optional[CategoryType] = None) -> List[Category]:
        stmt = sa.select(Category).where(Category.is_active.is_(True))
        if category_type is not None:
            stmt = stmt.where(Category.type == category_type)
        res = await session.execute(stmt.order_by(Category.name))
        return list(res.scalars().all())


class CategoryService:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], store: CategoryStore):
        self._session_factory = session_factory
        self._store = store

    async def create_category(self, payload: CreateCategoryRequest) -> Category:
        async with self._session_factory() as session:
            async with session.begin():
                if await self._store.find_by_name(session, payload.name) is not None:
                    raise ConflictError("Category with this name already exists")
                category = Category(**payload.model_dump())
                session.add(category)
        _logger.info("Category created | category_id=%s name=%s", category.id, category.name)
        return category

    async def list_categories(self, category_type: Optional[CategoryType] = None) -> List[Category]:
        async with self._session_factory() as session:
            return await self._store.list_active(session, category_type)

    async def get_category(self, category_id: int) -> Category:
        async with self._session_factory() as session:
            return await self._store.get(session, category_id)

    async def update_category(self, category_id: int, payload: UpdateCategoryRequest) -> Category:
        changes = payload.model_dump(exclude_unset=True, exclude_none=True)
        async with self._session_factory() as session:
            async with session.begin():
                category = await self._store.get(session, category_id)
                new_name = changes.get("name")
                if new_name and new_name != category.name and await self._store.find_by_name(session, new_name):
                    raise ConflictError("Category with this name already exists")
                for field, value in changes.items():
                    setattr(category, field, value)
        _logger.info("Category updated | category_id=%s fields=%s", category_id, sorted(changes))
        return category

    async def delete_category(self, category_id: int) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                category = await self._store.get(session, category_id)
                # Products outlive their category
                detached = await session.execute(
                    sa.update(Product)
                    .where(Product.category_id == category_id)
                    .values(category_id=None)
                    .execution_options(synchronize_session=False)
                )
                await session.delete(category)
        _logger.info("Category deleted | category_id=%s detached_products=%s", category_id, detached.rowcount or 0)
