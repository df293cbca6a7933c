import logging
from typing import List, Optional

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..common.errors import ConflictError, NotFoundError
from ..inventory.service import ProductStore
from .model import WishlistItem

_logger = logging.getLogger(__name__)


class WishlistStore:
    async def find(self, session: AsyncSession, user_id: str, product_id: int) -> Optional[WishlistItem]:
        stmt = sa.select(WishlistItem).where(WishlistItem.user_id == user_id, WishlistItem.product_id == product_id)
        return (await session.execute(stmt)).scalars().first()

    async def list_for_user(self, session: AsyncSession, user_id: str) -> List[WishlistItem]:
        stmt = (
            sa.select(WishlistItem)
            .where(WishlistItem.user_id == user_id)
            .order_by(WishlistItem.created_at.desc(), WishlistItem.id.desc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def count_for_user(self, session: AsyncSession, user_id: str) -> int:
        stmt = sa.select(sa.func.count(WishlistItem.id)).where(WishlistItem.user_id == user_id)
        return int((await session.execute(stmt)).scalar_one())

    async def clear_all(self, session: AsyncSession, user_id: str) -> int:
        res = await session.execute(
            sa.delete(WishlistItem).where(WishlistItem.user_id == user_id).execution_options(synchronize_session=False)
        )
        return res.rowcount or 0


class WishlistService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: WishlistStore,
        products: ProductStore,
    ):
        self._session_factory = session_factory
        self._store = store
        self._products = products

    async def add_item(self, user_id: str, product_id: int) -> WishlistItem:
        async with self._session_factory() as session:
            async with session.begin():
                product = await self._products.get_active(session, product_id)
                if await self._store.find(session, user_id, product_id) is not None:
                    raise ConflictError("Product is already in your wishlist")
                item = WishlistItem(user_id=user_id, product_id=product.id)
                item.product = product
                session.add(item)
        _logger.info("Wishlist add | user_id=%s product_id=%s", user_id, product_id)
        return item

    async def list_items(self, user_id: str) -> List[WishlistItem]:
        async with self._session_factory() as session:
            return await self._store.list_for_user(session, user_id)

    async def remove_item(self, user_id: str, product_id: int) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                item = await self._store.find(session, user_id, product_id)
                if item is None:
                    raise NotFoundError("Product not found in wishlist")
                await session.delete(item)
        _logger.info("Wishlist remove | user_id=%s product_id=%s", user_id, product_id)

    async def clear(self, user_id: str) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                removed = await self._store.clear_all(session, user_id)
        _logger.info("Wishlist cleared | user_id=%s removed=%s", user_id, removed)
        return removed

    async def contains(self, user_id: str, product_id: int) -> bool:
        async with self._session_factory() as session:
            return await self._store.find(session, user_id, product_id) is not None

    async def count(self, user_id: str) -> int:
        async with self._session_factory() as session:
            return await self._store.count_for_user(session, user_id)
