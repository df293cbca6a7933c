import logging
from decimal import Decimal
from typing import Dict, List, Optional, Union

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..common.errors import InsufficientStockError, NotFoundError, OutOfStockError
from ..common.money import to_money
from ..inventory.service import ProductStore
from .model import CartItem
from .schemas import AddToCartRequest

_logger = logging.getLogger(__name__)


class CartStore:
    async def list_for_user(self, session: AsyncSession, user_id: str) -> List[CartItem]:
        stmt = (
            sa.select(CartItem)
            .where(CartItem.user_id == user_id)
            .order_by(CartItem.created_at.desc(), CartItem.id.desc())
        )
        res = await session.execute(stmt)
        return list(res.scalars().all())

    async def find_matching(
        self,
        session: AsyncSession,
        user_id: str,
        product_id: int,
        selected_size: Optional[str],
        selected_color: Optional[str],
    ) -> Optional[CartItem]:
        # == None renders IS NULL, so unset options only match unset options
        stmt = sa.select(CartItem).where(
            CartItem.user_id == user_id,
            CartItem.product_id == product_id,
            CartItem.selected_size == selected_size,
            CartItem.selected_color == selected_color,
        )
        res = await session.execute(stmt)
        return res.scalars().first()

    async def get_for_user(self, session: AsyncSession, user_id: str, item_id: int) -> CartItem:
        stmt = sa.select(CartItem).where(CartItem.id == item_id, CartItem.user_id == user_id)
        item = (await session.execute(stmt)).scalars().first()
        if item is None:
            raise NotFoundError("Cart item not found")
        return item

    async def clear_all(self, session: AsyncSession, user_id: str) -> int:
        res = await session.execute(
            sa.delete(CartItem).where(CartItem.user_id == user_id).execution_options(synchronize_session=False)
        )
        return res.rowcount or 0


class CartService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: CartStore,
        products: ProductStore,
    ):
        self._session_factory = session_factory
        self._store = store
        self._products = products

    async def add_item(self, user_id: str, payload: AddToCartRequest) -> CartItem:
        async with self._session_factory() as session:
            async with session.begin():
                product = await self._products.get_active(session, payload.product_id)
                if not product.in_stock:
                    raise OutOfStockError(f"Product {product.name} is out of stock", product_id=product.id)

                item = await self._store.find_matching(
                    session, user_id, payload.product_id, payload.selected_size, payload.selected_color
                )
                wanted = payload.quantity + (item.quantity if item is not None else 0)
                if product.stock < wanted:
                    raise InsufficientStockError(f"Insufficient stock for {product.name}", product_id=product.id)

                if item is None:
                    item = CartItem(
                        user_id=user_id,
                        product_id=product.id,
                        quantity=payload.quantity,
                        selected_size=payload.selected_size,
                        selected_color=payload.selected_color,
                    )
                    item.product = product
                    session.add(item)
                else:
                    item.quantity = wanted
        _logger.info("Cart item saved | user_id=%s product_id=%s qty=%s", user_id, item.product_id, item.quantity)
        return item

    async def list_items(self, user_id: str) -> List[CartItem]:
        async with self._session_factory() as session:
            return await self._store.list_for_user(session, user_id)

    async def update_item(self, user_id: str, item_id: int, quantity: int) -> CartItem:
        async with self._session_factory() as session:
            async with session.begin():
                item = await self._store.get_for_user(session, user_id, item_id)
                product = await self._products.get_active(session, item.product_id)
                if product.stock < quantity:
                    raise InsufficientStockError(f"Insufficient stock for {product.name}", product_id=item.product_id)
                item.quantity = quantity
        return item

    async def remove_item(self, user_id: str, item_id: int) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                item = await self._store.get_for_user(session, user_id, item_id)
                await session.delete(item)

    async def clear(self, user_id: str) -> int:
        async with self._session_factory() as session:
            async with session.begin():
                removed = await self._store.clear_all(session, user_id)
        _logger.info("Cart cleared | user_id=%s removed=%s", user_id, removed)
        return removed

    async def get_totals(self, user_id: str) -> Dict[str, Union[Decimal, int]]:
        items = await self.list_items(user_id)
        subtotal = sum((item.line_total for item in items), Decimal("0"))
        return {"subtotal": to_money(subtotal), "item_count": sum(item.quantity for item in items)}
