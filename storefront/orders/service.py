import logging
import secrets
import string
import time
from collections import OrderedDict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

import sqlalchemy as sa
from prometheus_client import Counter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..cart.service import CartStore
from ..common.errors import InsufficientStockError, InvalidStateError, NotFoundError, OutOfStockError
from ..common.money import to_money
from ..inventory.events import StockNotifier
from ..inventory.model import Product
from ..inventory.service import ProductStore
from .model import TERMINAL_FOR_CANCEL, Order, OrderItem, OrderStatus, PaymentStatus
from .schemas import CreateOrderRequest, OrderFilter
from .totals import LineAmount, PricingPolicy, compute_totals

_logger = logging.getLogger(__name__)

ORDERS_CREATED = Counter("orders_created_total", "Orders successfully created")
ORDERS_CANCELLED = Counter("orders_cancelled_total", "Orders cancelled")

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_SUFFIX_LEN = 9
ORDER_NUMBER_ATTEMPTS = 5


def generate_order_number(prefix: str = "ORD") -> str:
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(ORDER_NUMBER_SUFFIX_LEN))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


@dataclass
class OrderStats:
    total_orders: int
    total_revenue: Decimal
    average_order_value: Decimal
    orders_by_status: Dict[str, int]


class OrderService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        products: ProductStore,
        carts: CartStore,
        notifier: Optional[StockNotifier] = None,
        policy: PricingPolicy = PricingPolicy(),
        order_number_prefix: str = "ORD",
    ):
        self._session_factory = session_factory
        self._products = products
        self._carts = carts
        self._notifier = notifier
        self._policy = policy
        self._order_number_prefix = order_number_prefix

    # --- creation ---

    async def create_order(self, user_id: str, payload: CreateOrderRequest) -> Order:
        async with self._session_factory() as session:
            async with session.begin():
                products = await self._check_availability(session, payload)

                totals = compute_totals(
                    (LineAmount(products[item.product_id].price, item.quantity) for item in payload.items),
                    self._policy,
                )
                order = Order(
                    order_number=await self._allocate_order_number(session),
                    user_id=user_id,
                    subtotal=totals.subtotal,
                    shipping_cost=totals.shipping_cost,
                    tax_amount=totals.tax_amount,
                    total_amount=totals.total_amount,
                    status=OrderStatus.pending,
                    payment_status=PaymentStatus.pending,
                    payment_method=payload.payment_method,
                    shipping_address=payload.shipping_address,
                    billing_address=payload.billing_address,
                    notes=payload.notes,
                )
                session.add(order)
                await session.flush()

                touched: Dict[int, Product] = OrderedDict()
                for item in payload.items:
                    session.add(
                        OrderItem(
                            order_id=order.id,
                            product_id=item.product_id,
                            quantity=item.quantity,
                            unit_price=products[item.product_id].price,
                            selected_size=item.selected_size,
                            selected_color=item.selected_color,
                        )
                    )
                    touched[item.product_id] = await self._products.decrement_stock(
                        session, item.product_id, item.quantity
                    )

                cleared = await self._carts.clear_all(session, user_id)
                order_id = order.id

            created = await self._load_one(session, Order.id == order_id)

        ORDERS_CREATED.inc()
        _logger.info(
            "Order created | order_id=%s order_number=%s user_id=%s items=%s total=%s cart_rows_cleared=%s",
            created.id, created.order_number, user_id, len(created.items), created.total_amount, cleared,
        )
        await self._publish(touched.values())
        return created

    async def _check_availability(self, session: AsyncSession, payload: CreateOrderRequest) -> Dict[int, Product]:
        """Validates every line before anything is written; the same product may appear on several lines."""
        requested: Dict[int, int] = OrderedDict()
        for item in payload.items:
            requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

        products: Dict[int, Product] = {}
        for product_id, quantity in requested.items():
            product = await self._products.get_active(session, product_id)
            if not product.in_stock:
                raise OutOfStockError(f"Product {product.name} is out of stock", product_id=product.id)
            if product.stock < quantity:
                raise InsufficientStockError(
                    f"Insufficient stock for {product.name}: requested {quantity}, available {product.stock}",
                    product_id=product.id,
                )
            products[product_id] = product
        return products

    async def _allocate_order_number(self, session: AsyncSession) -> str:
        # The unique constraint on order_number is the final guard
        for _ in range(ORDER_NUMBER_ATTEMPTS):
            candidate = generate_order_number(self._order_number_prefix)
            exists = await session.execute(sa.select(Order.id).where(Order.order_number == candidate))
            if exists.first() is None:
                return candidate
            _logger.warning("Order number collision, regenerating | order_number=%s", candidate)
        raise RuntimeError("Could not allocate a unique order number")

    # --- queries ---

    async def list_orders(self, filters: OrderFilter) -> Tuple[List[Order], int]:
        return await self._list(filters)

    async def list_user_orders(self, user_id: str, filters: OrderFilter) -> Tuple[List[Order], int]:
        return await self._list(filters, Order.user_id == user_id)

    async def _list(self, filters: OrderFilter, *criteria) -> Tuple[List[Order], int]:
        conditions = list(criteria)
        if filters.status is not None:
            conditions.append(Order.status == filters.status)
        if filters.payment_status is not None:
            conditions.append(Order.payment_status == filters.payment_status)

        sort_column = getattr(Order, filters.sort_by)
        ordering = sort_column.asc() if filters.sort_order == "ASC" else sort_column.desc()

        async with self._session_factory() as session:
            count_stmt = sa.select(sa.func.count(Order.id)).where(*conditions)
            total = (await session.execute(count_stmt)).scalar_one()
            stmt = (
                sa.select(Order)
                .where(*conditions)
                .order_by(ordering, Order.id)
                .offset((filters.page - 1) * filters.limit)
                .limit(filters.limit)
            )
            orders = list((await session.execute(stmt)).scalars().all())
        return orders, int(total)

    async def get_order(self, order_id: str) -> Order:
        async with self._session_factory() as session:
            return await self._load_one(session, Order.id == order_id)

    async def get_order_by_number(self, order_number: str) -> Order:
        async with self._session_factory() as session:
            return await self._load_one(session, Order.order_number == order_number)

    async def _load_one(self, session: AsyncSession, criterion) -> Order:
        stmt = sa.select(Order).where(criterion).execution_options(populate_existing=True)
        order = (await session.execute(stmt)).scalars().first()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    # --- transitions ---

    async def update_status(self, order_id: str, status: OrderStatus) -> Order:
        async with self._session_factory() as session:
            async with session.begin():
                order = await self._load_one(session, Order.id == order_id)
                previous = order.status
                order.status = status
            _logger.info("Order status updated | order_id=%s from=%s to=%s", order_id, previous.value, status.value)
            return await self._load_one(session, Order.id == order_id)

    async def update_payment_status(
        self, order_id: str, payment_status: PaymentStatus, payment_reference: Optional[str] = None
    ) -> Order:
        async with self._session_factory() as session:
            async with session.begin():
                order = await self._load_one(session, Order.id == order_id)
                order.payment_status = payment_status
                if payment_reference:
                    order.payment_reference = payment_reference
            _logger.info("Payment status updated | order_id=%s payment_status=%s", order_id, payment_status.value)
            return await self._load_one(session, Order.id == order_id)

    async def cancel_order(self, order_id: str) -> Order:
        async with self._session_factory() as session:
            async with session.begin():
                order = await self._load_one(session, Order.id == order_id)
                if order.status in TERMINAL_FOR_CANCEL:
                    raise InvalidStateError(f"Cannot cancel an order that is {order.status.value}")

                touched: Dict[int, Product] = OrderedDict()
                for item in order.items:
                    touched[item.product_id] = await self._products.restore_stock(
                        session, item.product_id, item.quantity
                    )
                order.status = OrderStatus.cancelled
            cancelled = await self._load_one(session, Order.id == order_id)

        ORDERS_CANCELLED.inc()
        _logger.info("Order cancelled | order_id=%s restored_products=%s", order_id, list(touched))
        await self._publish(touched.values())
        return cancelled

    # --- aggregates ---

    async def get_stats(self) -> OrderStats:
        async with self._session_factory() as session:
            count, revenue = (
                await session.execute(
                    sa.select(sa.func.count(Order.id), sa.func.coalesce(sa.func.sum(Order.total_amount), 0))
                )
            ).one()
            rows = (await session.execute(sa.select(Order.status, sa.func.count(Order.id)).group_by(Order.status))).all()

        total_orders = int(count or 0)
        total_revenue = to_money(revenue or 0)
        average = to_money(total_revenue / total_orders) if total_orders else to_money(0)
        by_status = {
            (status.value if isinstance(status, OrderStatus) else str(status)): int(n) for status, n in rows
        }
        return OrderStats(
            total_orders=total_orders,
            total_revenue=total_revenue,
            average_order_value=average,
            orders_by_status=by_status,
        )

    async def _publish(self, products) -> None:
        if self._notifier is not None:
            await self._notifier.publish(list(products))
