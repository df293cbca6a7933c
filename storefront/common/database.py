import logging

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings
from .db import Base
# Imported so their tables are registered on Base.metadata
from ..categories.model import Category  # noqa: F401
from ..inventory.model import Product  # noqa: F401
from ..cart.model import CartItem  # noqa: F401
from ..orders.model import Order, OrderItem  # noqa: F401
from ..reviews.model import Review  # noqa: F401
from ..wishlist.model import WishlistItem  # noqa: F401

_logger = logging.getLogger(__name__)


def make_engine(url: str = settings.DB_URL, echo: bool = False) -> AsyncEngine:
    return create_async_engine(url, future=True, echo=echo)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    _logger.info("Database schema ready | url=%s", engine.url.render_as_string(hide_password=True))
