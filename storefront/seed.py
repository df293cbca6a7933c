import asyncio
from decimal import Decimal
from typing import Any, Dict, List

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .common.config import settings
from .common.database import init_db, make_engine, make_session_factory
from .inventory.model import Product

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Laptop Pro 14", "stock": 20, "price": Decimal("1499.00")},
    {"name": "Wireless Mouse", "stock": 150, "price": Decimal("24.99")},
    {"name": "Mechanical Keyboard", "stock": 80, "price": Decimal("89.99")},
    {"name": "USB-C Hub", "stock": 120, "price": Decimal("39.99")},
    {"name": "Noise-cancelling Headphones", "stock": 35, "price": Decimal("199.99")},
    {"name": "4K Monitor 27\"", "stock": 25, "price": Decimal("329.99")},
    {"name": "Portable SSD 1TB", "stock": 60, "price": Decimal("99.99")},
    {"name": "Smartphone Charger 65W", "stock": 200, "price": Decimal("19.99")},
    {"name": "Webcam 1080p", "stock": 75, "price": Decimal("49.99")},
    {"name": "Bluetooth Speaker", "stock": 40, "price": Decimal("59.99")},
]


async def seed_products(session_factory: async_sessionmaker[AsyncSession]) -> int:
    """Insert sample products that are not there yet (matched by name). Returns how many were added."""
    added = 0
    async with session_factory() as session:
        async with session.begin():
            existing = set((await session.execute(sa.select(Product.name))).scalars().all())
            for p in SAMPLE_PRODUCTS:
                if p["name"] in existing:
                    continue
                session.add(Product(**p))
                added += 1
    return added


async def amain() -> None:
    engine = make_engine(settings.DB_URL)
    try:
        await init_db(engine)
        added = await seed_products(make_session_factory(engine))
        print(f"Seed complete. Added {added} products.")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(amain())
