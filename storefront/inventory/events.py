import json
import logging
from typing import Iterable

from redis.exceptions import RedisError

from ..common.config import Settings
from ..common.redis_client import get_redis
from .model import Product

_logger = logging.getLogger(__name__)


def stock_payload(product: Product) -> str:
    return json.dumps({"product_id": product.id, "stock": product.stock})


class StockNotifier:
    """Publishes committed stock levels on the Redis stock channel."""

    def __init__(self, config: Settings):
        self._config = config

    @property
    def channel(self) -> str:
        return self._config.REDIS_STOCK_CHANNEL

    async def publish(self, products: Iterable[Product]) -> None:
        # Runs after commit; a Redis outage must not fail the request.
        try:
            r = await get_redis(self._config)
            for product in products:
                await r.publish(self.channel, stock_payload(product))
                _logger.info("Published stock update | product_id=%s stock=%s channel=%s", product.id, product.stock, self.channel)
        except (RedisError, OSError) as e:
            _logger.warning("Stock update not published | channel=%s err=%s", self.channel, e)
