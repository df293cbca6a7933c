import asyncio
import logging
import ssl
from typing import Any, Dict, Optional

from redis.asyncio import Redis

from .config import Settings, settings

_logger = logging.getLogger(__name__)

_redis: Optional[Redis] = None
_lock = asyncio.Lock()


def connection_kwargs(config: Settings) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "host": config.REDIS_HOST,
        "port": config.REDIS_PORT,
        "username": config.REDIS_USERNAME or None,
        "password": config.REDIS_PASSWORD or None,
        "db": config.REDIS_DB,
        "decode_responses": True,
    }
    if config.REDIS_SSL:
        # relax cert verification for local/dev
        kwargs.update({"ssl": True, "ssl_cert_reqs": ssl.CERT_NONE})
    return kwargs


async def get_redis(config: Settings = settings) -> Redis:
    global _redis
    if _redis is None:
        async with _lock:
            if _redis is None:
                client = Redis(**connection_kwargs(config))
                try:
                    await client.ping()
                except Exception as e:
                    _logger.error("Failed to connect to Redis | host=%s port=%s err=%s", config.REDIS_HOST, config.REDIS_PORT, e)
                    await client.aclose()
                    raise
                _logger.info("Connected to Redis | host=%s port=%s ssl=%s", config.REDIS_HOST, config.REDIS_PORT, config.REDIS_SSL)
                _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        try:
            await _redis.aclose()
        finally:
            _redis = None
