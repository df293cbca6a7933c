import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from quart import Blueprint, Response, current_app
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from ..common.config import Settings
from ..common.redis_client import get_redis

_logger = logging.getLogger(__name__)

bp = Blueprint("realtime", __name__)

RETRY_MS = 3000
MAX_BACKOFF = 15.0


def sse_frame(event: str, payload: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def decode_stock_message(data: Any) -> Dict[str, Any]:
    """Stock messages are JSON objects; a bare number is taken as a stock level."""
    if isinstance(data, (bytes, bytearray)):
        data = data.decode("utf-8")
    try:
        payload = json.loads(data) if isinstance(data, str) else data
    except ValueError:
        return {"stock": data}
    if not isinstance(payload, dict):
        return {"stock": payload}
    return payload


async def _close(pubsub: Optional[PubSub], channel: str) -> None:
    if pubsub is None:
        return
    try:
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
    except (RedisError, OSError) as e:
        _logger.debug("PubSub close failed | channel=%s err=%s", channel, e)


async def stock_events(config: Settings) -> AsyncIterator[str]:
    channel = config.REDIS_STOCK_CHANNEL
    pubsub: Optional[PubSub] = None
    backoff = 1.0
    yield f"retry: {RETRY_MS}\n\n"
    try:
        while True:
            try:
                if pubsub is None:
                    r = await get_redis(config)
                    pubsub = r.pubsub(ignore_subscribe_messages=True)
                    await pubsub.subscribe(channel)
                message = await pubsub.get_message(timeout=5.0)
                if message:
                    yield sse_frame("stock", decode_stock_message(message.get("data")))
                else:
                    # keep-alive for proxies
                    yield ": keep-alive\n\n"
                backoff = 1.0
            except (RedisError, OSError) as e:
                _logger.warning("Stock stream lost Redis, retrying | backoff=%s err=%s", backoff, e)
                yield f": redis-error, retrying in {int(backoff)}s\n\n"
                await _close(pubsub, channel)
                pubsub = None
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, MAX_BACKOFF)
    finally:
        await _close(pubsub, channel)


@bp.get("/events")
async def sse_events():
    headers = {
        "Cache-Control": "no-cache",
        "X-Accel-Buffering": "no",
        "Connection": "keep-alive",
    }
    return Response(stock_events(current_app.extensions["settings"]), mimetype="text/event-stream", headers=headers)
