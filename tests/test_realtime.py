"""Tests for stock event publishing and the SSE framing helpers."""

import json
from types import SimpleNamespace

from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.inventory import events
from storefront.inventory.events import StockNotifier, stock_payload
from storefront.realtime.controller import decode_stock_message, sse_frame


class FakeRedis:
    def __init__(self):
        self.messages = []

    async def publish(self, channel, message):
        self.messages.append((channel, message))
        return 1


class TestSseHelpers:
    def test_frame(self):
        frame = sse_frame("stock", {"product_id": 3, "stock": 9})

        assert frame == 'event: stock\ndata: {"product_id": 3, "stock": 9}\n\n'

    def test_decode_json_object(self):
        assert decode_stock_message(b'{"product_id": 1, "stock": 4}') == {"product_id": 1, "stock": 4}
        assert decode_stock_message('{"product_id": 1, "stock": 4}') == {"product_id": 1, "stock": 4}

    def test_decode_bare_number(self):
        assert decode_stock_message("12") == {"stock": 12}

    def test_decode_garbage(self):
        assert decode_stock_message("not json") == {"stock": "not json"}


class TestStockNotifier:
    async def test_publishes_each_product(self, test_settings, monkeypatch):
        fake = FakeRedis()

        async def fake_get_redis(config):
            return fake

        monkeypatch.setattr(events, "get_redis", fake_get_redis)
        notifier = StockNotifier(test_settings)

        await notifier.publish([SimpleNamespace(id=1, stock=4), SimpleNamespace(id=2, stock=0)])

        assert [channel for channel, _ in fake.messages] == [test_settings.REDIS_STOCK_CHANNEL] * 2
        assert json.loads(fake.messages[1][1]) == {"product_id": 2, "stock": 0}

    async def test_redis_outage_is_not_raised(self, test_settings, monkeypatch):
        async def broken_get_redis(config):
            raise RedisConnectionError("connection refused")

        monkeypatch.setattr(events, "get_redis", broken_get_redis)

        await StockNotifier(test_settings).publish([SimpleNamespace(id=1, stock=4)])

    def test_payload(self):
        assert json.loads(stock_payload(SimpleNamespace(id=5, stock=11))) == {"product_id": 5, "stock": 11}
