"""Tests for the wishlist service and API."""

import pytest

from storefront.common.errors import ConflictError, NotFoundError
from storefront.inventory.service import ProductStore
from storefront.wishlist.model import WishlistItem
from storefront.wishlist.service import WishlistService, WishlistStore


@pytest.fixture
def wishlist(session_factory):
    return WishlistService(session_factory, WishlistStore(), ProductStore())


class TestWishlistService:
    async def test_add_and_list(self, wishlist, make_product):
        first = await make_product(name="Scarf")
        second = await make_product(name="Boots")

        await wishlist.add_item("user-1", first.id)
        await wishlist.add_item("user-1", second.id)
        await wishlist.add_item("user-2", first.id)

        items = await wishlist.list_items("user-1")
        assert sorted(item.product.name for item in items) == ["Boots", "Scarf"]
        assert await wishlist.count("user-1") == 2
        assert await wishlist.count("user-2") == 1

    async def test_duplicate(self, wishlist, make_product, count_rows):
        product = await make_product()
        await wishlist.add_item("user-1", product.id)

        with pytest.raises(ConflictError):
            await wishlist.add_item("user-1", product.id)
        assert await count_rows(WishlistItem) == 1

    async def test_unknown_or_inactive_product(self, wishlist, make_product):
        retired = await make_product(is_active=False)

        with pytest.raises(NotFoundError):
            await wishlist.add_item("user-1", retired.id)
        with pytest.raises(NotFoundError):
            await wishlist.add_item("user-1", 999)

    async def test_contains_and_remove(self, wishlist, make_product):
        product = await make_product()
        await wishlist.add_item("user-1", product.id)

        assert await wishlist.contains("user-1", product.id) is True
        assert await wishlist.contains("user-2", product.id) is False

        await wishlist.remove_item("user-1", product.id)

        assert await wishlist.contains("user-1", product.id) is False
        with pytest.raises(NotFoundError, match="not found in wishlist"):
            await wishlist.remove_item("user-1", product.id)

    async def test_clear_only_touches_owner(self, wishlist, make_product, count_rows):
        first = await make_product(name="A")
        second = await make_product(name="B")
        await wishlist.add_item("user-1", first.id)
        await wishlist.add_item("user-1", second.id)
        await wishlist.add_item("user-2", first.id)

        assert await wishlist.clear("user-1") == 2
        assert await wishlist.clear("user-1") == 0
        assert await count_rows(WishlistItem, WishlistItem.user_id == "user-2") == 1


class TestWishlistApi:
    async def test_requires_auth(self, client):
        assert (await client.get("/wishlist")).status_code == 401
        assert (await client.post("/wishlist/add", json={"productId": 1})).status_code == 401

    async def test_full_flow(self, client, auth_headers, make_product):
        product = await make_product(name="Scarf", price="15.00")
        headers = auth_headers()

        response = await client.post("/wishlist/add", json={"productId": product.id}, headers=headers)
        assert response.status_code == 201
        assert (await response.get_json())["product"]["name"] == "Scarf"

        response = await client.post("/wishlist/add", json={"productId": product.id}, headers=headers)
        assert response.status_code == 409

        data = await (await client.get("/wishlist", headers=headers)).get_json()
        assert [item["product_id"] for item in data["items"]] == [product.id]
        assert await (await client.get("/wishlist/count", headers=headers)).get_json() == {"count": 1}
        assert await (await client.get(f"/wishlist/check/{product.id}", headers=headers)).get_json() == {
            "product_id": product.id,
            "in_wishlist": True,
        }

        response = await client.delete(f"/wishlist/remove/{product.id}", headers=headers)
        assert await response.get_json() == {"removed": product.id}
        response = await client.delete(f"/wishlist/remove/{product.id}", headers=headers)
        assert response.status_code == 404

    async def test_invalid_product_id(self, client, auth_headers):
        response = await client.post("/wishlist/add", json={"productId": 0}, headers=auth_headers())
        assert response.status_code == 400

    async def test_clear(self, client, auth_headers, make_product):
        for name in ("A", "B"):
            product = await make_product(name=name)
            await client.post("/wishlist/add", json={"productId": product.id}, headers=auth_headers())

        response = await client.delete("/wishlist", headers=auth_headers())

        assert await response.get_json() == {"removed": 2}
        assert await (await client.get("/wishlist/count", headers=auth_headers())).get_json() == {"count": 0}
