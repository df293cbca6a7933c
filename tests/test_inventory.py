"""Tests for product storage, stock mutations and the /products API."""

from decimal import Decimal

import pytest

from storefront.common.errors import InsufficientStockError, NotFoundError
from storefront.inventory.schemas import ProductFilter, UpdateProductRequest
from storefront.inventory.service import InventoryService, ProductStore


@pytest.fixture
def store():
    return ProductStore()


@pytest.fixture
def inventory(session_factory, notifier):
    return InventoryService(session_factory, ProductStore(), notifier)


class TestProductStore:
    async def test_decrement_within_stock(self, store, session_factory, make_product):
        product = await make_product(stock=5, sales_count=2)

        async with session_factory() as session:
            async with session.begin():
                updated = await store.decrement_stock(session, product.id, 5)

        assert updated.stock == 0
        assert updated.sales_count == 7

    async def test_decrement_beyond_stock_changes_nothing(self, store, session_factory, make_product, fetch_product):
        product = await make_product(stock=2)

        with pytest.raises(InsufficientStockError):
            async with session_factory() as session:
                async with session.begin():
                    await store.decrement_stock(session, product.id, 3)

        assert (await fetch_product(product.id)).stock == 2

    async def test_decrement_inactive_is_rejected(self, store, session_factory, make_product):
        product = await make_product(stock=10, is_active=False)

        with pytest.raises(InsufficientStockError):
            async with session_factory() as session:
                async with session.begin():
                    await store.decrement_stock(session, product.id, 1)

    async def test_restore_floors_sales_count(self, store, session_factory, make_product):
        product = await make_product(stock=0, sales_count=1)

        async with session_factory() as session:
            async with session.begin():
                restored = await store.restore_stock(session, product.id, 3)

        assert restored.stock == 3
        assert restored.sales_count == 0

    async def test_restore_missing_product(self, store, session_factory):
        with pytest.raises(NotFoundError):
            async with session_factory() as session:
                async with session.begin():
                    await store.restore_stock(session, 404, 1)

    async def test_list_active_skips_inactive(self, store, session_factory, make_product):
        for i in range(3):
            await make_product(name=f"Active {i}")
        await make_product(name="Retired", is_active=False)

        async with session_factory() as session:
            items, total = await store.list_active(session, ProductFilter(page=1, limit=2))

        assert total == 3
        assert len(items) == 2
        assert all(p.is_active for p in items)


class TestInventoryService:
    async def test_set_stock_publishes(self, inventory, make_product, notifier):
        product = await make_product(stock=1)

        updated = await inventory.set_stock(product.id, 40)

        assert updated.stock == 40
        assert notifier.published == [[(product.id, 40)]]

    async def test_deactivate_is_soft(self, inventory, make_product, fetch_product):
        product = await make_product()

        await inventory.deactivate_product(product.id)

        stored = await fetch_product(product.id)
        assert stored is not None
        assert stored.is_active is False
        _, total = await inventory.list_products()
        assert total == 0

    async def test_missing_product(self, inventory):
        with pytest.raises(NotFoundError):
            await inventory.get_product(12345)

    async def test_update_product(self, inventory, make_product, make_category):
        product = await make_product(name="Lamp", price="10.00")
        category = await make_category()

        updated = await inventory.update_product(
            product.id,
            UpdateProductRequest.model_validate({"price": "12.50", "isFeatured": True, "categoryId": category.id}),
        )

        assert updated.name == "Lamp"
        assert updated.price == Decimal("12.50")
        assert updated.is_featured is True
        assert updated.category_id == category.id

    async def test_update_unknown_category(self, inventory, make_product):
        product = await make_product()

        with pytest.raises(NotFoundError):
            await inventory.update_product(product.id, UpdateProductRequest(category_id=77))

    async def test_update_missing_product(self, inventory):
        with pytest.raises(NotFoundError):
            await inventory.update_product(404, UpdateProductRequest(name="Ghost"))


def filtered(**query) -> ProductFilter:
    return ProductFilter.model_validate(query)


class TestProductFilters:
    async def test_search_matches_name_and_description(self, inventory, make_product):
        await make_product(name="Silk Dress")
        await make_product(name="Evening gown", description="A long silk piece")
        await make_product(name="Sneakers")

        items, total = await inventory.list_products(filtered(search="SILK"))

        assert total == 2
        assert {p.name for p in items} == {"Silk Dress", "Evening gown"}

    async def test_search_treats_wildcards_literally(self, inventory, make_product):
        await make_product(name="100% cotton")
        await make_product(name="1000 threads")

        items, _ = await inventory.list_products(filtered(search="100%"))

        assert [p.name for p in items] == ["100% cotton"]

    async def test_category(self, inventory, make_product, make_category):
        dresses = await make_category("Dresses")
        await make_product(name="Maxi", category_id=dresses.id)
        await make_product(name="Loafer")

        items, total = await inventory.list_products(filtered(categoryId=dresses.id))

        assert total == 1
        assert items[0].name == "Maxi"

    async def test_price_range(self, inventory, make_product):
        for price in ("5.00", "15.00", "25.00", "35.00"):
            await make_product(name=f"P{price}", price=price)

        items, total = await inventory.list_products(filtered(minPrice="15.00", maxPrice="25.00"))

        assert total == 2
        assert sorted(p.price for p in items) == [Decimal("15.00"), Decimal("25.00")]

    async def test_min_price_only(self, inventory, make_product):
        await make_product(name="Cheap", price="5.00")
        await make_product(name="Dear", price="50.00")

        items, _ = await inventory.list_products(filtered(min_price="10"))

        assert [p.name for p in items] == ["Dear"]

    async def test_max_price_only(self, inventory, make_product):
        await make_product(name="Cheap", price="5.00")
        await make_product(name="Dear", price="50.00")

        items, _ = await inventory.list_products(filtered(max_price="10"))

        assert [p.name for p in items] == ["Cheap"]

    async def test_inverted_price_range_is_invalid(self):
        with pytest.raises(ValueError):
            filtered(minPrice="30", maxPrice="10")

    async def test_min_rating(self, inventory, make_product):
        await make_product(name="Loved", rating="4.60")
        await make_product(name="Fine", rating="3.90")
        await make_product(name="Unrated")

        items, total = await inventory.list_products(filtered(minRating="4"))

        assert total == 1
        assert items[0].name == "Loved"

    async def test_featured(self, inventory, make_product):
        await make_product(name="Hero", is_featured=True)
        await make_product(name="Plain")

        featured, _ = await inventory.list_products(filtered(isFeatured="true"))
        plain, _ = await inventory.list_products(filtered(isFeatured="false"))

        assert [p.name for p in featured] == ["Hero"]
        assert [p.name for p in plain] == ["Plain"]

    async def test_sort_by_price(self, inventory, make_product):
        for price in ("20.00", "5.00", "12.00"):
            await make_product(name=f"P{price}", price=price)

        ascending, _ = await inventory.list_products(filtered(sortBy="price", sortOrder="asc"))
        descending, _ = await inventory.list_products(filtered(sort_by="price"))

        assert [p.price for p in ascending] == [Decimal("5.00"), Decimal("12.00"), Decimal("20.00")]
        assert [p.price for p in descending] == [Decimal("20.00"), Decimal("12.00"), Decimal("5.00")]

    @pytest.mark.parametrize("query", [{"sortBy": "stock; DROP TABLE products"}, {"sortBy": "description"}, {"sortOrder": "sideways"}])
    async def test_unknown_sort_is_invalid(self, query):
        with pytest.raises(ValueError):
            filtered(**query)


class TestProductsApi:
    async def test_list_is_public(self, client, make_product):
        await make_product(name="Lamp", price="35.50")

        response = await client.get("/products")

        assert response.status_code == 200
        data = await response.get_json()
        assert data["total"] == 1
        assert data["page"] == 1
        assert data["limit"] == 20
        assert data["products"][0]["price"] == "35.50"
        assert data["products"][0]["in_stock"] is True

    async def test_detail(self, client, make_product):
        product = await make_product(name="Lamp")

        response = await client.get(f"/products/{product.id}")
        assert (await response.get_json())["name"] == "Lamp"

        assert (await client.get("/products/999")).status_code == 404

    async def test_create(self, client, auth_headers):
        response = await client.post(
            "/products",
            json={"name": "Desk", "price": "120.00", "stockQuantity": 4, "imageUrl": "https://img/desk.png"},
            headers=auth_headers(),
        )

        assert response.status_code == 201
        data = await response.get_json()
        assert data["id"] > 0
        assert data["stock"] == 4
        assert data["price"] == "120.00"
        assert data["image_url"] == "https://img/desk.png"

    @pytest.mark.parametrize(
        "body",
        [
            {"price": "1.00"},
            {"name": "Desk", "price": "-1.00"},
            {"name": "Desk", "price": "1.001"},
            {"name": "Desk", "price": "1.00", "stock": -3},
        ],
    )
    async def test_create_invalid(self, client, auth_headers, body):
        response = await client.post("/products", json=body, headers=auth_headers())
        assert response.status_code == 400

    async def test_create_requires_auth(self, client):
        response = await client.post("/products", json={"name": "Desk", "price": "1.00"})
        assert response.status_code == 401

    async def test_set_stock(self, client, auth_headers, make_product):
        product = await make_product(stock=0)

        response = await client.put(f"/products/{product.id}/stock", json={"stock": 9}, headers=auth_headers())

        assert await response.get_json() == {"product_id": product.id, "stock": 9}

        response = await client.put(f"/products/{product.id}/stock", json={"stock": -1}, headers=auth_headers())
        assert response.status_code == 400

    async def test_delete_hides_product(self, client, auth_headers, make_product):
        product = await make_product()

        response = await client.delete(f"/products/{product.id}", headers=auth_headers())
        assert (await response.get_json())["is_active"] is False

        data = await (await client.get("/products")).get_json()
        assert data["total"] == 0

    async def test_list_filters_from_query(self, client, make_product):
        await make_product(name="Silk Dress", price="80.00", is_featured=True)
        await make_product(name="Silk Scarf", price="15.00")
        await make_product(name="Boots", price="90.00", is_featured=True)

        response = await client.get("/products?search=silk&isFeatured=true&maxPrice=100")

        data = await response.get_json()
        assert data["total"] == 1
        assert data["products"][0]["name"] == "Silk Dress"
        assert data["products"][0]["is_featured"] is True

    @pytest.mark.parametrize(
        "query",
        ["sortBy=password", "minPrice=50&maxPrice=10", "minRating=9", "limit=0", "categoryId=abc"],
    )
    async def test_list_invalid_query(self, client, query):
        response = await client.get(f"/products?{query}")

        assert response.status_code == 400
        assert (await response.get_json())["error"] == "validation_error"

    async def test_patch(self, client, auth_headers, make_product, make_category):
        product = await make_product(name="Lamp", price="10.00", stock=3)
        category = await make_category()

        response = await client.patch(
            f"/products/{product.id}",
            json={"name": "Desk Lamp", "isFeatured": True, "categoryId": category.id},
            headers=auth_headers(),
        )

        assert response.status_code == 200
        data = await response.get_json()
        assert data["name"] == "Desk Lamp"
        assert data["price"] == "10.00"
        assert data["stock"] == 3
        assert data["is_featured"] is True
        assert data["category_id"] == category.id

    async def test_patch_rejects_bad_input(self, client, auth_headers, make_product):
        product = await make_product()

        response = await client.patch(f"/products/{product.id}", json={"price": "-2"}, headers=auth_headers())
        assert response.status_code == 400

        response = await client.patch(f"/products/{product.id}", json={"categoryId": 31}, headers=auth_headers())
        assert response.status_code == 404

        response = await client.patch("/products/999", json={"name": "Ghost"}, headers=auth_headers())
        assert response.status_code == 404

    async def test_patch_requires_auth(self, client, make_product):
        product = await make_product()

        response = await client.patch(f"/products/{product.id}", json={"name": "Nope"})
        assert response.status_code == 401
