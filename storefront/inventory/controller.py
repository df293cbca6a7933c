from quart import Blueprint, current_app, jsonify

from ..common.auth import require_auth
from ..common.validation import read_body, read_query
from .schemas import CreateProductRequest, ProductFilter, UpdateProductRequest, UpdateStockRequest
from .service import InventoryService

bp = Blueprint("inventory", __name__, url_prefix="/products")


def _service() -> InventoryService:
    return current_app.extensions["inventory"]


@bp.get("")
async def products_list():
    filters = read_query(ProductFilter)
    items, total = await _service().list_products(filters)
    return jsonify({"products": [p.to_dict() for p in items], "total": total, "page": filters.page, "limit": filters.limit})


@bp.get("/<int:product_id>")
async def product_detail(product_id: int):
    product = await _service().get_product(product_id)
    return jsonify(product.to_dict())


@bp.post("")
@require_auth
async def product_create():
    payload = await read_body(CreateProductRequest)
    product = await _service().create_product(payload)
    return jsonify(product.to_dict()), 201


@bp.put("/<int:product_id>/stock")
@require_auth
async def stock_put(product_id: int):
    payload = await read_body(UpdateStockRequest)
    product = await _service().set_stock(product_id, payload.stock)
    return jsonify({"product_id": product.id, "stock": product.stock})


@bp.delete("/<int:product_id>")
@require_auth
async def product_delete(product_id: int):
    product = await _service().deactivate_product(product_id)
    return jsonify(product.to_dict())


@bp.patch("/<int:product_id>")
@require_auth
async def product_update(product_id: int):
    payload = await read_body(UpdateProductRequest)
    product = await _service().update_product(product_id, payload)
    return jsonify(product.to_dict())
