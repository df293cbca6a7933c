from quart import Blueprint, current_app, g, jsonify

from ..common.auth import require_auth
from ..common.money import money_str
from ..common.validation import read_body
from .schemas import AddToCartRequest, UpdateCartItemRequest
from .service import CartService

bp = Blueprint("cart", __name__, url_prefix="/cart")


def _service() -> CartService:
    return current_app.extensions["cart"]


@bp.get("")
@require_auth
async def cart_get():
    items = await _service().list_items(g.user_id)
    return jsonify({"items": [item.to_dict() for item in items]})


@bp.get("/total")
@require_auth
async def cart_total():
    totals = await _service().get_totals(g.user_id)
    return jsonify({"subtotal": money_str(totals["subtotal"]), "item_count": totals["item_count"]})


@bp.post("/items")
@require_auth
async def cart_add():
    payload = await read_body(AddToCartRequest)
    item = await _service().add_item(g.user_id, payload)
    return jsonify(item.to_dict()), 201


@bp.patch("/items/<int:item_id>")
@require_auth
async def cart_update(item_id: int):
    payload = await read_body(UpdateCartItemRequest)
    item = await _service().update_item(g.user_id, item_id, payload.quantity)
    return jsonify(item.to_dict())


@bp.delete("/items/<int:item_id>")
@require_auth
async def cart_remove(item_id: int):
    await _service().remove_item(g.user_id, item_id)
    return jsonify({"removed": item_id})


@bp.delete("")
@require_auth
async def cart_clear():
    removed = await _service().clear(g.user_id)
    return jsonify({"removed": removed})
