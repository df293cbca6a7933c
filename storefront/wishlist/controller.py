from quart import Blueprint, current_app, g, jsonify

from ..common.auth import require_auth
from ..common.validation import read_body
from .schemas import AddToWishlistRequest
from .service import WishlistService

bp = Blueprint("wishlist", __name__, url_prefix="/wishlist")


def _service() -> WishlistService:
    return current_app.extensions["wishlist"]


@bp.post("/add")
@require_auth
async def wishlist_add():
    payload = await read_body(AddToWishlistRequest)
    item = await _service().add_item(g.user_id, payload.product_id)
    return jsonify(item.to_dict()), 201


@bp.get("")
@require_auth
async def wishlist_get():
    items = await _service().list_items(g.user_id)
    return jsonify({"items": [item.to_dict() for item in items]})


@bp.get("/count")
@require_auth
async def wishlist_count():
    return jsonify({"count": await _service().count(g.user_id)})


@bp.get("/check/<int:product_id>")
@require_auth
async def wishlist_check(product_id: int):
    in_wishlist = await _service().contains(g.user_id, product_id)
    return jsonify({"product_id": product_id, "in_wishlist": in_wishlist})


@bp.delete("/remove/<int:product_id>")
@require_auth
async def wishlist_remove(product_id: int):
    await _service().remove_item(g.user_id, product_id)
    return jsonify({"removed": product_id})


@bp.delete("")
@require_auth
async def wishlist_clear():
    removed = await _service().clear(g.user_id)
    return jsonify({"removed": removed})
