from quart import Blueprint, current_app, jsonify

from ..common.auth import require_auth
from ..common.validation import read_body
from .model import CategoryType
from .schemas import CreateCategoryRequest, UpdateCategoryRequest
from .service import CategoryService

bp = Blueprint("categories", __name__, url_prefix="/categories")


def _service() -> CategoryService:
    return current_app.extensions["categories"]


@bp.get("")
async def categories_list():
    categories = await _service().list_categories()
    return jsonify({"categories": [c.to_dict() for c in categories]})


@bp.get("/type/<category_type>")
async def categories_by_type(category_type: str):
    try:
        kind = CategoryType(category_type)
    except ValueError:
        return jsonify({"categories": []})
    categories = await _service().list_categories(kind)
    return jsonify({"categories": [c.to_dict() for c in categories]})


@bp.get("/<int:category_id>")
async def category_detail(category_id: int):
    category = await _service().get_category(category_id)
    return jsonify(category.to_dict())


@bp.post("")
@require_auth
async def category_create():
    payload = await read_body(CreateCategoryRequest)
    category = await _service().create_category(payload)
    return jsonify(category.to_dict()), 201


@bp.patch("/<int:category_id>")
@require_auth
async def category_update(category_id: int):
    payload = await read_body(UpdateCategoryRequest)
    category = await _service().update_category(category_id, payload)
    return jsonify(category.to_dict())


@bp.delete("/<int:category_id>")
@require_auth
async def category_delete(category_id: int):
    await _service().delete_category(category_id)
    return jsonify({"removed": category_id})
