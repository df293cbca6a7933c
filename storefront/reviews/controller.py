from quart import Blueprint, current_app, g, jsonify

from ..common.auth import require_auth
from ..common.money import money_str
from ..common.validation import read_body, read_query
from .rating import RatingSummary
from .schemas import CreateReviewRequest, HelpfulRequest, ReviewFilter, UpdateReviewRequest
from .service import ReviewService

bp = Blueprint("reviews", __name__, url_prefix="/reviews")


def _service() -> ReviewService:
    return current_app.extensions["reviews"]


def _stats(summary: RatingSummary):
    return {
        "total_reviews": summary.count,
        "average_rating": money_str(summary.average),
        "rating_distribution": {str(star): n for star, n in summary.distribution.items()},
    }


@bp.post("")
@require_auth
async def review_create():
    payload = await read_body(CreateReviewRequest)
    review = await _service().create_review(g.user_id, payload)
    return jsonify(review.to_dict()), 201


@bp.get("")
async def reviews_list():
    filters = read_query(ReviewFilter)
    reviews, total = await _service().list_reviews(filters)
    return jsonify({"reviews": [r.to_dict() for r in reviews], "total": total, "page": filters.page, "limit": filters.limit})


@bp.get("/product/<int:product_id>")
async def reviews_for_product(product_id: int):
    filters = read_query(ReviewFilter)
    reviews, total, summary = await _service().list_product_reviews(product_id, filters)
    return jsonify(
        {
            "reviews": [r.to_dict() for r in reviews],
            "total": total,
            "average_rating": money_str(summary.average),
            "page": filters.page,
            "limit": filters.limit,
        }
    )


@bp.get("/product/<int:product_id>/stats")
async def review_stats(product_id: int):
    summary = await _service().get_review_stats(product_id)
    return jsonify(_stats(summary))


@bp.get("/user")
@require_auth
async def reviews_mine():
    reviews = await _service().list_user_reviews(g.user_id)
    return jsonify({"reviews": [r.to_dict() for r in reviews]})


@bp.get("/<int:review_id>")
async def review_get(review_id: int):
    review = await _service().get_review(review_id)
    return jsonify(review.to_dict())


@bp.patch("/<int:review_id>")
@require_auth
async def review_update(review_id: int):
    payload = await read_body(UpdateReviewRequest)
    review = await _service().update_review(review_id, g.user_id, payload)
    return jsonify(review.to_dict())


@bp.patch("/<int:review_id>/helpful")
async def review_helpful(review_id: int):
    payload = await read_body(HelpfulRequest)
    review = await _service().mark_helpful(review_id, payload.is_helpful)
    return jsonify(review.to_dict())


@bp.patch("/<int:review_id>/approve")
@require_auth
async def review_approve(review_id: int):
    review = await _service().approve_review(review_id)
    return jsonify(review.to_dict())


@bp.patch("/<int:review_id>/reject")
@require_auth
async def review_reject(review_id: int):
    review = await _service().reject_review(review_id)
    return jsonify(review.to_dict())


@bp.delete("/<int:review_id>")
@require_auth
async def review_delete(review_id: int):
    await _service().delete_review(review_id, g.user_id)
    return jsonify({"removed": review_id})
