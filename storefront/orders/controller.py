from typing import List

from quart import Blueprint, current_app, g, jsonify

from ..common.auth import require_auth
from ..common.money import money_str
from ..common.validation import read_body, read_query
from .model import Order
from .schemas import CreateOrderRequest, OrderFilter, UpdateOrderStatusRequest, UpdatePaymentStatusRequest
from .service import OrderService

bp = Blueprint("orders", __name__, url_prefix="/orders")


def _service() -> OrderService:
    return current_app.extensions["orders"]


def _page(orders: List[Order], total: int, filters: OrderFilter):
    return jsonify({
        "orders": [o.to_dict() for o in orders],
        "total": total,
        "page": filters.page,
        "limit": filters.limit,
    })


@bp.post("")
@require_auth
async def order_create():
    payload = await read_body(CreateOrderRequest)
    order = await _service().create_order(g.user_id, payload)
    return jsonify(order.to_dict()), 201


@bp.get("")
@require_auth
async def orders_list():
    filters = read_query(OrderFilter)
    orders, total = await _service().list_orders(filters)
    return _page(orders, total, filters)


@bp.get("/user")
@require_auth
async def orders_list_mine():
    filters = read_query(OrderFilter)
    orders, total = await _service().list_user_orders(g.user_id, filters)
    return _page(orders, total, filters)


@bp.get("/stats")
@require_auth
async def orders_stats():
    stats = await _service().get_stats()
    return jsonify({
        "total_orders": stats.total_orders,
        "total_revenue": money_str(stats.total_revenue),
        "average_order_value": money_str(stats.average_order_value),
        "orders_by_status": stats.orders_by_status,
    })


@bp.get("/<order_id>")
@require_auth
async def order_detail(order_id: str):
    order = await _service().get_order(order_id)
    return jsonify(order.to_dict())


@bp.get("/number/<order_number>")
@require_auth
async def order_by_number(order_number: str):
    order = await _service().get_order_by_number(order_number)
    return jsonify(order.to_dict())


@bp.patch("/<order_id>/status")
@require_auth
async def order_update_status(order_id: str):
    payload = await read_body(UpdateOrderStatusRequest)
    order = await _service().update_status(order_id, payload.status)
    return jsonify(order.to_dict())


@bp.patch("/<order_id>/payment-status")
@require_auth
async def order_update_payment_status(order_id: str):
    payload = await read_body(UpdatePaymentStatusRequest)
    order = await _service().update_payment_status(order_id, payload.payment_status, payload.payment_reference)
    return jsonify(order.to_dict())


@bp.patch("/<order_id>/cancel")
@require_auth
async def order_cancel(order_id: str):
    order = await _service().cancel_order(order_id)
    return jsonify(order.to_dict())
