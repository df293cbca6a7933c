import logging
import os
import time
from typing import Optional

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from quart import Quart, g, jsonify, request

from .cart.controller import bp as cart_bp
from .cart.service import CartService, CartStore
from .categories.controller import bp as categories_bp
from .categories.service import CategoryService, CategoryStore
from .common.config import Settings, settings
from .common.database import init_db, make_engine, make_session_factory
from .common.errors import AppError
from .common.redis_client import close_redis
from .inventory.controller import bp as inventory_bp
from .inventory.events import StockNotifier
from .inventory.service import InventoryService, ProductStore
from .orders.controller import bp as orders_bp
from .orders.service import OrderService
from .orders.totals import PricingPolicy
from .realtime.controller import bp as realtime_bp
from .reviews.controller import bp as reviews_bp
from .reviews.service import ReviewService, ReviewStore
from .wishlist.controller import bp as wishlist_bp
from .wishlist.service import WishlistService, WishlistStore

log = logging.getLogger(__name__)

INSTANCE_ID = os.getenv("INSTANCE_ID", "unknown")

REQUEST_COUNT = Counter("http_requests_total", "Total HTTP requests", ["method", "endpoint", "status"])
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.075, 0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0, float("inf")),
)


def _metrics_endpoint() -> str:
    # Route templates keep label cardinality bounded (/orders/<order_id>, not every id)
    rule = request.url_rule
    return rule.rule if rule is not None else "unmatched"


def create_app(config: Optional[Settings] = None) -> Quart:
    config = config or settings
    app = Quart(__name__)

    engine = make_engine(config.DB_URL, echo=config.DB_ECHO)
    session_factory = make_session_factory(engine)
    products = ProductStore()
    categories = CategoryStore()
    carts = CartStore()
    notifier = StockNotifier(config) if config.STOCK_EVENTS_ENABLED else None

    app.extensions["settings"] = config
    app.extensions["db_engine"] = engine
    app.extensions["session_factory"] = session_factory
    app.extensions["inventory"] = InventoryService(session_factory, products, notifier, categories)
    app.extensions["categories"] = CategoryService(session_factory, categories)
    app.extensions["cart"] = CartService(session_factory, carts, products)
    app.extensions["reviews"] = ReviewService(session_factory, ReviewStore(), products)
    app.extensions["wishlist"] = WishlistService(session_factory, WishlistStore(), products)
    app.extensions["orders"] = OrderService(
        session_factory,
        products,
        carts,
        notifier=notifier,
        policy=PricingPolicy.from_settings(config),
        order_number_prefix=config.ORDER_NUMBER_PREFIX,
    )

    # Blueprints
    app.register_blueprint(inventory_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(wishlist_bp)
    app.register_blueprint(realtime_bp)

    @app.errorhandler(AppError)
    async def handle_app_error(error: AppError):
        if error.status_code >= 500:
            log.error("Request failed | path=%s error=%s", request.path, error.message)
        else:
            log.info("Request rejected | path=%s status=%s error=%s", request.path, error.status_code, error.code)
        return jsonify(error.to_dict()), error.status_code

    @app.before_request
    async def before_request():
        g.request_started = time.time()
        log.debug("[Instance %s] %s %s", INSTANCE_ID, request.method, request.path)

    @app.after_request
    async def after_request(response):
        started = g.get("request_started")
        if started is not None:
            endpoint = _metrics_endpoint()
            REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - started)
            REQUEST_COUNT.labels(method=request.method, endpoint=endpoint, status=str(response.status_code)).inc()
        response.headers["X-Instance-ID"] = INSTANCE_ID
        return response

    @app.get("/metrics")
    async def metrics():
        return app.response_class(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        return jsonify({"status": "ok"})

    @app.before_serving
    async def startup():
        logging.basicConfig(level=config.LOG_LEVEL)
        log.info("Initializing database...")
        await init_db(engine)
        log.info("Database ready.")

    @app.after_serving
    async def shutdown():
        await close_redis()
        await engine.dispose()
        log.info("Shutdown complete.")

    return app
