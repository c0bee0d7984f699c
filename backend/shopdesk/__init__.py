# backend/shopdesk/__init__.py
from flask import Flask, jsonify, request

from .config import Config
from .extensions import db, migrate


def _is_allowed_origin(app: Flask, origin: str | None) -> bool:
    if not origin:
        return False
    allowed = set(app.config.get("CORS_ORIGINS") or [])
    if app.config.get("FRONTEND_URL"):
        allowed.add(app.config["FRONTEND_URL"].rstrip("/"))
    if origin in allowed:
        return True
    # Preview deployments
    return origin.startswith("https://") and origin.endswith(".vercel.app")


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.invoices import invoices_bp
    from .routes.customers import customers_bp
    from .routes.products import products_bp, catalog_bp
    from .routes.shops import shops_bp
    from .routes.admin import admin_bp
    from .routes.shop_admin import shop_admin_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(shops_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(shop_admin_bp)

    @app.errorhandler(404)
    @app.errorhandler(405)
    def route_not_found(_error):
        return jsonify({
            "success": False,
            "error": "Route not found",
            "path": request.path,
            "method": request.method,
        }), 404

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if _is_allowed_origin(app, origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
