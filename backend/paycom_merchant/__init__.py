# backend/paycom_merchant/__init__.py
from __future__ import annotations

from flask import Flask

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None, order_factory=None) -> Flask:
    """
    Build the merchant API application.

    `order_factory` returns a fresh MerchantOrder per call; it defaults to the
    table-backed StoredOrder.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.credential_service import CredentialStore
    from .services.order_service import StoredOrder
    from .services.paycom_service import PaycomDispatcher

    app.extensions["paycom"] = PaycomDispatcher(
        order_factory=order_factory or StoredOrder,
        credentials=CredentialStore.from_config(app.config),
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.paycom import paycom_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(paycom_bp, url_prefix=app.config["PAYCOM_ENDPOINT"])

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
