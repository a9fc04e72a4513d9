# backend/giftgrab/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.orders import orders_bp
    from .routes.events import events_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(events_bp)

    # Collaborators (tests and deployments swap these out)
    from .actions import EMAIL_SENDER_KEY
    from .services.collaborators import LoggingEmailSender
    app.extensions.setdefault(EMAIL_SENDER_KEY, LoggingEmailSender(app.logger.getChild("email")))

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
