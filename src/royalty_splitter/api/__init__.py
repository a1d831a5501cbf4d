"""
Royalty Splitter API Package.

Flask blueprints exposing the splitter over HTTP.

Blueprints:
- splits: split definition, distribution, work ids, admin config, metrics
"""

import os

from flask import Flask

from ..monitoring.logging import configure_logging
from ..monitoring.middleware import setup_request_logging
from ..splitter import RoyaltySplitter
from . import state
from .splits import splits_bp

# Tuple format: (blueprint, url_prefix)
ALL_BLUEPRINTS = [
    (splits_bp, ""),
]


def register_blueprints(app: Flask) -> None:
    """Register all blueprints with the Flask app."""
    for blueprint, url_prefix in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint, url_prefix=url_prefix)


def create_app(splitter: RoyaltySplitter | None = None) -> Flask:
    """
    Build the Flask application.

    Args:
        splitter: Splitter to serve; loaded from the environment when None
    """
    app = Flask(__name__)
    if splitter is not None:
        state.set_splitter(splitter)
    elif state.get_splitter() is None:
        state.init_splitter()

    register_blueprints(app)
    setup_request_logging(app)
    return app


def run_server() -> None:
    """Run the development server (HOST, PORT, LOG_LEVEL from the environment)."""
    configure_logging(level=os.getenv("LOG_LEVEL", "INFO"))
    app = create_app()
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "5000"))
    app.run(host=host, port=port, debug=os.getenv("FLASK_DEBUG", "false").lower() == "true")


__all__ = ["ALL_BLUEPRINTS", "create_app", "register_blueprints", "run_server"]
