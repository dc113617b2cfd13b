"""
FLASK APP ENTRY POINT - AUTHVAULT SERVER

Builds the Flask app: configuration, logging, CORS, the storage backend and
the API blueprints.

Endpoints:
- /api/auth/...            register / login / logout / me / reset-password
- /api/authenticators/...  list, add, update, delete, verify, uri, parse-qr
- /health
"""
import logging

from flask import Flask, current_app, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from vaultstore import Store, StorageError, create_store

from .config import Config
from .logging_config import configure_logging

logger = logging.getLogger(__name__)

STORE_EXTENSION = "authvault_store"


def get_store() -> Store:
    """The Store bound to the current Flask app."""
    return current_app.extensions[STORE_EXTENSION]


def create_app(config=None, store: Store = None) -> Flask:
    """
    Create the Flask app.

    config: a config class/object (default Config) or a dict of overrides.
    store: an already-built Store; otherwise one is built from the config.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # let a separately served frontend call the API
    CORS(app, origins=app.config.get("CORS_ORIGINS", "*"))

    app.extensions[STORE_EXTENSION] = store if store is not None else create_store(app.config)

    from .api import authenticators_bp
    from .routes import auth_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(authenticators_bp)

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        logger.error("Storage error: %s", e)
        return jsonify({"error": "Storage failure"}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    logger.info("authvault started with %s storage", app.config.get("STORAGE_BACKEND"))
    return app


# Run the development server only when executed directly
if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5000)
