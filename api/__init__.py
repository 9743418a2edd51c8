import logging
import os

from flask import Flask, send_from_directory
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import api_response, register_error_handlers
from models import storage
from utils.security import TokenConfig

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Accounts API",
        "version": "1.0.0",
        "description": "User registration, login, session refresh and profile management.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Fails fast when the token signing secrets are missing.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)

    try:
        app.extensions["token_config"] = TokenConfig.from_mapping(app.config)
    except ValueError as exc:
        raise RuntimeError(f"Invalid token configuration: {exc}") from exc

    storage.init_engine(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()

    # Cookies are the transport session, so cross-origin callers need credentials.
    # With credentials allowed a wildcard would echo any origin back.
    origins = app.config.get("CORS_ORIGINS") or []
    if "*" in origins:
        raise RuntimeError("CORS_ORIGINS must list explicit origins when credentials are allowed")
    if origins:
        CORS(app, resources={r"/api/*": {"origins": origins}}, supports_credentials=True)

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/users")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")

    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    if not app.config.get("MEDIA_UPLOAD_URL"):
        @app.get("/media/<path:filename>")
        def media(filename):
            return send_from_directory(os.path.abspath(app.config["MEDIA_ROOT"]), filename)

    @app.route("/")
    def root():
        return api_response(
            200, {"docs": "/apidocs/", "health": "/api/v1/health"}, "Welcome to Accounts API"
        )

    logger.info("Accounts API configured (%s)", app.config.get("APP_ENV"))
    return app
