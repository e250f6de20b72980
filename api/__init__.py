from dataclasses import dataclass

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import AuthSettings, get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from utils.security import AccessTokenService
from utils.sessions import RefreshTokenService

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Chirpy API",
        "version": "1.0.0",
        "description": "Users, sessions and tokens for Chirpy.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        },
        "ApiKey": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Webhook key with the `ApiKey ` prefix."
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


@dataclass(frozen=True)
class AuthServices:
    settings: AuthSettings
    access_tokens: AccessTokenService
    refresh_tokens: RefreshTokenService


def create_app(config_name: str | None = None, **overrides) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    `overrides` are applied on top of the selected config class (handy in
    tests). Raises ConfigError when JWT_SECRET or POLKA_KEY is missing, so a
    misconfigured app never starts serving.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    app.config.update(overrides)

    settings = AuthSettings.from_config(app.config)
    app.extensions["chirpy_auth"] = AuthServices(
        settings=settings,
        access_tokens=AccessTokenService(settings),
        refresh_tokens=RefreshTokenService(storage, settings),
    )

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .webhooks import bp as webhooks_bp
    from .admin import bp as admin_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(webhooks_bp, url_prefix="/api")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Chirpy API",
            "docs": "/apidocs/",
            "health": "/api/healthz",
        }, 200

    return app
