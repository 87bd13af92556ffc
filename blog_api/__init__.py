import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, validate_config
from .errors import register_error_handlers
from .limiter import limiter
from models import DBStorage

# OpenAPI 2.0 document served at /swagger.json, UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Blog Platform API",
        "version": "1.0.0",
        "description": "Authentication, sessions, blogs and comments.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
    "tags": [
        {"name": "Auth", "description": "Registration, login and session refresh"},
        {"name": "Users", "description": "Admin user management"},
        {"name": "Blogs"},
        {"name": "Comments"},
    ],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "in": "header",
            "name": "Authorization",
            "description": "Access token as `Bearer <token>`; browsers may rely on the accessToken cookie instead.",
        }
    },
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec",
            "route": "/swagger.json",
            "rule_filter": lambda rule: rule.rule.startswith("/api"),
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_name: str | None = None, storage: DBStorage | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    Everything a request handler needs (config, token secrets, database handle)
    hangs off the returned app; tests build an isolated app per case and may
    pass in their own DBStorage.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    validate_config(app.config)
    configure_logging(app.config["LOG_LEVEL"])

    if storage is None:
        storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    app.extensions["storage"] = storage

    # Refresh tokens travel in cookies, so credentials must be allowed
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",") if o.strip()]
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        expose_headers=["X-Total-Count"],
    )

    # Per-IP limits; RATELIMIT_* keys in app.config drive storage and defaults
    limiter.init_app(app)

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .blogs import bp as blogs_bp
    from .comments import bp as comments_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(blogs_bp, url_prefix="/api")
    app.register_blueprint(comments_bp, url_prefix="/api")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "success": True,
            "message": "Welcome to the Blog Platform API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    return app
