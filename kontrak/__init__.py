# FILE: kontrak/__init__.py
# DESCRIPTION: Initializes the Kontrak Digital Flask app and registers routes and error handlers.

from datetime import datetime, timezone

from flask import Flask, current_app, jsonify, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from kontrak.config import Config
from kontrak.logging_config import configure_logging
from kontrak.api.routes_access import access_bp
from kontrak.api.routes_admin import admin_bp
from kontrak.api.routes_auth import auth_bp
from kontrak.api.routes_contracts import contracts_bp
from kontrak.core.rate_limit import FixedWindowRateLimiter
from kontrak.db.models import Base
from kontrak.db.session import close_session, init_engine, ping_database

__version__ = "1.0.0"

# Configure logging once at module level
logger = configure_logging(
    name="kontrak",
    logfile="kontrak.log",
    level=None  # Uses LOG_LEVEL from environment if set
)


def create_app(overrides: dict = None):
    """Create and configure the Kontrak Digital Flask application."""
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Only the hops appended by our own proxies are trusted for remote_addr
    proxy_count = app.config["TRUSTED_PROXY_COUNT"]
    if proxy_count:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_count)

    engine = init_engine(app.config["DATABASE_URL"])
    if app.config.get("CREATE_TABLES"):
        Base.metadata.create_all(bind=engine)
    app.teardown_appcontext(close_session)

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(access_bp)
    app.register_blueprint(contracts_bp)
    app.register_blueprint(admin_bp)

    app.extensions["rate_limiter"] = FixedWindowRateLimiter(
        max_requests=app.config["RATE_LIMIT_MAX_REQUESTS"],
        window_seconds=app.config["RATE_LIMIT_WINDOW_SECONDS"],
        max_clients=app.config["RATE_LIMIT_MAX_CLIENTS"],
    )

    @app.before_request
    def enforce_rate_limit():
        ip = request.remote_addr or "unknown"
        if not current_app.extensions["rate_limiter"].allow(ip):
            logger.warning(f"Rate limit exceeded for {ip}")
            return jsonify({"error": "Too many requests"}), 429

    # Health check endpoint
    @app.route("/api/health")
    def health():
        timestamp = datetime.now(timezone.utc).isoformat()
        try:
            ping_database()
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return jsonify({
                "status": "unhealthy",
                "timestamp": timestamp,
                "database": "disconnected",
                "error": str(e),
            }), 503

        return jsonify({
            "status": "healthy",
            "timestamp": timestamp,
            "database": "connected",
            "environment": current_app.config["APP_ENV"],
            "version": __version__,
        }), 200

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({"error": "Endpoint not found"}), 404

    # Global error handler
    @app.errorhandler(Exception)
    def handle_error(error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code

        logger.error("Unhandled error occurred", exc_info=True)
        body = {"error": "Internal server error"}
        if current_app.config["APP_ENV"] == "development":
            body["details"] = str(error)
        return jsonify(body), 500

    logger.info("Kontrak Digital application initialized successfully")
    return app
