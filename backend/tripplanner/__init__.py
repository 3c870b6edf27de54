import structlog
from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from tripplanner.config import Config
from tripplanner.errors import TripPlannerError
from tripplanner.extensions import get_storage_kind, init_currency, init_storage
from tripplanner.logs import configure_logging
from tripplanner.utils.helpers import utc_now_iso

jwt = JWTManager()

log = structlog.get_logger(__name__)


def create_app(config_class=Config, rate_source=None, rate_cache=None):
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app.config["LOG_LEVEL"], app.config["LOG_JSON"])

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    # Init extensions
    jwt.init_app(app)
    init_storage(app)
    init_currency(app, source=rate_source, cache=rate_cache)

    # Register API blueprints
    from tripplanner.auth.routes import auth_bp
    from tripplanner.currencies.routes import currencies_bp
    from tripplanner.expenses.routes import expenses_bp
    from tripplanner.trips.routes import trips_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(trips_bp, url_prefix="/api/trips")
    app.register_blueprint(expenses_bp, url_prefix="/api/trips")
    app.register_blueprint(currencies_bp, url_prefix="/api/currencies")

    register_handlers(app)
    return app


def register_handlers(app):
    @app.before_request
    def log_request():
        log.debug(
            "request",
            method=request.method,
            path=request.path,
            has_auth="Authorization" in request.headers,
        )

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"status": "OK", "timestamp": utc_now_iso(), "storage": get_storage_kind()})

    @app.errorhandler(TripPlannerError)
    def handle_api_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(404)
    def handle_not_found(e):
        return jsonify({"error": "Route not found"}), 404

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code

        log.exception("unhandled_error", path=request.path)
        return jsonify({
            "error": "Something went wrong!",
            "message": str(e) if app.debug else "Internal server error",
        }), 500
