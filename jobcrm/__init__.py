"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
import logging
import uuid

from flask import Flask, g, jsonify, request

from jobcrm.errors import JobCrmError, UpstreamError

logger = logging.getLogger('jobcrm')

REQUEST_ID_HEADER = 'X-Request-ID'


def create_app():
    """Create and configure the Flask application."""
    from jobcrm.config import SECRET_KEY
    from jobcrm.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    app.secret_key = SECRET_KEY

    # ── Request correlation id ──────────────────────────────────────────
    @app.before_request
    def bind_request_id():
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

    @app.after_request
    def echo_request_id(response):
        request_id = g.get('request_id')
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response

    # ── Errors ──────────────────────────────────────────────────────────
    @app.errorhandler(JobCrmError)
    def handle_app_error(error):
        if isinstance(error, UpstreamError) or error.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, error.message,
                         extra={'endpoint': request.path, 'status_code': error.status_code})
        return jsonify(error.to_dict()), error.status_code

    # Register blueprints
    from jobcrm.routes.health import bp as health_bp
    from jobcrm.routes.auth import bp as auth_bp
    from jobcrm.routes.pipeline import bp as pipeline_bp
    from jobcrm.routes.assistant import bp as assistant_bp
    from jobcrm.routes.ingest import bp as ingest_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(pipeline_bp)
    app.register_blueprint(assistant_bp)
    app.register_blueprint(ingest_bp)

    # Initialize circuit breakers for external API services
    from jobcrm.extensions import redis_client
    from jobcrm.services.circuit_breaker import init_breakers
    init_breakers(redis_client)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic; no create_all() here.
    import importlib
    importlib.import_module('jobcrm.models.user')
    importlib.import_module('jobcrm.models.job_source')
    importlib.import_module('jobcrm.models.job_posting')
    importlib.import_module('jobcrm.models.job_match')
    importlib.import_module('jobcrm.models.task')

    return app
