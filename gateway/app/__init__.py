"""Flask application factory and initialization."""
import logging

from flask import Flask, jsonify, request
from gateway.app.config import Config
from gateway.app.extensions import init_extensions


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # Settings are frozen here; requests never read the environment.
    init_extensions(app)

    @app.route('/api/health')
    def health_check():
        """Health check reporting configuration completeness (no network calls)."""
        missing = (app.extensions['directory_settings'].missing()
                   + app.extensions['mail_settings'].missing())
        response = {
            "status": "ok" if not missing else "degraded",
            "service": "account-request-gateway",
        }
        if missing:
            response["missing_settings"] = missing
        return jsonify(response)

    register_blueprints(app)

    allowed_origins = parse_origins(app.config.get('CORS_ALLOWED_ORIGINS'))

    @app.after_request
    def after_request(response):
        """Add CORS headers to all responses.

        With an explicit origin list the request Origin is echoed back only
        when it is listed; other origins get no Allow-Origin header.
        """
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Origin, Authorization, Content-Type'
        if '*' in allowed_origins:
            response.headers['Access-Control-Allow-Origin'] = '*'
            return response
        response.vary.add('Origin')
        origin = request.headers.get('Origin')
        if origin and origin in allowed_origins:
            response.headers['Access-Control-Allow-Origin'] = origin
            # credentials are only allowed with an explicit origin
            response.headers['Access-Control-Allow-Credentials'] = 'true'
        return response

    return app


def parse_origins(value):
    """Split a comma-separated CORS_ALLOWED_ORIGINS value; empty means any origin."""
    origins = {item.strip().rstrip('/') for item in (value or '').split(',') if item.strip()}
    return origins or {'*'}


def configure_logging(app):
    """Attach a console handler when the host process has not configured logging."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL') or 'INFO').upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s - %(message)s'))
        root.addHandler(handler)
    root.setLevel(level)


def register_blueprints(app):
    """Register Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    # Import blueprints here to avoid circular imports
    from gateway.app.blueprints.api.requests.routes import requests_bp, submit_account_request

    app.register_blueprint(requests_bp)

    # Older clients post to /send-email
    app.add_url_rule('/send-email', endpoint='send_email', view_func=submit_account_request, methods=['POST'])
