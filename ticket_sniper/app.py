from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
import logging

from .config import Config
from .errors import TicketSniperError
from .routes import health, payments, shows

logger = logging.getLogger(__name__)


def configure_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def configure_cors(app):
    origins = app.config.get('ALLOWED_ORIGINS') or '*'
    if origins != '*':
        origins = [origin.strip() for origin in origins.split(',') if origin.strip()]
    CORS(app, origins=origins, supports_credentials=True)


def register_error_handlers(app):
    @app.errorhandler(TicketSniperError)
    def handle_domain_error(error):
        if error.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {error}")
        else:
            logger.info(f"{request.method} {request.path} rejected: {error}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': f"Route {request.method} {request.path} not found"
        }), 404

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.name, 'message': error.description}), error.code

        production = app.config.get('ENVIRONMENT') == 'production'
        logger.exception(f"Server error: {error}")
        return jsonify({
            'error': 'Internal server error',
            'message': 'An error occurred' if production else str(error)
        }), 500


def create_app(config_object=Config, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.config.update(overrides)
    app.json.sort_keys = False

    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    configure_cors(app)
    register_error_handlers(app)

    app.register_blueprint(health.bp)
    app.register_blueprint(shows.bp)
    app.register_blueprint(payments.bp)

    logger.info(f"Ticket Sniper API configured for {app.config.get('ENVIRONMENT')}")
    return app
