from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

bp = Blueprint('health', __name__)

SERVICE_NAME = 'Ticket Sniper API'
VERSION = '1.0.0'


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _configured(key):
    return 'configured' if current_app.config.get(key) else 'not configured'


@bp.route('/health')
def health():
    return jsonify({
        'status': 'ok',
        'service': SERVICE_NAME,
        'timestamp': _timestamp(),
        'environment': current_app.config.get('ENVIRONMENT', 'development'),
        'integrations': {
            'seatgeek': _configured('SEATGEEK_CLIENT_ID'),
            'stripe': _configured('STRIPE_SECRET_KEY'),
        },
    })


@bp.route('/')
def index():
    return jsonify({
        'message': SERVICE_NAME,
        'version': VERSION,
        'documentation': '/health',
        'timestamp': _timestamp(),
    })


@bp.route('/favicon.ico')
def favicon():
    return '', 204
