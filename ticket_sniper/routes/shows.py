from datetime import datetime, timezone
import logging
import math

from flask import Blueprint, current_app, jsonify, request

from ..auth_utils import requires_api_key
from ..errors import ConfigurationError, InvalidRequestError
from ..reservations import ReservationService
from ..seatgeek.api import SeatGeekAPI
from ..services.checkout_service import CheckoutService
from ..shows import ShowAggregator, ShowPolicy

logger = logging.getLogger(__name__)

bp = Blueprint('shows', __name__, url_prefix='/api/shows')

DEFAULT_LOCATION = 'New York'


def _timestamp():
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def _aggregator():
    config = current_app.config
    return ShowAggregator(SeatGeekAPI.from_config(config), ShowPolicy.from_config(config))


def _reservation_service():
    config = current_app.config
    api = SeatGeekAPI.from_config(config)
    try:
        checkout_service = CheckoutService.from_config(config)
    except ConfigurationError:
        logger.warning("Stripe is not configured; reservations will not open checkout sessions")
        checkout_service = None

    frontend_url = config.get('FRONTEND_URL')
    return ReservationService(
        api,
        checkout_service,
        policy=ShowPolicy.from_config(config),
        checkout_failure_is_fatal=bool(config.get('CHECKOUT_FAILURE_IS_FATAL')),
        success_url=frontend_url,
        cancel_url=frontend_url,
    )


def _parse_bool(value, default=True):
    if value is None:
        return default
    return str(value).strip().lower() in ('true', '1', 'yes')


def _parse_quantity(value):
    if value is None:
        return 1
    if isinstance(value, bool):
        raise InvalidRequestError("quantity must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    raise InvalidRequestError("quantity must be an integer")


def _parse_price(value):
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise InvalidRequestError("price must be a number")
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise InvalidRequestError("price must be a number")
    if not math.isfinite(price):
        raise InvalidRequestError("price must be a finite number")
    return price


@bp.route('', methods=['GET'])
@requires_api_key
def list_shows():
    location = request.args.get('location', DEFAULT_LOCATION)
    fetch_all = _parse_bool(request.args.get('fetch_all'), default=True)
    if not fetch_all and not location:
        # City-only mode always issues the city query
        location = DEFAULT_LOCATION

    logger.info("=== FETCHING ALL EVENTS FROM SEATGEEK ===")
    shows = _aggregator().aggregate(location=location or None, fetch_all=fetch_all)

    return jsonify({
        'success': True,
        'shows': [show.to_dict() for show in shows],
        'total': len(shows),
        'timestamp': _timestamp(),
    })


@bp.route('/<show_id>', methods=['GET'])
@requires_api_key
def get_show(show_id):
    show = _aggregator().get_show(show_id)
    return jsonify({'success': True, 'show': show.to_dict(), 'timestamp': _timestamp()})


@bp.route('/<show_id>/reserve', methods=['POST'])
@requires_api_key
def reserve_show(show_id):
    data = request.get_json(silent=True) or {}
    quantity = _parse_quantity(data.get('quantity'))
    price = _parse_price(data.get('price'))
    buyer_id = data.get('userId')

    result = _reservation_service().reserve(
        show_id,
        quantity=quantity,
        asserted_price=price,
        buyer_id=str(buyer_id) if buyer_id else None,
    )
    return jsonify(result.to_dict())


@bp.route('/reservations/<reservation_id>/confirm', methods=['POST'])
@requires_api_key
def confirm_reservation(reservation_id):
    data = request.get_json(silent=True) or {}
    session_id = data.get('sessionId') or data.get('paymentIntentId')

    service = ReservationService(None, CheckoutService.from_config(current_app.config))
    result = service.confirm(reservation_id, session_id)
    return jsonify(result.to_dict())
