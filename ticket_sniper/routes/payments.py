import logging
import math

from flask import Blueprint, current_app, jsonify, request

from ..auth_utils import requires_api_key
from ..errors import InvalidRequestError
from ..services.checkout_service import CheckoutService, LineItem
from ..shows.normalizer import round_price

logger = logging.getLogger(__name__)

bp = Blueprint('payments', __name__, url_prefix='/api/payments')


def _checkout_service():
    return CheckoutService.from_config(current_app.config)


def _line_items(shows):
    items = []
    for show in shows:
        if not isinstance(show, dict) or not show.get('showId'):
            raise InvalidRequestError("Each show needs a showId")
        try:
            price = float(show.get('price'))
            quantity = int(show.get('quantity', 1))
        except (TypeError, ValueError, OverflowError):
            raise InvalidRequestError(f"Invalid price or quantity for show {show.get('showId')}")
        if not math.isfinite(price):
            raise InvalidRequestError(f"Invalid price or quantity for show {show.get('showId')}")
        items.append(LineItem(
            name=f"Ticket: {show.get('title') or show['showId']}",
            description=f"Show ID: {show['showId']}",
            unit_price_minor=round_price(price * 100) if price > 0 else 0,
            quantity=quantity,
        ))
    return items


@bp.route('/stripe/create-checkout-session', methods=['POST'])
@requires_api_key
def create_checkout_session():
    data = request.get_json(silent=True) or {}
    shows = data.get('shows')
    user_id = data.get('userId')
    total_amount = data.get('totalAmount')
    if not shows or not isinstance(shows, list) or not user_id or not total_amount:
        raise InvalidRequestError("shows, userId, and totalAmount required")

    service = _checkout_service()
    session = service.create_checkout_session(
        _line_items(shows),
        metadata={
            'userId': str(user_id),
            'showIds': ','.join(str(show['showId']) for show in shows),
        },
    )
    logger.info(f"Checkout session {session.session_id} created for user {user_id} (totalAmount={total_amount})")

    return jsonify({
        'success': True,
        'checkoutUrl': session.url,
        'sessionId': session.session_id,
        'amount': session.amount,
        'currency': session.currency,
        'status': session.status,
    })


@bp.route('/stripe/session/<session_id>', methods=['GET'])
@requires_api_key
def get_session(session_id):
    details = _checkout_service().retrieve_session(session_id)
    payload = details.to_dict()
    payload['success'] = True
    return jsonify(payload)


@bp.route('/stripe/webhook', methods=['POST'])
def stripe_webhook():
    outcome = _checkout_service().handle_webhook(
        request.get_data(),
        request.headers.get('Stripe-Signature'),
    )
    return jsonify({'received': True, 'type': outcome.event_type, 'handled': outcome.handled})
