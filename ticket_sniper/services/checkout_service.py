from dataclasses import dataclass, field
import logging
from typing import Any, Dict, List, Optional

import stripe

from ..errors import (
    ConfigurationError,
    InvalidRequestError,
    InvalidSignatureError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)
payments_logger = logging.getLogger('ticket_sniper.payments')

PENDING = 'pending'
SUCCEEDED = 'succeeded'
FAILED = 'failed'

SESSION_COMPLETED = 'checkout.session.completed'
SESSION_EXPIRED = 'checkout.session.expired'

DEFAULT_SUCCESS_URL = 'myapp://payment-success'
DEFAULT_CANCEL_URL = 'myapp://payment-cancelled'


@dataclass
class LineItem:
    description: str
    unit_price_minor: int
    quantity: int
    name: Optional[str] = None


@dataclass
class CheckoutSession:
    url: str
    session_id: str
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    status: Optional[str] = None

    @property
    def amount(self) -> Optional[float]:
        return self.amount_total / 100 if self.amount_total is not None else None


@dataclass
class SessionDetails:
    session_id: str
    status: Optional[str]
    payment_status: Optional[str]
    amount_total: Optional[int]
    currency: Optional[str]
    metadata: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return {
            'sessionId': self.session_id,
            'status': self.status,
            'amount': self.amount_total / 100 if self.amount_total is not None else None,
            'currency': self.currency,
            'paymentStatus': self.payment_status,
            'metadata': self.metadata,
        }


@dataclass
class PaymentVerification:
    reference: str
    status: str
    amount_total: Optional[int] = None
    currency: Optional[str] = None


@dataclass
class WebhookOutcome:
    event_id: Optional[str]
    event_type: str
    handled: bool


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from a Stripe object or a plain dict."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    try:
        value = obj[name]
    except (KeyError, TypeError, AttributeError):
        value = getattr(obj, name, default)
    return default if value is None else value


def _metadata(obj: Any) -> Dict[str, str]:
    raw = _field(obj, 'metadata') or {}
    if hasattr(raw, 'to_dict'):
        raw = raw.to_dict()
    try:
        return {str(k): str(v) for k, v in dict(raw).items()}
    except (TypeError, ValueError):
        return {}


class CheckoutService:
    """Stripe Checkout session creation, payment verification and webhook intake."""

    def __init__(self, secret_key: str, webhook_secret: Optional[str] = None, currency: str = 'usd',
                 success_url: Optional[str] = None, cancel_url: Optional[str] = None,
                 stripe_client=stripe):
        if not secret_key:
            raise ConfigurationError("STRIPE_SECRET_KEY not configured")
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = (currency or 'usd').lower()
        self.success_url = success_url or DEFAULT_SUCCESS_URL
        self.cancel_url = cancel_url or DEFAULT_CANCEL_URL
        self._stripe = stripe_client

    @classmethod
    def from_config(cls, config, stripe_client=stripe) -> 'CheckoutService':
        frontend_url = config.get('FRONTEND_URL')
        return cls(
            secret_key=config.get('STRIPE_SECRET_KEY'),
            webhook_secret=config.get('STRIPE_WEBHOOK_SECRET'),
            currency=config.get('CHECKOUT_CURRENCY', 'usd'),
            success_url=frontend_url,
            cancel_url=frontend_url,
            stripe_client=stripe_client,
        )

    def _validate_line_items(self, line_items: List[LineItem]):
        if not line_items:
            raise InvalidRequestError("At least one line item is required")
        for item in line_items:
            if not isinstance(item.quantity, int) or isinstance(item.quantity, bool) or item.quantity <= 0:
                raise InvalidRequestError(f"Invalid quantity for {item.description!r}")
            if not isinstance(item.unit_price_minor, int) or item.unit_price_minor <= 0:
                raise InvalidRequestError(f"Invalid unit price for {item.description!r}")

    def _stripe_line_item(self, item: LineItem) -> Dict:
        product_data = {'name': item.name or item.description}
        if item.name and item.description:
            product_data['description'] = item.description
        return {
            'price_data': {
                'currency': self.currency,
                'product_data': product_data,
                'unit_amount': item.unit_price_minor,
            },
            'quantity': item.quantity,
        }

    def create_checkout_session(self, line_items: List[LineItem], success_redirect: Optional[str] = None,
                                cancel_redirect: Optional[str] = None,
                                metadata: Optional[Dict[str, str]] = None) -> CheckoutSession:
        """
        Create a hosted Stripe Checkout session in payment mode.

        Raises:
            InvalidRequestError: Empty or malformed line items, or Stripe rejected the request.
            UpstreamUnavailableError: Stripe could not be reached or failed.
        """
        self._validate_line_items(line_items)

        success_url = success_redirect or self.success_url
        if '{CHECKOUT_SESSION_ID}' not in success_url:
            separator = '&' if '?' in success_url else '?'
            success_url = f"{success_url}{separator}session_id={{CHECKOUT_SESSION_ID}}"

        try:
            session = self._stripe.checkout.Session.create(
                api_key=self.secret_key,
                payment_method_types=['card'],
                mode='payment',
                line_items=[self._stripe_line_item(item) for item in line_items],
                success_url=success_url,
                cancel_url=cancel_redirect or self.cancel_url,
                metadata={str(k): str(v) for k, v in (metadata or {}).items()},
            )
        except stripe.InvalidRequestError as e:
            logger.error(f"Checkout session rejected by Stripe: {e.user_message or e}")
            raise InvalidRequestError(f"Stripe rejected the checkout request: {e.user_message or e}") from e
        except stripe.StripeError as e:
            logger.error(f"Checkout session creation failed: {e.user_message or e}")
            raise UpstreamUnavailableError("Stripe checkout session creation failed",
                                           detail={'error': str(e.user_message or e)}) from e

        url = _field(session, 'url')
        if not url:
            raise UpstreamUnavailableError("Stripe returned a checkout session without a URL")

        result = CheckoutSession(
            url=url,
            session_id=_field(session, 'id'),
            amount_total=_field(session, 'amount_total'),
            currency=_field(session, 'currency', self.currency),
            status=_field(session, 'status'),
        )
        payments_logger.info(f"Checkout session created: session_id={result.session_id} "
                             f"amount_total={result.amount_total} metadata={metadata or {}}")
        return result

    def retrieve_session(self, session_id: str) -> SessionDetails:
        if not session_id:
            raise InvalidRequestError("A checkout session id is required")
        try:
            session = self._stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key)
        except stripe.InvalidRequestError as e:
            raise InvalidRequestError(f"Unknown checkout session: {session_id}") from e
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve session {session_id}: {e.user_message or e}")
            raise UpstreamUnavailableError("Stripe session retrieval failed",
                                           detail={'error': str(e.user_message or e)}) from e

        details = SessionDetails(
            session_id=_field(session, 'id', session_id),
            status=_field(session, 'status'),
            payment_status=_field(session, 'payment_status'),
            amount_total=_field(session, 'amount_total'),
            currency=_field(session, 'currency'),
            metadata=_metadata(session),
        )
        payments_logger.info(f"Session retrieved: session_id={details.session_id} status={details.status}")
        return details

    def _retrieve_payment_intent(self, intent_id: str):
        try:
            return self._stripe.PaymentIntent.retrieve(intent_id, api_key=self.secret_key)
        except stripe.InvalidRequestError as e:
            raise InvalidRequestError(f"Unknown payment intent: {intent_id}") from e
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve payment intent {intent_id}: {e.user_message or e}")
            raise UpstreamUnavailableError("Stripe payment intent retrieval failed",
                                           detail={'error': str(e.user_message or e)}) from e

    def verify_payment(self, session_or_intent_id: str) -> PaymentVerification:
        """Map a checkout session or payment intent to pending, succeeded or failed."""
        if not session_or_intent_id:
            raise InvalidRequestError("A session or payment intent id is required")

        if session_or_intent_id.startswith('pi_'):
            intent = self._retrieve_payment_intent(session_or_intent_id)
            intent_status = _field(intent, 'status')
            if intent_status == 'succeeded':
                status = SUCCEEDED
            elif intent_status == 'canceled' or _field(intent, 'last_payment_error'):
                status = FAILED
            else:
                status = PENDING
            return PaymentVerification(
                reference=session_or_intent_id,
                status=status,
                amount_total=_field(intent, 'amount'),
                currency=_field(intent, 'currency'),
            )

        details = self.retrieve_session(session_or_intent_id)
        if details.payment_status in ('paid', 'no_payment_required'):
            status = SUCCEEDED
        elif details.status == 'expired':
            status = FAILED
        else:
            status = PENDING
        return PaymentVerification(
            reference=details.session_id,
            status=status,
            amount_total=details.amount_total,
            currency=details.currency,
        )

    def construct_event(self, payload: bytes, signature: Optional[str]):
        """Verify a webhook payload against the shared secret."""
        if not self.webhook_secret:
            logger.error("Webhook secret not configured")
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET not configured")
        if not signature:
            raise InvalidSignatureError("Missing Stripe-Signature header")
        try:
            return self._stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Webhook signature verification failed: {e}")
            raise InvalidSignatureError("Webhook signature verification failed") from e
        except ValueError as e:
            logger.warning(f"Webhook payload could not be parsed: {e}")
            raise InvalidSignatureError("Webhook payload could not be parsed") from e

    def handle_webhook(self, payload: bytes, signature: Optional[str]) -> WebhookOutcome:
        event = self.construct_event(payload, signature)
        event_type = _field(event, 'type', 'unknown')
        event_id = _field(event, 'id')
        session = _field(_field(event, 'data'), 'object')

        if event_type == SESSION_COMPLETED:
            self.on_session_completed(session)
        elif event_type == SESSION_EXPIRED:
            self.on_session_expired(session)
        else:
            logger.info(f"Ignoring webhook event {event_type} ({event_id})")
            return WebhookOutcome(event_id=event_id, event_type=event_type, handled=False)
        return WebhookOutcome(event_id=event_id, event_type=event_type, handled=True)

    def on_session_completed(self, session):
        metadata = _metadata(session)
        payments_logger.info(
            f"Payment completed: session_id={_field(session, 'id')} "
            f"user_id={metadata.get('userId')} show_ids={metadata.get('showIds') or metadata.get('eventId')} "
            f"reservation_id={metadata.get('reservationId')}"
        )

    def on_session_expired(self, session):
        metadata = _metadata(session)
        payments_logger.info(
            f"Payment expired: session_id={_field(session, 'id')} user_id={metadata.get('userId')} "
            f"reservation_id={metadata.get('reservationId')}"
        )
