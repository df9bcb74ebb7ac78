"""Pytest configuration and shared fixtures."""

import hashlib
import hmac
import threading
import time

import pytest

from ticket_sniper.app import create_app
from ticket_sniper.config import Config
from ticket_sniper.errors import NotFoundError, UpstreamUnavailableError
from ticket_sniper.seatgeek.models import CatalogEntry

API_KEY = 'test-api-key'
WEBHOOK_SECRET = 'whsec_test_secret'


def make_event(event_id, title='Jazz Night', lowest_price=25, listing_count=10, **extra):
    """Build a SeatGeek event payload; pass stats=None to drop the stats block."""
    event = {
        'id': event_id,
        'title': title,
        'short_title': title,
        'type': 'concert',
        'datetime_local': '2025-10-05T19:30:00',
        'url': f'https://seatgeek.com/e/{event_id}',
        'venue': {'name': 'Blue Note', 'city': 'New York', 'state': 'NY'},
        'performers': [
            {'name': 'The Trio', 'image': 'https://img.example/trio.jpg', 'primary': True},
        ],
        'stats': {'lowest_price': lowest_price, 'listing_count': listing_count},
    }
    event.update(extra)
    return event


def sign_payload(payload, secret=WEBHOOK_SECRET, timestamp=None):
    """Stripe-Signature header for a payload, using Stripe's v1 HMAC scheme."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode()
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


class FakeSeatGeekAPI:
    """In-memory stand-in for SeatGeekAPI."""

    def __init__(self, city_events=None, general_events=None, events_by_id=None,
                 city_error=None, general_error=None, lookup_error=None):
        self.city_events = [CatalogEntry.from_dict(e) for e in (city_events or [])]
        self.general_events = [CatalogEntry.from_dict(e) for e in (general_events or [])]
        self.events_by_id = {str(k): v for k, v in (events_by_id or {}).items()}
        self.city_error = city_error
        self.general_error = general_error
        self.lookup_error = lookup_error
        self.calls = []
        self._lock = threading.Lock()

    def search_events(self, city=None, per_page=100, upcoming_only=None):
        with self._lock:
            self.calls.append(('search', city, per_page))
        if city:
            if self.city_error:
                raise self.city_error
            return list(self.city_events)
        if self.general_error:
            raise self.general_error
        return list(self.general_events)

    def get_event(self, event_id):
        with self._lock:
            self.calls.append(('get', str(event_id)))
        if self.lookup_error:
            raise self.lookup_error
        event = self.events_by_id.get(str(event_id))
        if event is None:
            raise NotFoundError(f"No event found with ID: {event_id}", resource_id=str(event_id))
        return CatalogEntry.from_dict(event)


class SniperTestConfig(Config):
    ENVIRONMENT = 'test'
    TICKET_API_KEY = API_KEY
    SEATGEEK_CLIENT_ID = 'sg-client-id'
    SEATGEEK_CLIENT_SECRET = None
    STRIPE_SECRET_KEY = 'sk_test_123'
    STRIPE_WEBHOOK_SECRET = WEBHOOK_SECRET
    FRONTEND_URL = None
    AVAILABILITY_POLICY = 'strict'
    VALIDITY_GATE = False
    PRICE_SOURCE = 'upstream'
    DEFAULT_AVAILABLE_SEATS = 0
    CHECKOUT_FAILURE_IS_FATAL = False


@pytest.fixture
def jazz_night():
    return make_event(42, title='Jazz Night', lowest_price=25, listing_count=10)


@pytest.fixture
def upstream_down():
    return UpstreamUnavailableError("SeatGeek request to /events failed")


@pytest.fixture
def app():
    return create_app(SniperTestConfig)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers():
    return {'x-api-key': API_KEY}
