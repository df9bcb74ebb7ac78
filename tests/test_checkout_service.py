"""Tests for the Stripe checkout bridge.

Session creation and retrieval run against a mocked SDK; webhook tests sign
payloads with a real HMAC so the stripe library performs verification.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
import stripe

from ticket_sniper.errors import (
    ConfigurationError,
    InvalidRequestError,
    InvalidSignatureError,
    UpstreamUnavailableError,
)
from ticket_sniper.services.checkout_service import CheckoutService, LineItem
from tests.conftest import WEBHOOK_SECRET, sign_payload


@pytest.fixture
def stripe_client():
    client = MagicMock()
    client.checkout.Session.create.return_value = {
        'id': 'cs_test_1',
        'url': 'https://checkout.stripe.com/c/pay/cs_test_1',
        'amount_total': 5000,
        'currency': 'usd',
        'status': 'open',
    }
    return client


@pytest.fixture
def service(stripe_client):
    return CheckoutService('sk_test_123', webhook_secret=WEBHOOK_SECRET, stripe_client=stripe_client)


@pytest.fixture
def line_items():
    return [LineItem(name='Ticket: Jazz Night', description='Show ID: 42', unit_price_minor=2500, quantity=2)]


def webhook_payload(event_type, session_id='cs_test_1', metadata=None):
    return json.dumps({
        'id': 'evt_test_1',
        'object': 'event',
        'type': event_type,
        'data': {'object': {
            'id': session_id,
            'object': 'checkout.session',
            'metadata': metadata or {'userId': 'user-7', 'reservationId': 'RES-1'},
        }},
    })


class TestCreateCheckoutSession:
    def test_creates_payment_session(self, service, stripe_client, line_items):
        session = service.create_checkout_session(line_items, metadata={'reservationId': 'RES-1'})

        assert session.url == 'https://checkout.stripe.com/c/pay/cs_test_1'
        assert session.session_id == 'cs_test_1'
        assert session.amount == 50

        kwargs = stripe_client.checkout.Session.create.call_args.kwargs
        assert kwargs['api_key'] == 'sk_test_123'
        assert kwargs['mode'] == 'payment'
        assert kwargs['metadata'] == {'reservationId': 'RES-1'}
        assert kwargs['success_url'] == 'myapp://payment-success?session_id={CHECKOUT_SESSION_ID}'
        assert kwargs['cancel_url'] == 'myapp://payment-cancelled'
        assert kwargs['line_items'] == [{
            'price_data': {
                'currency': 'usd',
                'product_data': {'name': 'Ticket: Jazz Night', 'description': 'Show ID: 42'},
                'unit_amount': 2500,
            },
            'quantity': 2,
        }]

    def test_explicit_redirects(self, service, stripe_client, line_items):
        service.create_checkout_session(line_items, success_redirect='https://app.example/done?x=1',
                                        cancel_redirect='https://app.example/cancel')
        kwargs = stripe_client.checkout.Session.create.call_args.kwargs
        assert kwargs['success_url'] == 'https://app.example/done?x=1&session_id={CHECKOUT_SESSION_ID}'
        assert kwargs['cancel_url'] == 'https://app.example/cancel'

    @pytest.mark.parametrize('items', [
        [],
        [LineItem(description='x', unit_price_minor=0, quantity=1)],
        [LineItem(description='x', unit_price_minor=100, quantity=0)],
    ])
    def test_invalid_line_items_rejected_before_stripe(self, service, stripe_client, items):
        with pytest.raises(InvalidRequestError):
            service.create_checkout_session(items)
        stripe_client.checkout.Session.create.assert_not_called()

    def test_stripe_connection_error_is_upstream_unavailable(self, service, stripe_client, line_items):
        stripe_client.checkout.Session.create.side_effect = stripe.APIConnectionError('network down')
        with pytest.raises(UpstreamUnavailableError):
            service.create_checkout_session(line_items)

    def test_stripe_invalid_request_is_invalid_request(self, service, stripe_client, line_items):
        stripe_client.checkout.Session.create.side_effect = stripe.InvalidRequestError('bad currency', 'currency')
        with pytest.raises(InvalidRequestError):
            service.create_checkout_session(line_items)

    def test_session_without_url_is_upstream_unavailable(self, service, stripe_client, line_items):
        stripe_client.checkout.Session.create.return_value = {'id': 'cs_test_2', 'url': None}
        with pytest.raises(UpstreamUnavailableError):
            service.create_checkout_session(line_items)

    def test_missing_secret_key(self):
        with pytest.raises(ConfigurationError):
            CheckoutService(None)


class TestVerifyPayment:
    @pytest.mark.parametrize('session_fields, expected', [
        ({'status': 'complete', 'payment_status': 'paid'}, 'succeeded'),
        ({'status': 'open', 'payment_status': 'unpaid'}, 'pending'),
        ({'status': 'expired', 'payment_status': 'unpaid'}, 'failed'),
    ])
    def test_checkout_session_status(self, service, stripe_client, session_fields, expected):
        stripe_client.checkout.Session.retrieve.return_value = dict(
            id='cs_test_1', amount_total=5000, currency='usd', metadata={}, **session_fields)

        verification = service.verify_payment('cs_test_1')

        assert verification.status == expected
        assert verification.amount_total == 5000
        stripe_client.checkout.Session.retrieve.assert_called_once_with('cs_test_1', api_key='sk_test_123')

    @pytest.mark.parametrize('intent_fields, expected', [
        ({'status': 'succeeded'}, 'succeeded'),
        ({'status': 'processing'}, 'pending'),
        ({'status': 'canceled'}, 'failed'),
        ({'status': 'requires_payment_method', 'last_payment_error': {'code': 'card_declined'}}, 'failed'),
    ])
    def test_payment_intent_status(self, service, stripe_client, intent_fields, expected):
        stripe_client.PaymentIntent.retrieve.return_value = dict(id='pi_1', amount=5000, currency='usd',
                                                                 **intent_fields)
        assert service.verify_payment('pi_1').status == expected

    def test_retrieval_failure(self, service, stripe_client):
        stripe_client.checkout.Session.retrieve.side_effect = stripe.APIConnectionError('down')
        with pytest.raises(UpstreamUnavailableError):
            service.verify_payment('cs_test_1')


class TestWebhook:
    @pytest.fixture
    def webhook_service(self):
        return CheckoutService('sk_test_123', webhook_secret=WEBHOOK_SECRET, stripe_client=stripe)

    def test_completed_session_dispatched(self, webhook_service):
        payload = webhook_payload('checkout.session.completed')

        with patch.object(webhook_service, 'on_session_completed') as completed:
            outcome = webhook_service.handle_webhook(payload.encode(), sign_payload(payload))

        assert outcome.handled is True
        assert outcome.event_type == 'checkout.session.completed'
        assert completed.call_count == 1

    def test_expired_session_dispatched(self, webhook_service):
        payload = webhook_payload('checkout.session.expired')

        with patch.object(webhook_service, 'on_session_expired') as expired:
            outcome = webhook_service.handle_webhook(payload.encode(), sign_payload(payload))

        assert outcome.handled is True
        assert expired.call_count == 1

    def test_completed_handler_logs_metadata(self, webhook_service, caplog):
        payload = webhook_payload('checkout.session.completed')
        with caplog.at_level('INFO', logger='ticket_sniper.payments'):
            webhook_service.handle_webhook(payload.encode(), sign_payload(payload))
        assert 'Payment completed' in caplog.text
        assert 'RES-1' in caplog.text

    def test_other_event_kinds_acknowledged(self, webhook_service):
        payload = webhook_payload('payment_intent.created')
        outcome = webhook_service.handle_webhook(payload.encode(), sign_payload(payload))
        assert outcome.handled is False

    def test_invalid_signature_rejected_before_dispatch(self, webhook_service):
        payload = webhook_payload('checkout.session.completed')
        bad_signature = sign_payload(payload, secret='whsec_wrong')

        with patch.object(webhook_service, 'on_session_completed') as completed, \
                patch.object(webhook_service, 'on_session_expired') as expired:
            with pytest.raises(InvalidSignatureError):
                webhook_service.handle_webhook(payload.encode(), bad_signature)

        completed.assert_not_called()
        expired.assert_not_called()

    def test_missing_signature_rejected(self, webhook_service):
        with pytest.raises(InvalidSignatureError):
            webhook_service.handle_webhook(webhook_payload('checkout.session.completed').encode(), None)

    def test_tampered_payload_rejected(self, webhook_service):
        payload = webhook_payload('checkout.session.completed')
        signature = sign_payload(payload)
        tampered = payload.replace('user-7', 'user-8')
        with pytest.raises(InvalidSignatureError):
            webhook_service.handle_webhook(tampered.encode(), signature)

    def test_missing_webhook_secret_is_configuration_error(self):
        service = CheckoutService('sk_test_123', webhook_secret=None, stripe_client=stripe)
        payload = webhook_payload('checkout.session.completed')
        with pytest.raises(ConfigurationError):
            service.handle_webhook(payload.encode(), sign_payload(payload))
