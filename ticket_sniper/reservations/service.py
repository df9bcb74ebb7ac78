"""Reservation to checkout handoff.

Nothing is persisted. Each call validates against a freshly fetched catalog
snapshot, so two concurrent reservations against the same show can both pass
validation even when their combined quantity exceeds the listing count. There
is no backing store to lock against.
"""

import logging
import math
from typing import Optional

from ..errors import (
    ConfigurationError,
    InvalidQuantityError,
    InvalidRequestError,
    PriceUnavailableError,
    TicketSniperError,
)
from ..seatgeek.api import SeatGeekAPI
from ..services.checkout_service import CheckoutService, LineItem
from ..shows.models import Show
from ..shows.normalizer import PRICE_FROM_CALLER, ShowPolicy, normalize, round_price
from .ids import IdentityGenerator
from .models import ConfirmationResult, ReservationRequest, ReservationResult

logger = logging.getLogger(__name__)


class ReservationService:
    def __init__(self, api: SeatGeekAPI, checkout_service: Optional[CheckoutService],
                 policy: Optional[ShowPolicy] = None, id_generator: Optional[IdentityGenerator] = None,
                 checkout_failure_is_fatal: bool = False, success_url: Optional[str] = None,
                 cancel_url: Optional[str] = None):
        self.api = api
        self.checkout_service = checkout_service
        self.policy = policy or ShowPolicy()
        self.id_generator = id_generator or IdentityGenerator()
        self.checkout_failure_is_fatal = checkout_failure_is_fatal
        self.success_url = success_url
        self.cancel_url = cancel_url

    def resolve_unit_price(self, show: Show, asserted_price: Optional[float]) -> int:
        if self.policy.price_source == PRICE_FROM_CALLER:
            if (asserted_price is None or isinstance(asserted_price, bool)
                    or not math.isfinite(asserted_price) or round_price(asserted_price) <= 0):
                raise PriceUnavailableError(f"A positive ticket price is required for {show.title}")
            return round_price(asserted_price)
        if show.price <= 0:
            raise PriceUnavailableError(f"Pricing information not available for {show.title}")
        return show.price

    @staticmethod
    def validate_quantity(show: Show, quantity: int):
        if show.available_seats <= 0:
            raise InvalidQuantityError(f"No tickets available for {show.title}")
        if show.available_seats < quantity:
            raise InvalidQuantityError(f"Only {show.available_seats} tickets available")

    def _create_checkout(self, show: Show, request: ReservationRequest, unit_price: int,
                         reservation_id: str, seat_id: str):
        if self.checkout_service is None:
            raise ConfigurationError("STRIPE_SECRET_KEY not configured")

        metadata = {
            'eventId': show.id,
            'seatId': seat_id,
            'reservationId': reservation_id,
        }
        if request.buyer_id:
            metadata['userId'] = request.buyer_id

        return self.checkout_service.create_checkout_session(
            [LineItem(
                name=f"Ticket: {show.title}",
                description=f"Show ID: {show.id}",
                unit_price_minor=unit_price * 100,
                quantity=request.quantity,
            )],
            success_redirect=self.success_url,
            cancel_redirect=self.cancel_url,
            metadata=metadata,
        )

    def reserve(self, show_id: str, quantity: int = 1, asserted_price: Optional[float] = None,
                buyer_id: Optional[str] = None) -> ReservationResult:
        """
        Validate a reservation against the live listing and open a checkout session.

        Raises:
            InvalidRequestError: Empty show id.
            InvalidQuantityError: Non-positive quantity or not enough tickets.
            NotFoundError: SeatGeek has no such event.
            PriceUnavailableError: No usable unit price under the configured policy.
            UpstreamUnavailableError: The catalog lookup failed; also checkout
                failures when checkout_failure_is_fatal is set.
        """
        request = ReservationRequest(
            show_id=(show_id or '').strip(),
            quantity=quantity,
            asserted_price=asserted_price,
            buyer_id=buyer_id,
        )
        if not request.show_id:
            raise InvalidRequestError("A show id is required")
        if not isinstance(request.quantity, int) or isinstance(request.quantity, bool) or request.quantity <= 0:
            raise InvalidQuantityError("Quantity must be a positive integer")
        if self.checkout_service is None and self.checkout_failure_is_fatal:
            raise ConfigurationError("STRIPE_SECRET_KEY not configured")

        show = normalize(self.api.get_event(request.show_id), self.policy)
        self.validate_quantity(show, request.quantity)
        unit_price = self.resolve_unit_price(show, request.asserted_price)

        reservation_id = self.id_generator.reservation_id()
        seat_id = self.id_generator.seat_id(show.id)

        checkout = None
        checkout_error = None
        try:
            checkout = self._create_checkout(show, request, unit_price, reservation_id, seat_id)
        except TicketSniperError as e:
            if self.checkout_failure_is_fatal:
                logger.error(f"Reservation {reservation_id} failed at checkout: {e}")
                raise
            logger.warning(f"Checkout unavailable for reservation {reservation_id}: {e}")
            checkout_error = e.message

        result = ReservationResult(
            reservation_id=reservation_id,
            seat_id=seat_id,
            show_id=show.id,
            show_title=show.title,
            quantity=request.quantity,
            unit_price=unit_price,
            total_price=unit_price * request.quantity,
            checkout=checkout,
            checkout_error=checkout_error,
        )
        logger.info(f"Reservation {reservation_id} created for show {show.id}: "
                    f"quantity={result.quantity} total={result.total_price} "
                    f"checkout={'yes' if checkout else 'no'}")
        return result

    def confirm(self, reservation_id: str, session_id: str) -> ConfirmationResult:
        """Check payment status for a reservation's checkout session or payment intent."""
        if not reservation_id:
            raise InvalidRequestError("A reservation id is required")
        if not session_id:
            raise InvalidRequestError("A payment confirmation token is required")
        if self.checkout_service is None:
            raise ConfigurationError("STRIPE_SECRET_KEY not configured")

        verification = self.checkout_service.verify_payment(session_id)
        logger.info(f"Reservation {reservation_id} payment status: {verification.status}")
        return ConfirmationResult(
            reservation_id=reservation_id,
            session_id=verification.reference,
            status=verification.status,
            amount_total=verification.amount_total,
            currency=verification.currency,
        )
