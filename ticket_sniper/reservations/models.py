from dataclasses import dataclass
from typing import Dict, Optional

from ..services.checkout_service import CheckoutSession


@dataclass
class ReservationRequest:
    show_id: str
    quantity: int = 1
    asserted_price: Optional[float] = None
    buyer_id: Optional[str] = None


@dataclass
class ReservationResult:
    reservation_id: str
    seat_id: str
    show_id: str
    show_title: str
    quantity: int
    unit_price: int
    total_price: int
    checkout: Optional[CheckoutSession] = None
    checkout_error: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'success': True,
            'reservationId': self.reservation_id,
            'eventId': self.show_id,
            'eventTitle': self.show_title,
            'quantity': self.quantity,
            'unitPrice': self.unit_price,
            'estimatedPrice': self.total_price,
            'checkoutUrl': self.checkout.url if self.checkout else None,
            'sessionId': self.checkout.session_id if self.checkout else None,
            'seatId': self.seat_id,
            'message': 'Redirecting to Stripe' if self.checkout else 'Reservation created; checkout unavailable',
        }


@dataclass
class ConfirmationResult:
    reservation_id: str
    session_id: str
    status: str
    amount_total: Optional[int] = None
    currency: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'success': True,
            'reservationId': self.reservation_id,
            'sessionId': self.session_id,
            'status': self.status,
            'amount': self.amount_total / 100 if self.amount_total is not None else None,
            'currency': self.currency,
        }
