from .ids import IdentityGenerator
from .models import ConfirmationResult, ReservationRequest, ReservationResult
from .service import ReservationService

__all__ = [
    'IdentityGenerator',
    'ConfirmationResult',
    'ReservationRequest',
    'ReservationResult',
    'ReservationService',
]
