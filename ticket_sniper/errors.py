"""Error taxonomy shared by the catalog client, reservations and checkout.

Every error carries a stable code, a user-safe message and the HTTP status the
Flask layer answers with. Upstream messages attached as ``detail`` must already
be free of credentials.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(Enum):
    """Domain error codes."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    PRICE_UNAVAILABLE = "PRICE_UNAVAILABLE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    INVALID_REQUEST = "INVALID_REQUEST"


class TicketSniperError(Exception):
    """Base error with code, message and suggested HTTP status."""

    code = ErrorCode.UPSTREAM_UNAVAILABLE
    title = "Internal error"
    status_code = 500

    def __init__(self, message: str, *, detail: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        result = {
            'success': False,
            'error': self.title,
            'code': self.code.value,
            'message': self.message,
        }
        if self.detail:
            result['detail'] = self.detail
        return result


class ConfigurationError(TicketSniperError):
    """A required credential or setting is missing on the server."""

    code = ErrorCode.CONFIGURATION_ERROR
    title = "Configuration Error"
    status_code = 500


class UnauthorizedError(TicketSniperError):
    """The caller did not present the shared API key."""

    code = ErrorCode.UNAUTHORIZED
    title = "Unauthorized"
    status_code = 401


class NotFoundError(TicketSniperError):
    code = ErrorCode.NOT_FOUND
    title = "Not Found"
    status_code = 404

    def __init__(self, message: str, *, resource_id: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.resource_id = resource_id


class InvalidQuantityError(TicketSniperError):
    """Requested quantity is non-positive or exceeds the available inventory."""

    code = ErrorCode.INVALID_QUANTITY
    title = "Invalid quantity"
    status_code = 400


class PriceUnavailableError(TicketSniperError):
    code = ErrorCode.PRICE_UNAVAILABLE
    title = "Price not available"
    status_code = 400


class InvalidSignatureError(TicketSniperError):
    """A webhook payload failed signature verification."""

    code = ErrorCode.INVALID_SIGNATURE
    title = "Webhook error"
    status_code = 400


class UpstreamUnavailableError(TicketSniperError):
    """Network failure, timeout or error status from SeatGeek or Stripe."""

    code = ErrorCode.UPSTREAM_UNAVAILABLE
    title = "Upstream unavailable"
    status_code = 502


class InvalidRequestError(TicketSniperError):
    code = ErrorCode.INVALID_REQUEST
    title = "Invalid request"
    status_code = 400
