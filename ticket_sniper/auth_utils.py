from functools import wraps
import hmac

from flask import current_app, request

from .errors import ConfigurationError, UnauthorizedError


def check_api_key(api_key):
    """Compare the caller's key with TICKET_API_KEY; an unset key is a server error."""
    expected = current_app.config.get('TICKET_API_KEY')
    if not expected:
        raise ConfigurationError("TICKET_API_KEY not configured")
    if not api_key or not hmac.compare_digest(api_key.encode(), expected.encode()):
        raise UnauthorizedError("Invalid API key")


def requires_api_key(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        check_api_key(request.headers.get('x-api-key'))
        return f(*args, **kwargs)
    return decorated
