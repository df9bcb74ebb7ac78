import os


def _flag(name, default='False'):
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    ENVIRONMENT = os.getenv('NODE_ENV', os.getenv('ENVIRONMENT', 'development'))
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    PORT = int(os.getenv('PORT', '3000'))

    # Inbound shared secret expected in the x-api-key header
    TICKET_API_KEY = os.getenv('TICKET_API_KEY')

    # SeatGeek catalog
    SEATGEEK_API_BASE = os.getenv('SEATGEEK_API_BASE', 'https://api.seatgeek.com/2')
    SEATGEEK_CLIENT_ID = os.getenv('SEATGEEK_CLIENT_ID')
    SEATGEEK_CLIENT_SECRET = os.getenv('SEATGEEK_CLIENT_SECRET')
    SEATGEEK_EVENT_TYPE = os.getenv('SEATGEEK_EVENT_TYPE')
    LISTING_TIMEOUT = float(os.getenv('LISTING_TIMEOUT', '10'))
    LOOKUP_TIMEOUT = float(os.getenv('LOOKUP_TIMEOUT', '5'))

    # Stripe
    STRIPE_SECRET_KEY = os.getenv('STRIPE_SECRET_KEY')
    STRIPE_WEBHOOK_SECRET = os.getenv('STRIPE_WEBHOOK_SECRET')
    CHECKOUT_CURRENCY = os.getenv('CHECKOUT_CURRENCY', 'usd')
    FRONTEND_URL = os.getenv('FRONTEND_URL')

    # Comma-separated browser origins; '*' reflects any origin
    ALLOWED_ORIGINS = os.getenv('ALLOWED_ORIGINS', '*')

    # Listing and reservation policy
    AVAILABILITY_POLICY = os.getenv('AVAILABILITY_POLICY', 'strict')
    VALIDITY_GATE = _flag('VALIDITY_GATE')
    PRICE_SOURCE = os.getenv('PRICE_SOURCE', 'upstream')
    DEFAULT_AVAILABLE_SEATS = int(os.getenv('DEFAULT_AVAILABLE_SEATS', '0'))
    CHECKOUT_FAILURE_IS_FATAL = _flag('CHECKOUT_FAILURE_IS_FATAL')
