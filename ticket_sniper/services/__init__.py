from .checkout_service import CheckoutService, CheckoutSession, LineItem

__all__ = ['CheckoutService', 'CheckoutSession', 'LineItem']
