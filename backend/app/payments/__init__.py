from app.payments.processor import CheckoutSession, build_payment_processor
from app.payments.webhooks import handle_event

__all__ = ["CheckoutSession", "build_payment_processor", "handle_event"]
