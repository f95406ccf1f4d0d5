"""
API dependencies - payment service wiring.
"""
from application.services.payment_service import PaymentService
from infrastructure.external.payments import get_payment_provider


async def get_payment_service(provider: str) -> PaymentService:
    """Resolve the registered provider named in the path and wrap it in the service."""
    return PaymentService(provider=get_payment_provider(provider))
