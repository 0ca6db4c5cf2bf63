"""HTTP clients for the verification and payment services."""

from checkout_authorization.clients.payment_client import (
    IntentCreated,
    PaymentServiceClient,
    intent_id_from_secret,
)
from checkout_authorization.clients.verification_client import (
    VerificationGatewayClient,
    VerifyResult,
)

__all__ = [
    "IntentCreated",
    "PaymentServiceClient",
    "VerificationGatewayClient",
    "VerifyResult",
    "intent_id_from_secret",
]
