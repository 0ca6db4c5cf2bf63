"""Domain models for the checkout authorization flow."""

from checkout_authorization.models.confirmation import (
    ConfirmationStatus,
    ProcessorConfirmation,
)
from checkout_authorization.models.events import (
    BrandChosen,
    CardFieldChange,
    CardFieldChanged,
    CheckoutEvent,
    CodeSubmitted,
    ContinuePressed,
    EmailSubmitted,
    ResendRequested,
)
from checkout_authorization.models.exceptions import (
    CheckoutError,
    CheckoutUnavailable,
    GatewayError,
    IntentCreationFailed,
    InvalidEmail,
    LedgerConfirmationFailed,
    PaymentDeclined,
    ProcessorError,
    ProcessorUnavailable,
    ProtocolError,
    RateLimited,
    ServiceError,
    ValidationError,
)
from checkout_authorization.models.session import (
    AuthorizationSession,
    CardBrand,
    CardState,
    DetectedBrand,
    PaymentDetails,
    PaymentItem,
    Phase,
    to_cents,
)

__all__ = [
    "AuthorizationSession",
    "BrandChosen",
    "CardBrand",
    "CardFieldChange",
    "CardFieldChanged",
    "CardState",
    "CheckoutError",
    "CheckoutEvent",
    "CheckoutUnavailable",
    "CodeSubmitted",
    "ConfirmationStatus",
    "ContinuePressed",
    "DetectedBrand",
    "EmailSubmitted",
    "GatewayError",
    "IntentCreationFailed",
    "InvalidEmail",
    "LedgerConfirmationFailed",
    "PaymentDeclined",
    "PaymentDetails",
    "PaymentItem",
    "Phase",
    "ProcessorConfirmation",
    "ProcessorError",
    "ProcessorUnavailable",
    "ProtocolError",
    "RateLimited",
    "ResendRequested",
    "ServiceError",
    "ValidationError",
    "to_cents",
]
