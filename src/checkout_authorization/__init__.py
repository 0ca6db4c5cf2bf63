"""Email-verified payment authorization flow."""

from checkout_authorization.card_field import (
    CardFieldAdapter,
    TokenizationCapability,
    TokenizedCard,
)
from checkout_authorization.handlers.checkout import build_clients, open_checkout
from checkout_authorization.state_machine import AuthorizationStateMachine, SessionView

__version__ = "0.1.0"

__all__ = [
    "AuthorizationStateMachine",
    "CardFieldAdapter",
    "SessionView",
    "TokenizationCapability",
    "TokenizedCard",
    "build_clients",
    "open_checkout",
]
