"""
Card processor integrations.

- base.CardProcessor: interface every processor implements
- stripe_processor.StripeProcessor: Stripe PaymentIntent confirmation
- mock_processor.MockProcessor: mirrors Stripe using test payment methods
- factory: configuration-based processor selection
"""

from checkout_authorization.processors.base import CardProcessor
from checkout_authorization.processors.factory import ProcessorFactory, get_processor
from checkout_authorization.processors.mock_processor import MockProcessor
from checkout_authorization.processors.stripe_processor import StripeProcessor

__all__ = [
    "CardProcessor",
    "MockProcessor",
    "ProcessorFactory",
    "StripeProcessor",
    "get_processor",
]
