"""
Mock card processor for local development and tests.

Mirrors StripeProcessor (stripe_processor.py) using Stripe's test payment
method ids instead of API calls. Keep TEST_PAYMENT_METHODS aligned with
https://docs.stripe.com/testing#cards when Stripe behaviour changes.
"""

import asyncio
import uuid
from typing import Any

import structlog

from checkout_authorization.card_field import TokenizedCard
from checkout_authorization.clients.payment_client import intent_id_from_secret
from checkout_authorization.models import (
    ConfirmationStatus,
    ProcessorConfirmation,
    ProcessorUnavailable,
)
from checkout_authorization.processors.base import CardProcessor

logger = structlog.get_logger(__name__)

# SYNC POINT: decline codes match Stripe CardError codes handled in stripe_processor.py
TEST_PAYMENT_METHODS: dict[str, dict[str, Any]] = {
    "pm_card_visa": {"type": "success"},
    "pm_card_mastercard": {"type": "success"},
    "pm_card_chargeDeclined": {
        "type": "decline",
        "code": "card_declined",
        "decline_code": "generic_decline",
        "reason": "Your card was declined.",
    },
    "pm_card_chargeDeclinedInsufficientFunds": {
        "type": "decline",
        "code": "card_declined",
        "decline_code": "insufficient_funds",
        "reason": "Your card has insufficient funds.",
    },
    "pm_card_chargeDeclinedExpiredCard": {
        "type": "decline",
        "code": "expired_card",
        "decline_code": "expired_card",
        "reason": "Your card has expired.",
    },
    "pm_card_chargeDeclinedIncorrectCvc": {
        "type": "decline",
        "code": "incorrect_cvc",
        "decline_code": "incorrect_cvc",
        "reason": "Your card's security code is incorrect.",
    },
    "pm_card_authenticationRequired": {"type": "requires_action"},
    # Not a Stripe id: simulates an API outage
    "pm_card_processorUnavailable": {"type": "unavailable"},
}


class MockProcessor(CardProcessor):
    """
    Mock processor for testing.

    Args:
        default_response: Behaviour for unknown payment methods ("succeeded" or "declined")
        latency_ms: Simulated processing latency in milliseconds
        payment_methods: Override of TEST_PAYMENT_METHODS
    """

    name = "mock"

    def __init__(
        self,
        default_response: str = "succeeded",
        latency_ms: int = 0,
        payment_methods: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self.default_response = default_response
        self.latency_ms = latency_ms
        self.payment_methods = payment_methods or TEST_PAYMENT_METHODS
        self.confirmed_intents: list[str] = []

        logger.info(
            "mock_processor_initialized",
            default_response=self.default_response,
            latency_ms=self.latency_ms,
        )

    async def confirm(
        self,
        client_secret: str,
        tokenized_card: TokenizedCard,
        billing_email: str | None = None,
    ) -> ProcessorConfirmation:
        """Confirm using test payment method lookup instead of an API call."""
        intent_id = intent_id_from_secret(client_secret) or f"pi_mock_{uuid.uuid4().hex[:16]}"

        if self.latency_ms > 0:
            await asyncio.sleep(self.latency_ms / 1000)

        behavior = self.payment_methods.get(tokenized_card.token)
        if behavior is None:
            behavior = (
                {"type": "success"}
                if self.default_response == "succeeded"
                else {
                    "type": "decline",
                    "code": "card_declined",
                    "decline_code": "generic_decline",
                    "reason": "Your card was declined.",
                }
            )

        logger.info(
            "mock_confirm_starting",
            payment_intent_id=intent_id,
            behavior=behavior["type"],
        )

        if behavior["type"] == "unavailable":
            raise ProcessorUnavailable("Mock processor unavailable")

        self.confirmed_intents.append(intent_id)

        if behavior["type"] == "success":
            return ProcessorConfirmation(
                status=ConfirmationStatus.SUCCEEDED,
                processor_name=self.name,
                payment_intent_id=intent_id,
                processor_metadata={
                    "status": "succeeded",
                    "payment_method_id": tokenized_card.token,
                    "mock": True,
                },
            )

        if behavior["type"] == "requires_action":
            return ProcessorConfirmation(
                status=ConfirmationStatus.DECLINED,
                processor_name=self.name,
                payment_intent_id=intent_id,
                decline_code="requires_action",
                decline_reason="Payment requires additional authentication",
                processor_metadata={"status": "requires_action", "mock": True},
            )

        return ProcessorConfirmation(
            status=ConfirmationStatus.DECLINED,
            processor_name=self.name,
            payment_intent_id=intent_id,
            decline_code=behavior["code"],
            decline_reason=behavior["reason"],
            processor_metadata={"decline_code": behavior["decline_code"], "mock": True},
        )
