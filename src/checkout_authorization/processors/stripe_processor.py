"""
Stripe card processor integration.

MOCK PROCESSOR SYNC:
MockProcessor (mock_processor.py) mirrors this implementation for tests.
When changing status handling or decline mapping here, update the mock's
TEST_PAYMENT_METHODS to keep behavioural parity with Stripe's test
payment methods: https://docs.stripe.com/testing#cards
"""

import asyncio
from typing import Any

import stripe
import structlog
from stripe import (
    APIConnectionError,
    APIError,
    CardError,
    InvalidRequestError,
    RateLimitError,
)

from checkout_authorization.card_field import TokenizedCard
from checkout_authorization.clients.payment_client import intent_id_from_secret
from checkout_authorization.models import (
    ConfirmationStatus,
    ProcessorConfirmation,
    ProcessorUnavailable,
)
from checkout_authorization.processors.base import CardProcessor

logger = structlog.get_logger(__name__)


class StripeProcessor(CardProcessor):
    """
    Stripe processor implementation.

    Confirms the PaymentIntent created by the payment service, attaching the
    tokenized payment method and the verified email as receipt address.

    Reference:
    - https://docs.stripe.com/api/payment_intents/confirm
    """

    name = "stripe"

    def __init__(self, api_key: str) -> None:
        """
        Initialize Stripe processor.

        Args:
            api_key: Stripe secret API key (sk_test_... or sk_live_...)
        """
        self.api_key = api_key
        stripe.api_key = api_key
        stripe.max_network_retries = 0  # A failed confirm is never retried on the same intent

    async def confirm(
        self,
        client_secret: str,
        tokenized_card: TokenizedCard,
        billing_email: str | None = None,
    ) -> ProcessorConfirmation:
        """
        Confirm a PaymentIntent with Stripe.

        Returns:
            ProcessorConfirmation with SUCCEEDED or DECLINED status

        Raises:
            ProcessorUnavailable: For API, rate limit and connection errors
        """
        intent_id = intent_id_from_secret(client_secret)

        confirm_params: dict[str, Any] = {
            "payment_method": tokenized_card.token,
        }
        if billing_email:
            confirm_params["receipt_email"] = billing_email

        try:
            logger.info("stripe_confirm_starting", payment_intent_id=intent_id)

            # The SDK is synchronous; keep the event loop free while it runs
            payment_intent = await asyncio.to_thread(
                stripe.PaymentIntent.confirm,
                intent_id,
                **confirm_params,
            )

            if payment_intent.status == "succeeded":
                logger.info(
                    "stripe_confirm_succeeded",
                    payment_intent_id=payment_intent.id,
                    amount=payment_intent.amount,
                )
                return ProcessorConfirmation(
                    status=ConfirmationStatus.SUCCEEDED,
                    processor_name=self.name,
                    payment_intent_id=payment_intent.id,
                    processor_metadata={
                        "status": payment_intent.status,
                        "payment_method_id": payment_intent.payment_method,
                    },
                )

            # 3D Secure and other next actions cannot be completed in this flow
            if payment_intent.status == "requires_action":
                logger.warning(
                    "stripe_requires_action",
                    payment_intent_id=payment_intent.id,
                )
                return ProcessorConfirmation(
                    status=ConfirmationStatus.DECLINED,
                    processor_name=self.name,
                    payment_intent_id=payment_intent.id,
                    decline_code="requires_action",
                    decline_reason="Payment requires additional authentication",
                    processor_metadata={"status": payment_intent.status},
                )

            logger.error(
                "stripe_unexpected_status",
                payment_intent_id=payment_intent.id,
                status=payment_intent.status,
            )
            return ProcessorConfirmation(
                status=ConfirmationStatus.DECLINED,
                processor_name=self.name,
                payment_intent_id=payment_intent.id,
                decline_code="unexpected_status",
                decline_reason=f"Unexpected payment intent status: {payment_intent.status}",
                processor_metadata={"status": payment_intent.status},
            )

        except CardError as e:
            # Card declined - a normal business outcome, not a failure
            decline_code = None
            if getattr(e, "error", None) is not None:
                decline_code = getattr(e.error, "decline_code", None)
            if decline_code is None and e.json_body and "error" in e.json_body:
                decline_code = e.json_body["error"].get("decline_code")

            logger.info(
                "stripe_card_declined",
                payment_intent_id=intent_id,
                error_code=e.code,
                decline_code=decline_code,
            )
            return ProcessorConfirmation(
                status=ConfirmationStatus.DECLINED,
                processor_name=self.name,
                payment_intent_id=intent_id,
                decline_code=e.code or "card_declined",
                decline_reason=e.user_message or "Card was declined",
                processor_metadata={"decline_code": decline_code},
            )

        except InvalidRequestError as e:
            logger.error(
                "stripe_invalid_request",
                payment_intent_id=intent_id,
                error=str(e),
                param=e.param,
                code=e.code,
            )
            raise ProcessorUnavailable(f"Stripe invalid request: {e}") from e

        except RateLimitError as e:
            logger.warning("stripe_rate_limited", payment_intent_id=intent_id, error=str(e))
            raise ProcessorUnavailable(f"Stripe rate limit exceeded: {e}") from e

        except (APIError, APIConnectionError) as e:
            logger.warning(
                "stripe_api_error",
                payment_intent_id=intent_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise ProcessorUnavailable(f"Stripe API error: {e}") from e
