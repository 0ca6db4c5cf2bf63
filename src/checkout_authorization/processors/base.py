"""Base interface for card processors."""

from abc import ABC, abstractmethod

from checkout_authorization.card_field import TokenizedCard
from checkout_authorization.models import ProcessorConfirmation


class CardProcessor(ABC):
    """
    Abstract base class for card processor integrations.

    A processor confirms an intent created by the payment service using the
    tokenized card produced by the card field. Raw card data never passes
    through this interface.
    """

    name = "base"

    @abstractmethod
    async def confirm(
        self,
        client_secret: str,
        tokenized_card: TokenizedCard,
        billing_email: str | None = None,
    ) -> ProcessorConfirmation:
        """
        Confirm a payment intent with the tokenized card.

        Args:
            client_secret: Client secret of the intent to confirm
            tokenized_card: Opaque payment method handle
            billing_email: Verified email used for billing details and receipts

        Returns:
            ProcessorConfirmation with either SUCCEEDED or DECLINED status.

        Raises:
            ProcessorUnavailable: API errors, rate limits, network failures.

        Note:
            Card declines are NOT exceptions - they return a confirmation
            with status=DECLINED and a decline_code.
        """
        pass
