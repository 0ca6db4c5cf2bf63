"""
Card field adapter.

Wraps the external card-tokenization capability (for example Stripe
Elements running in the browser). The capability owns the raw card data; this
package only ever sees change notifications and an opaque tokenized handle.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from checkout_authorization.models import CardFieldChange, CardState, DetectedBrand

logger = structlog.get_logger(__name__)

ChangeListener = Callable[[CardFieldChange], None]


@dataclass(frozen=True)
class TokenizedCard:
    """
    Opaque handle for a tokenized card.

    ``token`` is whatever the processor accepts as a payment method
    (``pm_...`` for Stripe).
    """

    token: str
    brand: DetectedBrand = DetectedBrand.UNKNOWN


class TokenizationCapability(ABC):
    """Interface of the external card-tokenization capability."""

    @abstractmethod
    async def tokenize(self, billing_email: str | None = None) -> TokenizedCard:
        """
        Produce a tokenized handle for the card currently entered.

        Raises:
            Any exception from the capability; the caller treats it as a
            charge failure.
        """
        pass


class CardFieldAdapter:
    """
    Normalizes card field change events and forwards them to listeners.

    Each distinct change is delivered at most once: an event identical to the
    previously delivered one is dropped. The adapter never compares the
    detected brand with the declared one; detection is a hint for the UI.
    """

    def __init__(self, capability: TokenizationCapability) -> None:
        self.capability = capability
        self._listeners: list[ChangeListener] = []
        self._last_change: CardFieldChange | None = None

    @property
    def last_change(self) -> CardFieldChange | None:
        return self._last_change

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def on_change(
        self,
        brand: str | None,
        complete: bool,
        error_message: str | None = None,
    ) -> CardFieldChange | None:
        """
        Handle a raw change from the capability.

        Args:
            brand: Brand string reported by the capability (may be unknown)
            complete: True when the capability considers the field submittable
            error_message: Validation message from the capability, if any

        Returns:
            The delivered change, or None when it duplicated the previous one
        """
        if error_message:
            state = CardState.INVALID
        elif complete:
            state = CardState.COMPLETE
        else:
            state = CardState.INCOMPLETE

        change = CardFieldChange(
            brand=DetectedBrand.from_raw(brand),
            state=state,
            error_message=error_message or None,
        )

        if change == self._last_change:
            return None
        self._last_change = change

        logger.debug(
            "card_field_changed",
            detected_brand=change.brand.value,
            card_state=change.state.value,
        )

        for listener in list(self._listeners):
            listener(change)
        return change

    async def tokenize(self, billing_email: str | None = None) -> TokenizedCard:
        """Ask the capability for a tokenized handle of the entered card."""
        return await self.capability.tokenize(billing_email=billing_email)
