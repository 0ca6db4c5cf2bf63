"""Processor confirmation models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ConfirmationStatus(str, Enum):
    """Outcome of confirming an intent with the card processor."""

    SUCCEEDED = "succeeded"
    DECLINED = "declined"


@dataclass
class ProcessorConfirmation:
    """
    Result from a processor confirm attempt.

    Contains either a succeeded charge or a decline, but NOT a failure
    (failures raise exceptions).
    """

    status: ConfirmationStatus
    processor_name: str
    payment_intent_id: str

    # Fields populated on DECLINED status
    decline_code: str | None = None
    decline_reason: str | None = None

    processor_metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        """Validate that required fields are present based on status."""
        if not self.payment_intent_id:
            raise ValueError("payment_intent_id is required")
        if self.status == ConfirmationStatus.DECLINED and not self.decline_code:
            raise ValueError("decline_code required for DECLINED status")

    @property
    def succeeded(self) -> bool:
        return self.status == ConfirmationStatus.SUCCEEDED
