"""Authorization session domain models."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum


class Phase(str, Enum):
    """Authorization phase, in required order."""

    SELECT_BRAND = "SELECT_BRAND"
    ENTER_CARD = "ENTER_CARD"
    AWAITING_EMAIL = "AWAITING_EMAIL"
    AWAITING_CODE = "AWAITING_CODE"
    VERIFIED = "VERIFIED"
    CHARGING = "CHARGING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def rank(self) -> int:
        """Position in the forward order; FAILED ranks with the terminals."""
        return _PHASE_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (Phase.SUCCEEDED, Phase.FAILED)


_PHASE_RANK = {
    Phase.SELECT_BRAND: 0,
    Phase.ENTER_CARD: 1,
    Phase.AWAITING_EMAIL: 2,
    Phase.AWAITING_CODE: 3,
    Phase.VERIFIED: 4,
    Phase.CHARGING: 5,
    Phase.SUCCEEDED: 6,
    Phase.FAILED: 6,
}


class CardBrand(str, Enum):
    """Card networks a customer may declare."""

    VISA = "visa"
    MASTERCARD = "mastercard"


class DetectedBrand(str, Enum):
    """Brand reported by the tokenization capability (best effort)."""

    VISA = "visa"
    MASTERCARD = "mastercard"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, value: str | None) -> "DetectedBrand":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.UNKNOWN


class CardState(str, Enum):
    """Completeness of the card field."""

    INCOMPLETE = "incomplete"
    COMPLETE = "complete"
    INVALID = "invalid"


def to_cents(amount: Decimal | int | float | str) -> int:
    """Convert a major-unit amount (e.g. dollars) to integer cents."""
    cents = (Decimal(str(amount)) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(cents)


@dataclass(frozen=True)
class PaymentItem:
    """One line of the payment breakdown (rent, deposit, fee)."""

    type: str
    label: str
    amount_cents: int

    def __post_init__(self) -> None:
        if self.amount_cents < 0:
            raise ValueError("amount_cents must not be negative")


@dataclass(frozen=True)
class PaymentDetails:
    """Payment breakdown for a subject; the total is the sum of its items."""

    items: tuple[PaymentItem, ...]
    total_cents: int

    def __post_init__(self) -> None:
        if sum(item.amount_cents for item in self.items) != self.total_cents:
            raise ValueError("total_cents must equal the sum of item amounts")


@dataclass
class AuthorizationSession:
    """
    State of one checkout attempt.

    Sessions live in memory only. Verification tokens and the intent client
    secret are excluded from ``repr`` so they do not leak into logs or
    tracebacks.
    """

    subject_id: str
    amount_cents: int
    currency: str = "usd"
    payment_items: tuple[PaymentItem, ...] = ()

    phase: Phase = Phase.SELECT_BRAND
    declared_brand: CardBrand | None = None
    card_state: CardState = CardState.INCOMPLETE
    card_error: str | None = None
    detected_brand: DetectedBrand = DetectedBrand.UNKNOWN
    email: str | None = None
    verification_id: str | None = field(default=None, repr=False)
    payment_intent_secret: str | None = field(default=None, repr=False)
    payment_intent_id: str | None = None
    last_error: str | None = None

    def __post_init__(self) -> None:
        if not self.subject_id:
            raise ValueError("subject_id is required")
        if self.amount_cents <= 0:
            raise ValueError("amount_cents must be positive")

    @property
    def card_ready(self) -> bool:
        """True when the card field is complete and carries no error."""
        return self.card_state == CardState.COMPLETE and not self.card_error
