"""Intents dispatched to the authorization state machine."""

from dataclasses import dataclass

from checkout_authorization.models.session import CardBrand, CardState, DetectedBrand


@dataclass(frozen=True)
class CardFieldChange:
    """Normalized change reported by the card field."""

    brand: DetectedBrand
    state: CardState
    error_message: str | None = None


@dataclass(frozen=True)
class BrandChosen:
    brand: CardBrand


@dataclass(frozen=True)
class CardFieldChanged:
    change: CardFieldChange


@dataclass(frozen=True)
class ContinuePressed:
    pass


@dataclass(frozen=True)
class EmailSubmitted:
    email: str


@dataclass(frozen=True)
class CodeSubmitted:
    code: str

    def __repr__(self) -> str:
        return "CodeSubmitted(code=[redacted])"


@dataclass(frozen=True)
class ResendRequested:
    pass


CheckoutEvent = (
    BrandChosen
    | CardFieldChanged
    | ContinuePressed
    | EmailSubmitted
    | CodeSubmitted
    | ResendRequested
)
