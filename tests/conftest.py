"""Pytest configuration and shared fixtures for all tests.

Collaborators of the state machine are replaced with AsyncMocks specced on
the real clients, so each transition can be exercised in isolation.
"""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from checkout_authorization.card_field import (  # noqa: E402
    CardFieldAdapter,
    TokenizationCapability,
    TokenizedCard,
)
from checkout_authorization.clients.payment_client import (  # noqa: E402
    IntentCreated,
    PaymentServiceClient,
)
from checkout_authorization.clients.verification_client import (  # noqa: E402
    VerificationGatewayClient,
    VerifyResult,
)
from checkout_authorization.models import (  # noqa: E402
    BrandChosen,
    CardBrand,
    ContinuePressed,
    EmailSubmitted,
    Phase,
)
from checkout_authorization.processors.mock_processor import MockProcessor  # noqa: E402
from checkout_authorization.state_machine import AuthorizationStateMachine  # noqa: E402


class FakeTokenizationCapability(TokenizationCapability):
    """Stands in for the browser card element."""

    def __init__(self, token: str = "pm_card_visa") -> None:
        self.token = token
        self.tokenize_calls: list[str | None] = []

    async def tokenize(self, billing_email: str | None = None) -> TokenizedCard:
        self.tokenize_calls.append(billing_email)
        return TokenizedCard(token=self.token)


@pytest.fixture
def test_subject_id() -> str:
    """Standard rental application id."""
    return "app-00000000-0000-0000-0000-000000000001"


@pytest.fixture
def capability() -> FakeTokenizationCapability:
    return FakeTokenizationCapability()


@pytest.fixture
def card_field(capability) -> CardFieldAdapter:
    return CardFieldAdapter(capability)


@pytest.fixture
def verification_client() -> AsyncMock:
    """Verification client that issues ver_1 and accepts any code."""
    client = AsyncMock(spec=VerificationGatewayClient)
    client.request_code.return_value = "ver_1"
    client.verify_code.return_value = VerifyResult.OK
    return client


@pytest.fixture
def payment_client() -> AsyncMock:
    """Payment client whose intent and ledger calls succeed."""
    client = AsyncMock(spec=PaymentServiceClient)
    client.create_intent.return_value = IntentCreated(
        client_secret="pi_123_secret_abc",
        payment_intent_id="pi_123",
    )
    client.confirm_payment.return_value = None
    return client


@pytest.fixture
def processor() -> MockProcessor:
    return MockProcessor()


@pytest.fixture
def machine(
    test_subject_id,
    verification_client,
    payment_client,
    processor,
    card_field,
) -> AuthorizationStateMachine:
    return AuthorizationStateMachine(
        test_subject_id,
        265000,
        verification_client=verification_client,
        payment_client=payment_client,
        processor=processor,
        card_field=card_field,
        auto_charge_delay_seconds=0,
    )


async def advance_to(
    machine: AuthorizationStateMachine,
    card_field: CardFieldAdapter,
    phase: Phase,
    email: str = "a@b.com",
) -> None:
    """Drive a fresh machine forward with all-success collaborators."""
    if phase == Phase.SELECT_BRAND:
        return
    await machine.dispatch(BrandChosen(CardBrand.VISA))
    if phase == Phase.ENTER_CARD:
        return
    card_field.on_change("visa", True, None)
    await machine.dispatch(ContinuePressed())
    if phase == Phase.AWAITING_EMAIL:
        return
    await machine.dispatch(EmailSubmitted(email))
    assert machine.phase == phase


@pytest.fixture
def advance(machine, card_field):
    """Return a coroutine function moving the machine fixture to a phase."""

    async def _advance(phase: Phase, email: str = "a@b.com") -> None:
        await advance_to(machine, card_field, phase, email=email)

    return _advance
