"""Unit tests for the mock processor."""

import pytest

from checkout_authorization.card_field import TokenizedCard
from checkout_authorization.models import ConfirmationStatus, ProcessorUnavailable
from checkout_authorization.processors.mock_processor import TEST_PAYMENT_METHODS, MockProcessor


class TestMockProcessor:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["pm_card_visa", "pm_card_mastercard"])
    async def test_success_methods(self, token):
        processor = MockProcessor()

        result = await processor.confirm("pi_1_secret_x", TokenizedCard(token=token))

        assert result.status == ConfirmationStatus.SUCCEEDED
        assert result.payment_intent_id == "pi_1"
        assert processor.confirmed_intents == ["pi_1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "token",
        [t for t, b in TEST_PAYMENT_METHODS.items() if b["type"] == "decline"],
    )
    async def test_decline_methods(self, token):
        result = await MockProcessor().confirm("pi_1_secret_x", TokenizedCard(token=token))

        assert result.status == ConfirmationStatus.DECLINED
        assert result.decline_code == TEST_PAYMENT_METHODS[token]["code"]
        assert result.processor_metadata["decline_code"] == TEST_PAYMENT_METHODS[token]["decline_code"]

    @pytest.mark.asyncio
    async def test_requires_action(self):
        result = await MockProcessor().confirm(
            "pi_1_secret_x", TokenizedCard(token="pm_card_authenticationRequired")
        )

        assert result.decline_code == "requires_action"

    @pytest.mark.asyncio
    async def test_unavailable(self):
        processor = MockProcessor()

        with pytest.raises(ProcessorUnavailable):
            await processor.confirm("pi_1_secret_x", TokenizedCard(token="pm_card_processorUnavailable"))

        assert processor.confirmed_intents == []

    @pytest.mark.asyncio
    async def test_unknown_method_uses_default(self):
        approve = await MockProcessor().confirm("pi_1_secret_x", TokenizedCard(token="pm_other"))
        decline = await MockProcessor(default_response="declined").confirm(
            "pi_1_secret_x", TokenizedCard(token="pm_other")
        )

        assert approve.succeeded is True
        assert decline.status == ConfirmationStatus.DECLINED

    @pytest.mark.asyncio
    async def test_latency(self):
        result = await MockProcessor(latency_ms=5).confirm("pi_1_secret_x", TokenizedCard(token="pm_card_visa"))

        assert result.succeeded is True
