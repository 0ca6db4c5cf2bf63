"""Unit tests for checkout bootstrap."""

import pytest

from checkout_authorization.clients.payment_client import PaymentServiceClient
from checkout_authorization.clients.verification_client import VerificationGatewayClient
from checkout_authorization.config import CheckoutSettings, PaymentServiceSettings, Settings
from checkout_authorization.handlers import build_clients, open_checkout
from checkout_authorization.models import CheckoutUnavailable, PaymentDetails, PaymentItem, Phase
from checkout_authorization.processors import MockProcessor


@pytest.fixture
def payment_details() -> PaymentDetails:
    return PaymentDetails(
        items=(
            PaymentItem(type="first_month", label="First Month Rent", amount_cents=125000),
            PaymentItem(type="deposit", label="Security Deposit", amount_cents=125000),
            PaymentItem(type="admin_fee", label="Administrative Fee", amount_cents=15000),
        ),
        total_cents=265000,
    )


@pytest.fixture
def mock_settings() -> Settings:
    return Settings(
        _env_file=None,
        checkout=CheckoutSettings(processor="mock", currency="eur", auto_charge_delay_seconds=0.5),
    )


class TestOpenCheckout:

    @pytest.mark.asyncio
    async def test_amount_comes_from_payment_details(
        self, test_subject_id, card_field, payment_client, verification_client, processor, payment_details
    ):
        payment_client.get_payment_details.return_value = payment_details

        machine = await open_checkout(
            test_subject_id,
            card_field=card_field,
            payment_client=payment_client,
            verification_client=verification_client,
            processor=processor,
        )

        assert machine.phase == Phase.SELECT_BRAND
        assert machine.session.amount_cents == 265000
        assert machine.session.payment_items == payment_details.items
        assert machine.processor is processor
        payment_client.get_payment_details.assert_awaited_once_with(test_subject_id)

    @pytest.mark.asyncio
    async def test_settings_select_processor_currency_and_delay(
        self, test_subject_id, card_field, payment_client, verification_client, payment_details, mock_settings
    ):
        payment_client.get_payment_details.return_value = payment_details

        machine = await open_checkout(
            test_subject_id,
            card_field=card_field,
            payment_client=payment_client,
            verification_client=verification_client,
            settings=mock_settings,
        )

        assert isinstance(machine.processor, MockProcessor)
        assert machine.session.currency == "eur"
        assert machine.auto_charge_delay_seconds == 0.5

    @pytest.mark.asyncio
    async def test_unavailable_details_propagate(
        self, test_subject_id, card_field, payment_client, verification_client, processor
    ):
        payment_client.get_payment_details.side_effect = CheckoutUnavailable("status 500")

        with pytest.raises(CheckoutUnavailable):
            await open_checkout(
                test_subject_id,
                card_field=card_field,
                payment_client=payment_client,
                verification_client=verification_client,
                processor=processor,
            )

        payment_client.create_intent.assert_not_awaited()


class TestBuildClients:

    @pytest.mark.asyncio
    async def test_clients_use_configured_endpoints(self):
        settings = Settings(
            _env_file=None,
            payment_service=PaymentServiceSettings(
                base_url="https://payments.example.com/api/",
                auth_token="tok",
                timeout_seconds=7,
            ),
        )

        verification_client, payment_client = build_clients(settings)

        assert isinstance(verification_client, VerificationGatewayClient)
        assert isinstance(payment_client, PaymentServiceClient)
        assert payment_client.base_url == "https://payments.example.com/api"
        assert payment_client.auth_token == "tok"
        assert payment_client.timeout_seconds == 7
        assert verification_client.timeout_seconds == settings.verification_service.timeout_seconds

        await verification_client.close()
        await payment_client.close()
