"""
Checkout bootstrap.

Loads what the customer owes for a subject and opens an authorization
session for exactly that amount.
"""

import structlog

from checkout_authorization.card_field import CardFieldAdapter
from checkout_authorization.clients.payment_client import PaymentServiceClient
from checkout_authorization.clients.verification_client import VerificationGatewayClient
from checkout_authorization.config import Settings, settings as default_settings
from checkout_authorization.processors.base import CardProcessor
from checkout_authorization.processors.factory import get_processor
from checkout_authorization.state_machine import AuthorizationStateMachine

logger = structlog.get_logger(__name__)


async def open_checkout(
    subject_id: str,
    *,
    card_field: CardFieldAdapter,
    payment_client: PaymentServiceClient,
    verification_client: VerificationGatewayClient,
    processor: CardProcessor | None = None,
    settings: Settings | None = None,
) -> AuthorizationStateMachine:
    """
    Open a checkout session for a subject.

    The amount is never supplied by the caller: it is the total of the
    payment breakdown returned by the payment service (first month rent,
    security deposit, administrative fee).

    Args:
        subject_id: Identifier of the thing being paid for
        card_field: Adapter around the card tokenization capability
        payment_client: Payment service client
        verification_client: Verification service client
        processor: Card processor; defaults to the configured one
        settings: Settings override (tests)

    Returns:
        A fresh AuthorizationStateMachine in SELECT_BRAND

    Raises:
        CheckoutUnavailable: Payment details could not be loaded
    """
    settings = settings or default_settings
    details = await payment_client.get_payment_details(subject_id)

    if processor is None:
        processor = get_processor(settings.checkout.processor)

    machine = AuthorizationStateMachine(
        subject_id,
        details.total_cents,
        verification_client=verification_client,
        payment_client=payment_client,
        processor=processor,
        card_field=card_field,
        payment_items=details.items,
        currency=settings.checkout.currency,
        auto_charge_delay_seconds=settings.checkout.auto_charge_delay_seconds,
    )

    logger.info(
        "checkout_opened",
        subject_id=subject_id,
        total_cents=details.total_cents,
        processor=processor.name,
    )
    return machine


def build_clients(
    settings: Settings | None = None,
) -> tuple[VerificationGatewayClient, PaymentServiceClient]:
    """Create service clients from configuration."""
    settings = settings or default_settings
    verification_client = VerificationGatewayClient(
        base_url=settings.verification_service.base_url,
        auth_token=settings.verification_service.auth_token,
        timeout_seconds=settings.verification_service.timeout_seconds,
    )
    payment_client = PaymentServiceClient(
        base_url=settings.payment_service.base_url,
        auth_token=settings.payment_service.auth_token,
        timeout_seconds=settings.payment_service.timeout_seconds,
    )
    return verification_client, payment_client
