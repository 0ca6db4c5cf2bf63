"""Payment service client: payment details, intent creation and ledger confirmation."""

from decimal import Decimal

import httpx
import structlog
from pydantic import ValidationError as SchemaError

from checkout_authorization.clients.base import JSONServiceClient
from checkout_authorization.clients.schemas import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateIntentRequest,
    CreateIntentResponse,
    PaymentDetailsResponse,
    PaymentItemJSON,
)
from checkout_authorization.logging_config import mask_email
from checkout_authorization.models import (
    CardBrand,
    CheckoutUnavailable,
    IntentCreationFailed,
    LedgerConfirmationFailed,
    PaymentDetails,
    PaymentItem,
    to_cents,
)

logger = structlog.get_logger(__name__)


def intent_id_from_secret(client_secret: str) -> str:
    """
    Derive the payment intent id from its client secret.

    Stripe client secrets have the shape ``pi_123_secret_abc``.
    """
    intent_id, sep, _ = client_secret.partition("_secret_")
    return intent_id if sep else client_secret


class IntentCreated:
    """Result of a successful create-intent call."""

    __slots__ = ("client_secret", "payment_intent_id")

    def __init__(self, client_secret: str, payment_intent_id: str) -> None:
        self.client_secret = client_secret
        self.payment_intent_id = payment_intent_id

    def __repr__(self) -> str:
        return f"IntentCreated(payment_intent_id={self.payment_intent_id!r})"


class PaymentServiceClient(JSONServiceClient):
    """
    Client for the backend payment service.

    Both write calls carry the verification id as server-side proof that the
    email address was verified; the service refuses intents without it.
    """

    service_name = "payment"

    async def get_payment_details(self, subject_id: str) -> PaymentDetails:
        """
        Load the payment breakdown for a subject.

        Raises:
            CheckoutUnavailable: Subject missing, not payable, or service failure
        """
        try:
            response, correlation_id = await self._get(f"/payment/details/{subject_id}")
        except httpx.RequestError as e:
            logger.error("payment_details_request_error", subject_id=subject_id, error=str(e))
            raise CheckoutUnavailable(f"Payment service request error: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "payment_details_unavailable",
                subject_id=subject_id,
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            raise CheckoutUnavailable(
                f"Payment details unavailable (status: {response.status_code})"
            )

        try:
            body = PaymentDetailsResponse.model_validate(response.json())
            items = tuple(
                PaymentItem(type=item.type, label=item.label, amount_cents=to_cents(item.amount))
                for item in body.payment_breakdown.items
            )
            details = PaymentDetails(items=items, total_cents=to_cents(body.payment_breakdown.total))
        except (ValueError, SchemaError) as e:
            logger.error(
                "payment_details_malformed_response",
                subject_id=subject_id,
                correlation_id=correlation_id,
                error=str(e),
            )
            raise CheckoutUnavailable("Malformed payment details") from e

        logger.info(
            "payment_details_loaded",
            subject_id=subject_id,
            total_cents=details.total_cents,
            item_count=len(details.items),
        )
        return details

    async def create_intent(
        self,
        subject_id: str,
        amount_cents: int,
        brand: CardBrand,
        verification_id: str,
        email: str,
        currency: str = "usd",
        payment_items: tuple[PaymentItem, ...] = (),
    ) -> IntentCreated:
        """
        Create a charge intent for a verified session.

        Returns:
            IntentCreated with the client secret used by the processor confirm

        Raises:
            IntentCreationFailed: Any non-200 status, transport error or malformed body
        """
        request = CreateIntentRequest(
            subject_id=subject_id,
            amount=amount_cents,
            currency=currency,
            brand=brand.value,
            verification_id=verification_id,
            email=email,
            payment_items=[
                PaymentItemJSON(type=item.type, label=item.label, amount=Decimal(item.amount_cents) / 100)
                for item in payment_items
            ],
        )

        logger.info(
            "payment_intent_request",
            subject_id=subject_id,
            amount_cents=amount_cents,
            brand=brand.value,
            email=mask_email(email),
        )

        try:
            response, correlation_id = await self._post("/payment/intent", request.to_wire())
        except httpx.RequestError as e:
            logger.error("payment_intent_request_error", subject_id=subject_id, error=str(e))
            raise IntentCreationFailed(f"Payment service request error: {e}") from e

        if response.status_code != 200:
            logger.error(
                "payment_intent_rejected",
                subject_id=subject_id,
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            raise IntentCreationFailed(
                f"Payment intent creation failed (status: {response.status_code})"
            )

        try:
            body = CreateIntentResponse.model_validate(response.json())
        except (ValueError, SchemaError) as e:
            logger.error(
                "payment_intent_malformed_response",
                subject_id=subject_id,
                correlation_id=correlation_id,
            )
            raise IntentCreationFailed("Malformed response from payment service") from e

        intent_id = body.payment_intent_id or intent_id_from_secret(body.client_secret)
        logger.info(
            "payment_intent_created",
            subject_id=subject_id,
            payment_intent_id=intent_id,
            correlation_id=correlation_id,
        )
        return IntentCreated(client_secret=body.client_secret, payment_intent_id=intent_id)

    async def confirm_payment(
        self,
        subject_id: str,
        payment_intent_id: str,
        brand: CardBrand,
        verification_id: str,
    ) -> None:
        """
        Record a processor-confirmed charge in the ledger.

        The processor's success is not authoritative on its own; only a
        successful return from this call completes the checkout.

        Raises:
            LedgerConfirmationFailed: ok=false, non-200 status or transport error
        """
        request = ConfirmPaymentRequest(
            subject_id=subject_id,
            payment_intent_id=payment_intent_id,
            brand=brand.value,
            verification_id=verification_id,
        )

        try:
            response, correlation_id = await self._post("/payment/confirm", request.to_wire())
        except httpx.RequestError as e:
            logger.error(
                "payment_confirm_request_error",
                subject_id=subject_id,
                payment_intent_id=payment_intent_id,
                error=str(e),
            )
            raise LedgerConfirmationFailed(f"Payment service request error: {e}") from e

        ok = False
        if response.status_code == 200:
            try:
                ok = ConfirmPaymentResponse.model_validate(response.json()).ok
            except (ValueError, SchemaError):
                ok = False

        if not ok:
            logger.error(
                "payment_confirm_failed",
                subject_id=subject_id,
                payment_intent_id=payment_intent_id,
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            raise LedgerConfirmationFailed(
                f"Ledger did not confirm payment {payment_intent_id} "
                f"(status: {response.status_code})"
            )

        logger.info(
            "payment_confirmed",
            subject_id=subject_id,
            payment_intent_id=payment_intent_id,
            correlation_id=correlation_id,
        )
