"""
Authorization state machine for the email-verified checkout.

The machine owns one AuthorizationSession and is the only thing allowed to
change its phase. The presentation layer dispatches intents and subscribes
to phase/error notifications; it never mutates the session directly.

Phase order:
    SELECT_BRAND -> ENTER_CARD -> AWAITING_EMAIL -> AWAITING_CODE
    -> VERIFIED -> CHARGING -> SUCCEEDED | FAILED

The only backward move is ResendRequested (AWAITING_CODE -> AWAITING_EMAIL).

Error handling:
    - ValidationError: set last_error, stay, no network call
    - GatewayError / unexpected error on send or verify: set last_error, stay
    - ProcessorError / any error while charging: FAILED (terminal)
    - ProtocolError: event illegal for the phase, logged and ignored
"""

import asyncio
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from checkout_authorization.card_field import CardFieldAdapter
from checkout_authorization.clients.payment_client import PaymentServiceClient
from checkout_authorization.clients.verification_client import (
    VerificationGatewayClient,
    VerifyResult,
)
from checkout_authorization.config import settings
from checkout_authorization.logging_config import mask_email
from checkout_authorization.models import (
    AuthorizationSession,
    BrandChosen,
    CardBrand,
    CardFieldChange,
    CardFieldChanged,
    CardState,
    CheckoutEvent,
    CodeSubmitted,
    ContinuePressed,
    DetectedBrand,
    EmailSubmitted,
    GatewayError,
    PaymentDeclined,
    PaymentItem,
    Phase,
    ProcessorError,
    ProtocolError,
    ResendRequested,
    ValidationError,
)
from checkout_authorization.processors.base import CardProcessor

logger = structlog.get_logger(__name__)

T = TypeVar("T")

CARD_INCOMPLETE = "card incomplete"
INVALID_BRAND = "choose visa or mastercard"
INVALID_EMAIL = "invalid email address"
INVALID_CODE_FORMAT = "enter the 6-digit code"
INVALID_OR_EXPIRED_CODE = "invalid or expired code"
TIMED_OUT = "timed out, please retry"

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
CODE_PATTERN = re.compile(r"[0-9]{6}")

PhaseListener = Callable[[AuthorizationSession, Phase, Phase], None]
ErrorListener = Callable[[AuthorizationSession, str], None]


class _StaleResult(Exception):
    """A call finished after its session was discarded."""


@dataclass(frozen=True)
class SessionView:
    """Render-safe snapshot of a session; carries no verification secrets."""

    phase: Phase
    declared_brand: CardBrand | None
    detected_brand: DetectedBrand
    card_state: CardState
    card_error: str | None
    email: str | None
    amount_cents: int
    payment_items: tuple[PaymentItem, ...]
    last_error: str | None
    is_busy: bool
    code_sent: bool


class AuthorizationStateMachine:
    """
    Drives one checkout attempt through card entry, email verification and
    charging.

    At most one gateway or processor call is in flight at a time. While one
    is outstanding ``is_busy`` is True and every dispatched event is
    rejected, so double clicks cannot send two codes or two charges.
    """

    def __init__(
        self,
        subject_id: str,
        amount_cents: int,
        *,
        verification_client: VerificationGatewayClient,
        payment_client: PaymentServiceClient,
        processor: CardProcessor,
        card_field: CardFieldAdapter,
        payment_items: tuple[PaymentItem, ...] = (),
        currency: str | None = None,
        auto_charge_delay_seconds: float | None = None,
    ) -> None:
        self.session = AuthorizationSession(
            subject_id=subject_id,
            amount_cents=amount_cents,
            currency=currency or settings.checkout.currency,
            payment_items=tuple(payment_items),
        )
        self.verification_client = verification_client
        self.payment_client = payment_client
        self.processor = processor
        self.card_field = card_field
        self.auto_charge_delay_seconds = (
            settings.checkout.auto_charge_delay_seconds
            if auto_charge_delay_seconds is None
            else auto_charge_delay_seconds
        )

        self._alive = True
        self._liveness = object()
        self._call_in_flight = False
        self._phase_listeners: list[PhaseListener] = []
        self._error_listeners: list[ErrorListener] = []
        self._remove_card_listener: Callable[[], None] | None = card_field.add_listener(
            self.handle_card_change
        )
        if card_field.last_change is not None:
            self._adopt_card_state(card_field.last_change)
        self._log = logger.bind(subject_id=subject_id)

        self._handlers: dict[type, Callable[[Any], Awaitable[None]]] = {
            BrandChosen: self._on_brand_chosen,
            CardFieldChanged: self._on_card_field_changed,
            ContinuePressed: self._on_continue_pressed,
            EmailSubmitted: self._on_email_submitted,
            CodeSubmitted: self._on_code_submitted,
            ResendRequested: self._on_resend_requested,
        }

        self._log.info("checkout_session_created", amount_cents=amount_cents)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self.session.phase

    @property
    def is_alive(self) -> bool:
        return self._alive

    @property
    def is_busy(self) -> bool:
        """True while a call is outstanding or the charge is running."""
        return self._call_in_flight or self.session.phase in (Phase.VERIFIED, Phase.CHARGING)

    def snapshot(self) -> SessionView:
        s = self.session
        return SessionView(
            phase=s.phase,
            declared_brand=s.declared_brand,
            detected_brand=s.detected_brand,
            card_state=s.card_state,
            card_error=s.card_error,
            email=s.email,
            amount_cents=s.amount_cents,
            payment_items=s.payment_items,
            last_error=s.last_error,
            is_busy=self.is_busy,
            code_sent=s.verification_id is not None,
        )

    def subscribe(
        self,
        on_phase_change: PhaseListener | None = None,
        on_error: ErrorListener | None = None,
    ) -> Callable[[], None]:
        """
        Register output listeners.

        Returns:
            A callable removing the listeners registered by this call
        """
        if on_phase_change is not None:
            self._phase_listeners.append(on_phase_change)
        if on_error is not None:
            self._error_listeners.append(on_error)

        def unsubscribe() -> None:
            if on_phase_change in self._phase_listeners:
                self._phase_listeners.remove(on_phase_change)
            if on_error in self._error_listeners:
                self._error_listeners.remove(on_error)

        return unsubscribe

    async def dispatch(self, event: CheckoutEvent) -> bool:
        """
        Apply a user intent.

        Returns:
            True if the event was legal for the current phase and handled
            (including local validation failures), False if it was ignored.
            Never raises for an out-of-order or duplicate event.
        """
        handler = self._handlers.get(type(event))
        try:
            if handler is None:
                raise ProtocolError(f"Unknown event type {type(event).__name__}")
            self._check_accepting()
            await handler(event)
            return True
        except ProtocolError as e:
            self._log.warning(
                "event_rejected",
                event_type=type(event).__name__,
                phase=self.session.phase.value,
                reason=str(e),
            )
            return False
        except _StaleResult:
            self._log.info(
                "stale_result_ignored",
                event_type=type(event).__name__,
            )
            return False

    def handle_card_change(self, change: CardFieldChange) -> None:
        """Listener for the card field adapter; same rules as dispatch()."""
        try:
            self._check_accepting()
            self._apply_card_change(change)
        except ProtocolError as e:
            self._log.debug(
                "card_change_ignored",
                phase=self.session.phase.value,
                reason=str(e),
            )

    def discard(self) -> None:
        """
        Abandon the session (navigation away, explicit cancel).

        Results of calls still in flight are ignored when they arrive.
        """
        if not self._alive:
            return
        self._alive = False
        self._liveness = object()
        self._call_in_flight = False
        self._release_card_field()
        self._log.info("checkout_session_discarded", phase=self.session.phase.value)

    def new_attempt(self) -> "AuthorizationStateMachine":
        """
        Start over with a brand-new session and the same collaborators.

        The current session is discarded, never reset: a failed charge
        leaves external side effects tied to its intent.
        """
        replacement = AuthorizationStateMachine(
            self.session.subject_id,
            self.session.amount_cents,
            verification_client=self.verification_client,
            payment_client=self.payment_client,
            processor=self.processor,
            card_field=self.card_field,
            payment_items=self.session.payment_items,
            currency=self.session.currency,
            auto_charge_delay_seconds=self.auto_charge_delay_seconds,
        )
        for listener in self._phase_listeners:
            replacement.subscribe(on_phase_change=listener)
        for listener in self._error_listeners:
            replacement.subscribe(on_error=listener)
        self.discard()
        return replacement

    # ------------------------------------------------------------------
    # Transition handlers
    # ------------------------------------------------------------------

    async def _on_brand_chosen(self, event: BrandChosen) -> None:
        self._require_phase(Phase.SELECT_BRAND)
        try:
            brand = (
                event.brand
                if isinstance(event.brand, CardBrand)
                else CardBrand(str(event.brand).strip().lower())
            )
        except ValueError:
            self._reject_input(ValidationError(INVALID_BRAND, f"Unsupported brand {event.brand!r}"))
            return
        self.session.declared_brand = brand
        self._transition(Phase.ENTER_CARD)

        # The card field may have reported before the brand was chosen
        last_change = self.card_field.last_change
        if last_change is not None:
            self._adopt_card_state(last_change)
            if last_change.error_message:
                self._set_error(last_change.error_message)

    async def _on_card_field_changed(self, event: CardFieldChanged) -> None:
        self._apply_card_change(event.change)

    async def _on_continue_pressed(self, event: ContinuePressed) -> None:
        self._require_phase(Phase.ENTER_CARD)
        if not self.session.card_ready:
            self._reject_input(ValidationError(CARD_INCOMPLETE))
            return
        self._transition(Phase.AWAITING_EMAIL)

    async def _on_email_submitted(self, event: EmailSubmitted) -> None:
        self._require_phase(Phase.AWAITING_EMAIL)
        email = (event.email or "").strip().lower()
        if not EMAIL_PATTERN.fullmatch(email):
            self._reject_input(ValidationError(INVALID_EMAIL))
            return

        session = self.session
        session.email = email
        try:
            verification_id = await self._call(
                self.verification_client.request_code(email, session.subject_id)
            )
        except GatewayError as e:
            self._log.warning(
                "verification_code_request_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            self._set_error(e.user_message)
            return
        except (_StaleResult, ProtocolError):
            raise
        except Exception as e:
            self._log.error(
                "verification_code_request_error",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            self._set_error(TIMED_OUT)
            return

        session.verification_id = verification_id
        self._log.info("verification_code_issued", email=mask_email(email))
        self._transition(Phase.AWAITING_CODE)

    async def _on_code_submitted(self, event: CodeSubmitted) -> None:
        self._require_phase(Phase.AWAITING_CODE)
        verification_id = self.session.verification_id
        if verification_id is None:
            raise ProtocolError("No verification id for this session")

        code = (event.code or "").strip()
        if not CODE_PATTERN.fullmatch(code):
            self._reject_input(ValidationError(INVALID_CODE_FORMAT))
            return

        try:
            result = await self._call(self.verification_client.verify_code(verification_id, code))
        except GatewayError as e:
            self._log.warning(
                "verification_check_failed",
                error_type=type(e).__name__,
                error=str(e),
            )
            self._set_error(e.user_message)
            return
        except (_StaleResult, ProtocolError):
            raise
        except Exception as e:
            self._log.error(
                "verification_check_error",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            self._set_error(TIMED_OUT)
            return

        if result is not VerifyResult.OK:
            # Every non-OK outcome looks the same to the customer
            self._log.info("verification_code_rejected", result=result.value)
            self._set_error(INVALID_OR_EXPIRED_CODE)
            return

        self._transition(Phase.VERIFIED)
        await self._charge()

    async def _on_resend_requested(self, event: ResendRequested) -> None:
        self._require_phase(Phase.AWAITING_CODE)
        self.session.verification_id = None
        self._log.info("verification_code_resend_requested")
        self._transition(Phase.AWAITING_EMAIL, allow_regress=True)

    async def _charge(self) -> None:
        """
        Create the intent, confirm it with the processor and record it in the
        ledger. Treated as one step: any failure ends in FAILED.

        Cancelling the dispatching task fails and discards the session.
        """
        session = self.session
        verification_id = session.verification_id
        brand = session.declared_brand
        email = session.email

        try:
            if self.auto_charge_delay_seconds > 0:
                await self._call(asyncio.sleep(self.auto_charge_delay_seconds))

            self._transition(Phase.CHARGING)
            intent = await self._call(
                self.payment_client.create_intent(
                    subject_id=session.subject_id,
                    amount_cents=session.amount_cents,
                    brand=brand,
                    verification_id=verification_id,
                    email=email,
                    currency=session.currency,
                    payment_items=session.payment_items,
                )
            )
            session.payment_intent_secret = intent.client_secret
            session.payment_intent_id = intent.payment_intent_id

            tokenized_card = await self._call(self.card_field.tokenize(billing_email=email))
            confirmation = await self._call(
                self.processor.confirm(intent.client_secret, tokenized_card, billing_email=email)
            )
            if not confirmation.succeeded:
                raise PaymentDeclined(
                    confirmation.decline_reason or "Card was declined",
                    decline_code=confirmation.decline_code,
                )

            session.payment_intent_id = confirmation.payment_intent_id
            await self._call(
                self.payment_client.confirm_payment(
                    subject_id=session.subject_id,
                    payment_intent_id=confirmation.payment_intent_id,
                    brand=brand,
                    verification_id=verification_id,
                )
            )
        except ProcessorError as e:
            self._log.warning(
                "charge_failed",
                error_type=type(e).__name__,
                decline_code=getattr(e, "decline_code", None),
                payment_intent_id=session.payment_intent_id,
                error=str(e),
            )
            self._fail(e.user_message)
            return
        except asyncio.CancelledError:
            if self._alive:
                self._log.warning(
                    "charge_cancelled",
                    phase=session.phase.value,
                    payment_intent_id=session.payment_intent_id,
                )
                self._fail(TIMED_OUT)
                self.discard()
            raise
        except (_StaleResult, ProtocolError):
            raise
        except Exception as e:
            self._log.error(
                "charge_error",
                error_type=type(e).__name__,
                payment_intent_id=session.payment_intent_id,
                error=str(e),
                exc_info=True,
            )
            self._fail(TIMED_OUT)
            return

        self._log.info(
            "charge_succeeded",
            payment_intent_id=session.payment_intent_id,
            amount_cents=session.amount_cents,
        )
        self._transition(Phase.SUCCEEDED)
        self._release_card_field()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_accepting(self) -> None:
        if not self._alive:
            raise ProtocolError("Session was discarded")
        if self._call_in_flight:
            raise ProtocolError("A call is already in flight")

    def _require_phase(self, *phases: Phase) -> None:
        if self.session.phase not in phases:
            raise ProtocolError(
                f"Not accepted in phase {self.session.phase.value}"
            )

    def _apply_card_change(self, change: CardFieldChange) -> None:
        self._require_phase(Phase.ENTER_CARD)
        session = self.session
        self._adopt_card_state(change)
        if change.error_message:
            self._set_error(change.error_message)
        elif session.last_error is not None:
            session.last_error = None

    def _adopt_card_state(self, change: CardFieldChange) -> None:
        self.session.card_state = change.state
        self.session.card_error = change.error_message
        self.session.detected_brand = change.brand

    async def _call(self, awaitable: Awaitable[T]) -> T:
        """
        Await one collaborator call.

        Marks the session busy for the duration and raises _StaleResult if
        the session was discarded while waiting.
        """
        if self._call_in_flight:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise ProtocolError("A call is already in flight")

        liveness = self._liveness
        self._call_in_flight = True
        try:
            result = await awaitable
        except Exception:
            if liveness is not self._liveness:
                raise _StaleResult()
            raise
        finally:
            if liveness is self._liveness:
                self._call_in_flight = False

        if liveness is not self._liveness:
            raise _StaleResult()
        return result

    def _transition(self, new_phase: Phase, *, allow_regress: bool = False) -> None:
        old_phase = self.session.phase
        if new_phase.rank < old_phase.rank and not allow_regress:
            raise ProtocolError(f"Illegal transition {old_phase.value} -> {new_phase.value}")

        self.session.phase = new_phase
        self.session.last_error = None
        self._log.info(
            "phase_changed",
            old_phase=old_phase.value,
            new_phase=new_phase.value,
        )
        for listener in list(self._phase_listeners):
            try:
                listener(self.session, old_phase, new_phase)
            except Exception as e:
                self._log.error("phase_listener_error", error=str(e), exc_info=True)

    def _set_error(self, message: str) -> None:
        self.session.last_error = message
        for listener in list(self._error_listeners):
            try:
                listener(self.session, message)
            except Exception as e:
                self._log.error("error_listener_error", error=str(e), exc_info=True)

    def _reject_input(self, error: ValidationError) -> None:
        self._log.info(
            "input_rejected",
            phase=self.session.phase.value,
            reason=error.user_message,
        )
        self._set_error(error.user_message)

    def _fail(self, message: str) -> None:
        self._transition(Phase.FAILED)
        self._set_error(message)
        self._release_card_field()

    def _release_card_field(self) -> None:
        if self._remove_card_listener is not None:
            self._remove_card_listener()
            self._remove_card_listener = None
