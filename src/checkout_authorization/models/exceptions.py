"""Custom exceptions for the checkout authorization flow.

Every exception carries a ``user_message``: the generic text shown to the
customer for its category. Detailed context goes into the exception message
and the logs only.
"""


class CheckoutError(Exception):
    """Base exception for checkout authorization errors."""

    user_message = "something went wrong, please retry"


class ValidationError(CheckoutError):
    """
    Raised for input rejected locally, before any network call.

    Examples:
    - Malformed email address
    - Code that is not exactly six digits
    - Continuing with an incomplete or invalid card field
    """

    def __init__(self, user_message: str, detail: str | None = None) -> None:
        super().__init__(detail or user_message)
        self.user_message = user_message


class GatewayError(CheckoutError):
    """
    Raised when the verification service fails on send-code or verify-code.

    This is a RETRYABLE error. The session stays in the phase that issued
    the call so the customer can try again.
    """

    user_message = "could not reach the verification service, please retry"


class InvalidEmail(GatewayError):
    """Raised when the verification service rejects the email address (400/422)."""

    user_message = "invalid email address"


class RateLimited(GatewayError):
    """Raised when the verification service returns 429."""

    user_message = "too many requests, please wait and retry"


class ServiceError(GatewayError):
    """
    Raised for 5xx responses, timeouts, connection errors and malformed
    response bodies from the verification service.
    """

    user_message = "timed out, please retry"


class ProcessorError(CheckoutError):
    """
    Base exception for charge-path failures.

    This is a TERMINAL error for the session. The intent must not be retried;
    a brand-new session (and intent) is required.
    """

    user_message = "payment could not be completed"


class IntentCreationFailed(ProcessorError):
    """Raised when the payment service refuses or fails to create an intent."""

    pass


class PaymentDeclined(ProcessorError):
    """
    Raised when the processor declines the tokenized card.

    The decline code is kept for logging; it is never shown to the customer.
    """

    user_message = "payment was declined"

    def __init__(self, message: str, decline_code: str | None = None) -> None:
        super().__init__(message)
        self.decline_code = decline_code


class ProcessorUnavailable(ProcessorError):
    """Raised for processor API errors, rate limits and connection failures."""

    pass


class LedgerConfirmationFailed(ProcessorError):
    """
    Raised when the processor succeeded but the payment service did not
    confirm the charge in its ledger.
    """

    user_message = "payment processed but confirmation failed, please contact support"


class ProtocolError(CheckoutError):
    """
    An event arrived in a phase that cannot legally accept it.

    Logged and swallowed by the state machine; never surfaced to the customer.
    """

    pass


class CheckoutUnavailable(CheckoutError):
    """Raised when payment details for a subject cannot be loaded."""

    user_message = "payment details are unavailable"
