"""Verification service client for one-time email codes."""

from enum import Enum

import httpx
import structlog
from pydantic import ValidationError as SchemaError

from checkout_authorization.clients.base import JSONServiceClient
from checkout_authorization.clients.schemas import (
    CheckCodeRequest,
    CheckCodeResponse,
    SendCodeRequest,
    SendCodeResponse,
)
from checkout_authorization.logging_config import mask_email
from checkout_authorization.models.exceptions import InvalidEmail, RateLimited, ServiceError

logger = structlog.get_logger(__name__)


class VerifyResult(str, Enum):
    """Outcome of a verify-code call."""

    OK = "OK"
    CODE_MISMATCH = "CODE_MISMATCH"
    CODE_EXPIRED = "CODE_EXPIRED"
    VERIFICATION_NOT_FOUND = "VERIFICATION_NOT_FOUND"

    @classmethod
    def from_reason(cls, reason: str | None) -> "VerifyResult":
        """Map a server reason string; unknown reasons count as not found."""
        normalized = (reason or "").strip().upper().replace("-", "_").replace(" ", "_")
        try:
            result = cls(normalized)
        except ValueError:
            return cls.VERIFICATION_NOT_FOUND
        return cls.VERIFICATION_NOT_FOUND if result is cls.OK else result


class VerificationGatewayClient(JSONServiceClient):
    """
    Client for the verification service's send/check endpoints.

    The server owns code expiry, attempt limits and single-use redemption.
    This client reports exactly what the check endpoint says and never
    assumes a code is still valid.
    """

    service_name = "verification"

    async def request_code(self, email: str, subject_id: str) -> str:
        """
        Ask the service to email a one-time code.

        Args:
            email: Normalized (lowercase) email address
            subject_id: Identifier of the thing being paid for

        Returns:
            The verification id needed to redeem the code

        Raises:
            InvalidEmail: 400/422 - the service rejected the address
            RateLimited: 429 - too many code requests
            ServiceError: 5xx, timeout, transport error or malformed body
        """
        request = SendCodeRequest(email=email, subject_id=subject_id)

        logger.info(
            "verification_code_request",
            subject_id=subject_id,
            email=mask_email(email),
        )

        try:
            response, correlation_id = await self._post("/verification/send", request.to_wire())
        except httpx.TimeoutException as e:
            logger.error("verification_service_timeout", subject_id=subject_id, error=str(e))
            raise ServiceError("Verification service timeout") from e
        except httpx.RequestError as e:
            logger.error("verification_service_request_error", subject_id=subject_id, error=str(e))
            raise ServiceError(f"Verification service request error: {e}") from e

        if response.status_code in (400, 422):
            logger.warning(
                "verification_email_rejected",
                subject_id=subject_id,
                correlation_id=correlation_id,
            )
            raise InvalidEmail("Verification service rejected the email address")

        if response.status_code == 429:
            logger.warning(
                "verification_rate_limited",
                subject_id=subject_id,
                correlation_id=correlation_id,
            )
            raise RateLimited("Verification service rate limit exceeded")

        if response.status_code != 200:
            logger.error(
                "verification_service_error",
                status_code=response.status_code,
                subject_id=subject_id,
                correlation_id=correlation_id,
            )
            raise ServiceError(
                f"Verification service unavailable (status: {response.status_code})"
            )

        try:
            body = SendCodeResponse.model_validate(response.json())
        except (ValueError, SchemaError) as e:
            logger.error(
                "verification_send_malformed_response",
                subject_id=subject_id,
                correlation_id=correlation_id,
            )
            raise ServiceError("Malformed response from verification service") from e

        logger.info(
            "verification_code_sent",
            subject_id=subject_id,
            correlation_id=correlation_id,
            expires_in=body.expires_in,
        )
        return body.verification_id

    async def verify_code(self, verification_id: str, code: str) -> VerifyResult:
        """
        Redeem a one-time code.

        Non-ok outcomes are returned, not raised. Callers must treat every
        non-OK value the same way towards the customer.

        Raises:
            ServiceError: 5xx, timeout, transport error or malformed body
        """
        request = CheckCodeRequest(verification_id=verification_id, code=code)

        try:
            response, correlation_id = await self._post("/verification/check", request.to_wire())
        except httpx.TimeoutException as e:
            logger.error("verification_service_timeout", error=str(e))
            raise ServiceError("Verification service timeout") from e
        except httpx.RequestError as e:
            logger.error("verification_service_request_error", error=str(e))
            raise ServiceError(f"Verification service request error: {e}") from e

        if response.status_code == 404:
            result = VerifyResult.VERIFICATION_NOT_FOUND
        elif response.status_code == 429:
            # Attempt limit reached; the code can no longer be redeemed
            result = VerifyResult.CODE_EXPIRED
        elif response.status_code >= 500:
            logger.error(
                "verification_service_error",
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            raise ServiceError(
                f"Verification service unavailable (status: {response.status_code})"
            )
        elif response.status_code in (200, 400):
            try:
                body = CheckCodeResponse.model_validate(response.json())
            except (ValueError, SchemaError) as e:
                if response.status_code == 400:
                    body = CheckCodeResponse(ok=False)
                else:
                    logger.error(
                        "verification_check_malformed_response",
                        correlation_id=correlation_id,
                    )
                    raise ServiceError("Malformed response from verification service") from e
            if body.ok and response.status_code == 200:
                result = VerifyResult.OK
            elif body.reason:
                result = VerifyResult.from_reason(body.reason)
            else:
                result = VerifyResult.CODE_MISMATCH
        else:
            logger.error(
                "verification_check_unexpected_status",
                status_code=response.status_code,
                correlation_id=correlation_id,
            )
            raise ServiceError(
                f"Unexpected verification service status: {response.status_code}"
            )

        logger.info(
            "verification_code_checked",
            result=result.value,
            correlation_id=correlation_id,
        )
        return result
