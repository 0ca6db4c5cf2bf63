"""Pydantic models for the verification and payment service JSON APIs.

Field names are snake_case in Python and camelCase on the wire.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model serializing to camelCase and ignoring unknown fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class SendCodeRequest(WireModel):
    """POST /verification/send"""

    email: str
    subject_id: str


class SendCodeResponse(WireModel):
    verification_id: str = Field(..., min_length=1)
    expires_in: Optional[int] = Field(None, description="Seconds until the code expires")


class CheckCodeRequest(WireModel):
    """POST /verification/check"""

    verification_id: str
    code: str


class CheckCodeResponse(WireModel):
    ok: bool
    reason: Optional[str] = None


class PaymentItemJSON(WireModel):
    type: str
    label: str
    amount: Decimal = Field(..., description="Amount in major units", ge=0)

    @field_serializer("amount")
    def _serialize_amount(self, amount: Decimal) -> float:
        return float(amount)


class CreateIntentRequest(WireModel):
    """POST /payment/intent"""

    subject_id: str
    amount: int = Field(..., description="Amount in cents", gt=0)
    currency: str
    brand: str
    verification_id: str
    email: str
    payment_items: list[PaymentItemJSON] = Field(default_factory=list)


class CreateIntentResponse(WireModel):
    client_secret: str = Field(..., min_length=1)
    payment_intent_id: Optional[str] = None


class ConfirmPaymentRequest(WireModel):
    """POST /payment/confirm"""

    subject_id: str
    payment_intent_id: str
    brand: str
    verification_id: str


class ConfirmPaymentResponse(WireModel):
    ok: bool = False


class PaymentBreakdownJSON(WireModel):
    items: list[PaymentItemJSON]
    total: Decimal


class PaymentDetailsResponse(WireModel):
    """GET /payment/details/{subjectId}"""

    payment_breakdown: PaymentBreakdownJSON
