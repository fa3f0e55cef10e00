"""Shared response schemas: error envelope and fixed-point decimal fields."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer


def _fixed(places: int):
    quantum = Decimal(1).scaleb(-places)

    def serialize(value: Decimal) -> str:
        return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))

    return serialize


# Money crosses the API boundary as a 2-dp string, rates as a 4-dp string
Money = Annotated[Decimal, PlainSerializer(_fixed(2), return_type=str, when_used="json")]
Rate = Annotated[Decimal, PlainSerializer(_fixed(4), return_type=str, when_used="json")]


class ErrorDetail(BaseModel):
    """A single field-level or contextual error detail."""

    field: str | None = None
    message: str


class ErrorBody(BaseModel):
    """Structured error body returned inside every error response."""

    code: str
    message: str
    details: list[ErrorDetail] = []
    request_id: str = Field(alias="requestId")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Top-level error envelope."""

    error: ErrorBody
