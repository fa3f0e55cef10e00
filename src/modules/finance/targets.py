"""PaymentTarget: the tagged reference from a payment to one bill."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.exceptions import NotFoundException
from src.models.enums import PaymentDirection, PaymentTargetType
from src.modules.finance.constants import (
    BILL_MODELS,
    DEFAULT_DIRECTIONS,
    DOCUMENT_PREFIXES,
    Bill,
    BillModel,
)


@dataclass(frozen=True)
class PaymentTarget:
    target_type: PaymentTargetType
    target_id: uuid.UUID

    @property
    def model(self) -> BillModel:
        return BILL_MODELS[self.target_type]

    @property
    def default_direction(self) -> PaymentDirection:
        return DEFAULT_DIRECTIONS[self.target_type]

    @property
    def document_prefix(self) -> str:
        return DOCUMENT_PREFIXES[self.target_type]

    @property
    def label(self) -> str:
        return self.target_type.value.replace("_", " ").lower()

    async def load(self, db: AsyncSession, for_update: bool = False) -> Bill:
        query = select(self.model).where(self.model.id == self.target_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        bill = result.scalar_one_or_none()
        if bill is None:
            raise NotFoundException(f"{self.label.capitalize()} {self.target_id} not found")
        return bill
