"""Pydantic schemas for data crossing the engine boundary"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from bond_engine.domain.models import Installment, PremiumQuote, TermOption
from bond_engine.utils.money import to_cents


class TermPayload(BaseModel):
    """One suggested term as sent to the recommendation service"""

    label: str
    amount: Decimal


class RecommendationRequest(BaseModel):
    """Body for the recommendation service; Decimals serialize as strings"""

    bond_amount: Decimal
    premium: Decimal
    down_payment: Decimal
    remaining: Decimal
    term_1: TermPayload
    term_2: TermPayload
    term_3: TermPayload

    @classmethod
    def build(cls, bond_amount: Decimal, quote: PremiumQuote, terms: List[TermOption]) -> "RecommendationRequest":
        payloads = [TermPayload(label=t.label, amount=t.amount) for t in terms]
        return cls(
            bond_amount=bond_amount,
            premium=quote.premium,
            down_payment=quote.down_payment,
            remaining=quote.remaining,
            term_1=payloads[0],
            term_2=payloads[1],
            term_3=payloads[2],
        )


class RecommendationResponse(BaseModel):
    """Recommendation service answer"""

    model_config = ConfigDict(extra="ignore")

    recommended_index: Literal[1, 2, 3] = Field(
        ..., validation_alias=AliasChoices("recommended_index", "recommendation")
    )
    reason: str = ""


class InstallmentSchema(BaseModel):
    """Single installment in wire form"""

    id: str
    case_id: Optional[str] = None
    due_date: Optional[date] = None
    amount: Decimal
    amount_cents: int
    status: str
    source: str
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_domain(cls, installment: Installment) -> "InstallmentSchema":
        return cls(
            id=str(installment.id),
            case_id=str(installment.case_id) if installment.case_id else None,
            due_date=installment.due_date,
            amount=installment.amount,
            amount_cents=to_cents(installment.amount),
            status=installment.status.value,
            source=installment.source.value,
            paid_at=installment.paid_at,
            payment_method=installment.payment_method,
            description=installment.description,
        )
