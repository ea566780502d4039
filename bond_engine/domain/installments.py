"""Installment plan generation for premium repayment"""

import uuid
from datetime import date
from typing import List, Optional

from bond_engine.domain.exceptions import InvalidPlanInput
from bond_engine.domain.models import Installment, InstallmentSource, InstallmentStatus
from bond_engine.utils.date_utils import FREQUENCIES, add_period
from bond_engine.utils.money import ZERO, MoneyLike, to_money


def installment_count(remaining: MoneyLike, installment_amount: MoneyLike) -> int:
    """ceil(remaining / installment_amount), 0 when nothing remains"""
    balance = to_money(remaining)
    per_installment = to_money(installment_amount)
    if balance <= 0 or per_installment <= 0:
        return 0
    whole, leftover = divmod(balance, per_installment)
    return int(whole) + (1 if leftover else 0)


def generate_plan(
    total_amount: MoneyLike,
    down_payment: MoneyLike,
    installment_amount: MoneyLike,
    frequency: str,
    start_date: date | None,
    case_id: Optional[uuid.UUID] = None,
) -> List[Installment]:
    """
    Expand a premium balance into dated pending installments.

    Requirements:
    - total_amount > 0, installment_amount > 0, start_date and frequency present
    - First installment due on start_date, then one per frequency period
    - Last installment carries the remainder, so the plan sums exactly to
      total_amount - down_payment (no rounding drift)

    Args:
        total_amount: Amount being financed, usually the premium
        down_payment: Portion collected up front (not part of the plan)
        installment_amount: Amount billed per installment
        frequency: "weekly", "biweekly" or "monthly"
        start_date: First due date
        case_id: Case the installments belong to

    Raises:
        InvalidPlanInput: Missing or non-positive required fields

    Example:
        total $1,200, down $200, $334.78 weekly from 2024-01-01
        -> $334.78 (01-01), $334.78 (01-08), $330.44 (01-15)
    """
    try:
        total = to_money(total_amount)
        down = to_money(down_payment)
        per_installment = to_money(installment_amount)
    except ValueError as e:
        raise InvalidPlanInput(str(e)) from e

    if total <= 0:
        raise InvalidPlanInput("total_amount must be greater than zero")
    if per_installment <= 0:
        raise InvalidPlanInput("installment_amount must be greater than zero")
    if down < 0:
        raise InvalidPlanInput("down_payment cannot be negative")
    if start_date is None:
        raise InvalidPlanInput("start_date is required")
    if frequency not in FREQUENCIES:
        raise InvalidPlanInput(f"frequency must be one of {', '.join(FREQUENCIES)}")

    remaining = max(total - down, ZERO)
    count = installment_count(remaining, per_installment)

    installments = []
    for i in range(count):
        # Last installment absorbs the remainder to keep the total exact
        is_last = i == count - 1
        amount = remaining - per_installment * (count - 1) if is_last else per_installment

        installments.append(
            Installment(
                amount=amount,
                due_date=add_period(start_date, frequency, times=i),
                status=InstallmentStatus.PENDING,
                source=InstallmentSource.PLAN,
                case_id=case_id,
                description=f"Payment {i + 1} of {count}",
                sequence=i,
            )
        )

    return installments
