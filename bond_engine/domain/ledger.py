"""Payment ledger - installment status transitions, totals and overdue checks"""

import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from bond_engine.domain.exceptions import InvalidPlanInput, InvalidTransition, NotFound
from bond_engine.domain.installments import generate_plan
from bond_engine.domain.models import (
    BondCase,
    Installment,
    InstallmentSource,
    InstallmentStatus,
    LedgerTotals,
)
from bond_engine.utils.money import ZERO, MoneyLike, sum_money, to_money


def ensure_pending(installment: Installment, target: InstallmentStatus) -> None:
    """Raise InvalidTransition unless the installment can still change"""
    if not installment.is_pending:
        raise InvalidTransition(installment.id, installment.status.value, target.value)


def is_overdue(installment: Installment, today: date) -> bool:
    return (
        installment.status == InstallmentStatus.PENDING
        and installment.due_date is not None
        and installment.due_date < today
    )


def compute_totals(case: BondCase, installments: Iterable[Installment]) -> LedgerTotals:
    """
    Paid to date, scheduled total and outstanding balance for a case.

    balance is measured against the case's stored premium when one is set,
    otherwise against everything scheduled (non-cancelled).
    """
    items = list(installments)
    paid = sum_money(i.amount for i in items if i.status == InstallmentStatus.PAID)
    scheduled = sum_money(i.amount for i in items if i.status != InstallmentStatus.CANCELLED)

    premium = to_money(case.premium)
    basis = premium if premium > 0 else scheduled
    return LedgerTotals(paid=paid, scheduled=scheduled, balance=max(basis - paid, ZERO))


def order_installments(installments: Iterable[Installment]) -> List[Installment]:
    """Due date ascending (undated last), then creation order"""
    return sorted(
        installments,
        key=lambda i: (i.due_date is None, i.due_date or date.min, i.sequence),
    )


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


class PaymentLedger:
    """One case's installment collection and the rules that change it"""

    def __init__(self, case: BondCase, installments: Iterable[Installment] = ()):
        self.case = case
        self._installments: List[Installment] = list(installments)

    @property
    def installments(self) -> List[Installment]:
        return order_installments(self._installments)

    def get(self, installment_id: uuid.UUID) -> Installment:
        for installment in self._installments:
            if installment.id == installment_id:
                return installment
        raise NotFound("Installment", installment_id)

    def _next_sequence(self) -> int:
        return max((i.sequence for i in self._installments), default=-1) + 1

    def _replace(self, updated: Installment) -> Installment:
        self._installments = [updated if i.id == updated.id else i for i in self._installments]
        return updated

    def record_manual(
        self,
        amount: MoneyLike,
        method: str = "cash",
        description: Optional[str] = None,
        status: InstallmentStatus | str = InstallmentStatus.PAID,
        due_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Installment:
        """
        Append an ad hoc payment to the case.

        Raises:
            InvalidPlanInput: Non-positive amount, unsupported status, or a
                paid entry without a payment method
        """
        value = to_money(amount)
        if value <= 0:
            raise InvalidPlanInput("amount must be greater than zero")

        try:
            status = InstallmentStatus(status)
        except ValueError as e:
            raise InvalidPlanInput(f"unknown payment status: {status!r}") from e
        if status not in (InstallmentStatus.PAID, InstallmentStatus.PENDING):
            raise InvalidPlanInput("manual payments are recorded as paid or pending")
        if status == InstallmentStatus.PAID and not method:
            raise InvalidPlanInput("payment_method is required for a paid entry")

        installment = Installment(
            amount=value,
            due_date=due_date,
            status=status,
            source=InstallmentSource.MANUAL,
            case_id=self.case.id,
            paid_at=_now(now) if status == InstallmentStatus.PAID else None,
            payment_method=method or None,
            description=description or f"{(method or 'manual').capitalize()} payment",
            sequence=self._next_sequence(),
        )
        self._installments.append(installment)
        return installment

    def mark_paid(
        self,
        installment_id: uuid.UUID,
        method: str = "cash",
        now: Optional[datetime] = None,
    ) -> Installment:
        installment = self.get(installment_id)
        ensure_pending(installment, InstallmentStatus.PAID)
        if not method:
            raise InvalidPlanInput("payment_method is required for a paid entry")
        return self._replace(
            replace(
                installment,
                status=InstallmentStatus.PAID,
                paid_at=_now(now),
                payment_method=method,
            )
        )

    def mark_failed(self, installment_id: uuid.UUID) -> Installment:
        installment = self.get(installment_id)
        ensure_pending(installment, InstallmentStatus.FAILED)
        return self._replace(replace(installment, status=InstallmentStatus.FAILED))

    def cancel(self, installment_id: uuid.UUID) -> Installment:
        installment = self.get(installment_id)
        ensure_pending(installment, InstallmentStatus.CANCELLED)
        return self._replace(replace(installment, status=InstallmentStatus.CANCELLED))

    def cancel_pending(self) -> List[Installment]:
        """Cancel every still-pending installment; history is kept"""
        cancelled = []
        for installment in list(self._installments):
            if installment.is_pending:
                cancelled.append(self.cancel(installment.id))
        return cancelled

    def restructure(
        self,
        total_amount: MoneyLike,
        down_payment: MoneyLike,
        installment_amount: MoneyLike,
        frequency: str,
        start_date: date | None,
    ) -> List[Installment]:
        """
        Replace the pending schedule with a freshly generated plan.

        The new plan is validated before anything is cancelled, so bad
        input leaves the ledger untouched.
        """
        plan = generate_plan(
            total_amount,
            down_payment,
            installment_amount,
            frequency,
            start_date,
            case_id=self.case.id,
        )
        self.cancel_pending()

        offset = self._next_sequence()
        plan = [replace(i, sequence=offset + i.sequence) for i in plan]
        self._installments.extend(plan)
        return plan

    def totals(self) -> LedgerTotals:
        return compute_totals(self.case, self._installments)

    def is_overdue(self, installment: Installment, today: date) -> bool:
        return is_overdue(installment, today)

    def overdue(self, today: date) -> List[Installment]:
        return [i for i in self.installments if is_overdue(i, today)]

    def has_overdue(self, today: date) -> bool:
        return any(is_overdue(i, today) for i in self._installments)

    def next_due(self, today: date) -> Optional[date]:
        """Earliest pending due date on or after today"""
        upcoming = [
            i.due_date
            for i in self._installments
            if i.is_pending and i.due_date is not None and i.due_date >= today
        ]
        return min(upcoming, default=None)
