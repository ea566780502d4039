"""Aging buckets, profit and loss, and the Books dashboard figures"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig
from bond_engine.domain.ledger import is_overdue
from bond_engine.domain.models import (
    EARNING_CASE_STATUSES,
    OPEN_CASE_STATUSES,
    AgingBucket,
    BankTransaction,
    BondCase,
    CashFlowMonth,
    DashboardSummary,
    Expense,
    Installment,
    InstallmentStatus,
    OutstandingBond,
    OutstandingReport,
    OverdueInstallment,
    PaymentReminder,
    PeriodReport,
)
from bond_engine.domain.premium import case_premium
from bond_engine.utils.date_utils import add_months, days_between, month_start
from bond_engine.utils.money import ZERO, sum_money, to_money

DEFAULT_AGING_BOUNDARIES = (30, 60, 90)
DEFAULT_REMINDER_LEAD_DAYS = (1, 3, 7)

UNCATEGORIZED = "Uncategorized"
WITHDRAWALS = "Withdrawals"


def _in_range(day: Optional[date], start: date, end: date) -> bool:
    return day is not None and start <= day <= end


def _as_date(value: date | datetime | None) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _is_paid(installment: Installment) -> bool:
    return installment.status == InstallmentStatus.PAID


def empty_buckets(boundaries: Sequence[int] = DEFAULT_AGING_BOUNDARIES) -> List[AgingBucket]:
    """All buckets for the given boundaries, ascending, none populated"""
    buckets = []
    lower = 1
    for upper in sorted(boundaries):
        buckets.append(AgingBucket(label=f"{lower}-{upper} days", min_days=lower, max_days=upper))
        lower = upper + 1
    open_label = f"{lower - 1}+ days" if boundaries else "1+ days"
    buckets.append(AgingBucket(label=open_label, min_days=lower, max_days=None))
    return buckets


def bucket_overdue(
    installments: Iterable[Installment],
    today: date,
    boundaries: Sequence[int] = DEFAULT_AGING_BOUNDARIES,
) -> List[AgingBucket]:
    """
    Group overdue pending installments by how many days late they are.

    Every bucket is returned even when empty so displays stay stable.
    An installment exactly on a boundary lands in the bucket that boundary
    closes: 30 days late is "1-30 days", 31 is "31-60 days".
    """
    buckets = empty_buckets(boundaries)
    overdue = sorted(
        (i for i in installments if is_overdue(i, today)),
        key=lambda i: (i.due_date, i.sequence),
    )
    for installment in overdue:
        days_overdue = days_between(installment.due_date, today)
        for bucket in buckets:
            if bucket.max_days is None or days_overdue <= bucket.max_days:
                bucket.installments.append(OverdueInstallment(installment, days_overdue))
                break
    return buckets


def profit_and_loss(
    start_date: date,
    end_date: date,
    cases: Iterable[BondCase],
    installments: Iterable[Installment],
    expenses: Iterable[Expense],
    transactions: Iterable[BankTransaction] = (),
    config: OrgConfig = DEFAULT_ORG_CONFIG,
) -> PeriodReport:
    """
    Revenue and expenses for [start_date, end_date], both ends inclusive.

    Revenue:
    - premiums_earned: accrual figure, premium of cases opened in range
    - payments_collected: installments paid in range
    - other_deposits: bank deposits in range

    Expenses are grouped by category; bank withdrawals count as their own
    "Withdrawals" category.
    """
    premiums_earned = sum_money(
        case_premium(case, config)
        for case in cases
        if case.status in EARNING_CASE_STATUSES
        and _in_range(_as_date(case.created_at), start_date, end_date)
    )

    payments_collected = sum_money(
        i.amount
        for i in installments
        if _is_paid(i) and _in_range(_as_date(i.paid_at), start_date, end_date)
    )

    other_deposits = ZERO
    by_category: Dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if not _in_range(txn.transaction_date, start_date, end_date):
            continue
        if txn.kind == "deposit":
            other_deposits += to_money(txn.amount)
        elif txn.kind == "withdrawal":
            by_category[WITHDRAWALS] += to_money(txn.amount)

    for expense in expenses:
        if _in_range(expense.expense_date, start_date, end_date):
            by_category[expense.category or UNCATEGORIZED] += to_money(expense.amount)

    return PeriodReport(
        start_date=start_date,
        end_date=end_date,
        premiums_earned=premiums_earned,
        payments_collected=payments_collected,
        other_deposits=other_deposits,
        expenses_by_category=dict(sorted(by_category.items())),
    )


def _collected_by_case(installments: Iterable[Installment]) -> Dict[object, Decimal]:
    collected: Dict[object, Decimal] = defaultdict(lambda: ZERO)
    for installment in installments:
        if _is_paid(installment):
            collected[installment.case_id] += installment.amount
    return collected


def outstanding_bonds(
    cases: Iterable[BondCase],
    installments: Iterable[Installment],
    config: OrgConfig = DEFAULT_ORG_CONFIG,
) -> OutstandingReport:
    """Open bonds with their premium still to be collected"""
    collected = _collected_by_case(installments)

    bonds = []
    for case in cases:
        if case.status not in OPEN_CASE_STATUSES:
            continue
        premium = case_premium(case, config)
        paid = collected.get(case.id, ZERO)
        bonds.append(
            OutstandingBond(
                case_id=case.id,
                bond_amount=to_money(case.bond_amount),
                premium=premium,
                collected=paid,
                remaining=max(premium - paid, ZERO),
            )
        )

    return OutstandingReport(
        bonds=bonds,
        total_liability=sum_money(b.bond_amount for b in bonds),
        total_premium_receivable=sum_money(b.remaining for b in bonds),
    )


def cash_flow(
    installments: Iterable[Installment],
    expenses: Iterable[Expense],
    today: date,
    months: int = 6,
) -> List[CashFlowMonth]:
    """Income vs expenses per calendar month, oldest month first, ending with today's"""
    paid = [(_as_date(i.paid_at), i.amount) for i in installments if _is_paid(i) and i.paid_at]
    spent = [(e.expense_date, to_money(e.amount)) for e in expenses]

    current = month_start(today)
    flow = []
    for back in range(months - 1, -1, -1):
        first = add_months(current, -back)
        following = add_months(first, 1)
        flow.append(
            CashFlowMonth(
                month=first,
                income=sum_money(amount for day, amount in paid if first <= day < following),
                expenses=sum_money(amount for day, amount in spent if first <= day < following),
            )
        )
    return flow


def dashboard_summary(
    cases: Iterable[BondCase],
    installments: Iterable[Installment],
    expenses: Iterable[Expense],
    today: date,
    config: OrgConfig = DEFAULT_ORG_CONFIG,
) -> DashboardSummary:
    """
    Headline Books figures.

    Expenses and net income cover the calendar year to date; collected
    covers every paid installment.
    """
    installments = list(installments)
    expenses = list(expenses)
    active = [c for c in cases if c.status in OPEN_CASE_STATUSES]

    premium_earned = sum_money(case_premium(c, config) for c in active)
    collected = sum_money(i.amount for i in installments if _is_paid(i))
    year_expenses = sum_money(
        to_money(e.amount)
        for e in expenses
        if _in_range(e.expense_date, date(today.year, 1, 1), today)
    )

    return DashboardSummary(
        total_active_bonds=len(active),
        total_bond_liability=sum_money(to_money(c.bond_amount) for c in active),
        total_premium_earned=premium_earned,
        total_collected=collected,
        total_outstanding=max(premium_earned - collected, ZERO),
        total_expenses=year_expenses,
        net_income=collected - year_expenses,
        overdue_payments=sum(1 for i in installments if is_overdue(i, today)),
        cash_flow=cash_flow(installments, expenses, today),
    )


def upcoming_reminders(
    installments: Iterable[Installment],
    today: date,
    lead_days: Sequence[int] = DEFAULT_REMINDER_LEAD_DAYS,
) -> List[PaymentReminder]:
    """Pending installments due exactly N days from today, for each N in lead_days"""
    leads = set(lead_days)
    reminders = [
        PaymentReminder(installment=i, days_until_due=days_between(today, i.due_date))
        for i in installments
        if i.is_pending and i.due_date is not None and days_between(today, i.due_date) in leads
    ]
    return sorted(reminders, key=lambda r: (r.days_until_due, r.installment.sequence))
