"""Unit tests for aging, profit and loss, and dashboard reporting"""

import uuid
import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from bond_engine.domain.models import (
    BankTransaction,
    BondCase,
    Expense,
    Installment,
    InstallmentStatus,
)
from bond_engine.domain.reporting import (
    bucket_overdue,
    cash_flow,
    dashboard_summary,
    empty_buckets,
    outstanding_bonds,
    profit_and_loss,
    upcoming_reminders,
)


def _late(today: date, days: int, amount: str = "100") -> Installment:
    return Installment(amount=Decimal(amount), due_date=today - timedelta(days=days))


def _paid(amount: str, paid_on: date, case_id=None) -> Installment:
    return Installment(
        amount=Decimal(amount),
        due_date=paid_on,
        status=InstallmentStatus.PAID,
        paid_at=datetime(paid_on.year, paid_on.month, paid_on.day, 12, tzinfo=timezone.utc),
        payment_method="cash",
        case_id=case_id,
    )


def _case(bond: str, premium: str | None = None, status: str = "active", created: date | None = None):
    return BondCase(
        id=uuid.uuid4(),
        bond_amount=Decimal(bond),
        premium=Decimal(premium) if premium else None,
        status=status,
        created_at=datetime(created.year, created.month, created.day, tzinfo=timezone.utc) if created else None,
    )


@pytest.mark.parametrize(
    "days_late,label",
    [
        (1, "1-30 days"),
        (30, "1-30 days"),
        (31, "31-60 days"),
        (60, "31-60 days"),
        (61, "61-90 days"),
        (90, "61-90 days"),
        (91, "90+ days"),
        (400, "90+ days"),
    ],
)
def test_bucket_boundaries(today, days_late, label):
    buckets = bucket_overdue([_late(today, days_late)], today)

    populated = [b for b in buckets if b.count]
    assert [b.label for b in populated] == [label]
    assert populated[0].installments[0].days_overdue == days_late


def test_buckets_always_present(today):
    buckets = bucket_overdue([], today)

    assert [b.label for b in buckets] == ["1-30 days", "31-60 days", "61-90 days", "90+ days"]
    assert all(b.count == 0 and b.total == Decimal("0.00") for b in buckets)


def test_buckets_ignore_paid_undated_and_not_yet_due(today):
    installments = [
        _late(today, 0),
        Installment(amount=Decimal("50"), due_date=None),
        Installment(amount=Decimal("50"), due_date=today - timedelta(days=10), status=InstallmentStatus.PAID),
        Installment(amount=Decimal("50"), due_date=today - timedelta(days=10), status=InstallmentStatus.CANCELLED),
        _late(today, -5),
    ]

    assert sum(b.count for b in bucket_overdue(installments, today)) == 0


def test_bucket_totals(today):
    buckets = bucket_overdue(
        [_late(today, 5, "100"), _late(today, 12, "25.50"), _late(today, 45, "75")],
        today,
    )

    assert buckets[0].count == 2
    assert buckets[0].total == Decimal("125.50")
    assert buckets[1].total == Decimal("75")


def test_custom_boundaries(today):
    buckets = bucket_overdue([_late(today, 7), _late(today, 8), _late(today, 15)], today, boundaries=(7, 14))

    assert [b.label for b in buckets] == ["1-7 days", "8-14 days", "14+ days"]
    assert [b.count for b in buckets] == [1, 1, 1]


def test_empty_buckets_open_ended():
    buckets = empty_buckets((30, 60, 90))

    assert buckets[-1].min_days == 91
    assert buckets[-1].max_days is None


def test_profit_and_loss_empty_period():
    report = profit_and_loss(date(2024, 1, 1), date(2024, 1, 31), [], [], [])

    assert report.premiums_earned == Decimal("0.00")
    assert report.payments_collected == Decimal("0.00")
    assert report.other_deposits == Decimal("0.00")
    assert report.expenses_by_category == {}
    assert report.total_revenue == Decimal("0.00")
    assert report.net_income == Decimal("0.00")


def test_profit_and_loss():
    start, end = date(2024, 6, 1), date(2024, 6, 30)
    cases = [
        _case("10000", status="active", created=date(2024, 6, 1)),  # derived 1,200
        _case("5000", premium="550", status="completed", created=date(2024, 6, 30)),
        _case("8000", status="cancelled", created=date(2024, 6, 10)),
        _case("9000", status="active", created=date(2024, 5, 31)),
    ]
    installments = [
        _paid("300", date(2024, 6, 1)),
        _paid("150", date(2024, 6, 30)),
        _paid("999", date(2024, 7, 1)),
        Installment(amount=Decimal("400"), due_date=date(2024, 6, 15)),
    ]
    expenses = [
        Expense(date(2024, 6, 3), Decimal("1500"), "Rent"),
        Expense(date(2024, 6, 4), Decimal("200"), "Advertising"),
        Expense(date(2024, 6, 5), Decimal("40"), None),
        Expense(date(2024, 6, 20), Decimal("60"), "Advertising"),
        Expense(date(2024, 7, 2), Decimal("500"), "Rent"),
    ]
    transactions = [
        BankTransaction(date(2024, 6, 7), Decimal("250"), "deposit"),
        BankTransaction(date(2024, 6, 8), Decimal("100"), "withdrawal"),
        BankTransaction(date(2024, 5, 8), Decimal("900"), "deposit"),
    ]

    report = profit_and_loss(start, end, cases, installments, expenses, transactions)

    assert report.premiums_earned == Decimal("1750.00")
    assert report.payments_collected == Decimal("450.00")
    assert report.other_deposits == Decimal("250.00")
    assert list(report.expenses_by_category) == ["Advertising", "Rent", "Uncategorized", "Withdrawals"]
    assert report.expenses_by_category["Advertising"] == Decimal("260.00")
    assert report.total_revenue == Decimal("2450.00")
    assert report.total_expenses == Decimal("1900.00")
    assert report.net_income == Decimal("550.00")


def test_outstanding_bonds():
    open_case = _case("10000", premium="1000")
    paid_off = _case("5000", premium="600", status="approved")
    closed = _case("20000", status="completed")
    installments = [
        _paid("400", date(2024, 6, 1), case_id=open_case.id),
        _paid("700", date(2024, 6, 1), case_id=paid_off.id),
        _paid("2400", date(2024, 6, 1), case_id=closed.id),
    ]

    report = outstanding_bonds([open_case, paid_off, closed], installments)

    assert [b.case_id for b in report.bonds] == [open_case.id, paid_off.id]
    assert report.bonds[0].remaining == Decimal("600.00")
    assert report.bonds[1].remaining == Decimal("0.00")
    assert report.total_liability == Decimal("15000.00")
    assert report.total_premium_receivable == Decimal("600.00")


def test_cash_flow(today):
    installments = [_paid("100", date(2024, 6, 2)), _paid("50", date(2024, 1, 31)), _paid("75", date(2023, 12, 31))]
    expenses = [Expense(date(2024, 6, 30), Decimal("30")), Expense(date(2024, 3, 1), Decimal("20"))]

    flow = cash_flow(installments, expenses, today)

    assert [m.month for m in flow] == [date(2024, month, 1) for month in range(1, 7)]
    assert flow[0].income == Decimal("50.00")
    assert flow[2].expenses == Decimal("20.00")
    assert flow[-1].income == Decimal("100.00")
    assert flow[-1].expenses == Decimal("30.00")


def test_dashboard_summary(today):
    active = _case("10000", premium="1000")
    closed = _case("5000", status="completed")
    installments = [
        _paid("300", date(2024, 6, 1), case_id=active.id),
        _late(today, 3, "100"),
        _late(today, 40, "100"),
    ]
    expenses = [Expense(date(2024, 2, 1), Decimal("120")), Expense(date(2023, 12, 1), Decimal("999"))]

    summary = dashboard_summary([active, closed], installments, expenses, today)

    assert summary.total_active_bonds == 1
    assert summary.total_bond_liability == Decimal("10000.00")
    assert summary.total_premium_earned == Decimal("1000.00")
    assert summary.total_collected == Decimal("300.00")
    assert summary.total_outstanding == Decimal("700.00")
    assert summary.total_expenses == Decimal("120.00")
    assert summary.net_income == Decimal("180.00")
    assert summary.overdue_payments == 2
    assert len(summary.cash_flow) == 6


def test_upcoming_reminders(today):
    def due_in(days):
        return Installment(amount=Decimal("50"), due_date=today + timedelta(days=days))

    installments = [due_in(7), due_in(1), due_in(2), due_in(3), due_in(0)]
    installments.append(
        Installment(amount=Decimal("50"), due_date=today + timedelta(days=1), status=InstallmentStatus.PAID)
    )

    reminders = upcoming_reminders(installments, today)

    assert [r.days_until_due for r in reminders] == [1, 3, 7]
