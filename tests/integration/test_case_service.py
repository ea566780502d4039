"""Integration tests for case plans and installment transitions against the database"""

import uuid
import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from prometheus_client import REGISTRY
from sqlalchemy.orm import Session
from bond_engine.domain.exceptions import InvalidPlanInput, InvalidTransition, NotFound
from bond_engine.domain.models import InstallmentSource, InstallmentStatus
from bond_engine.domain.premium import compute_premium
from bond_engine.domain.terms import suggest_terms
from bond_engine.infrastructure.database.models import BondCaseRecord
from bond_engine.infrastructure.database.repositories import InstallmentRepository
from bond_engine.services.cases import BondCaseService


@pytest.fixture
def case_id(case_service: BondCaseService) -> uuid.UUID:
    return case_service.open_case(bond_amount=10_000, premium=1200, down_payment=200).id


@pytest.fixture
def plan(case_service: BondCaseService, case_id: uuid.UUID):
    return case_service.create_plan(case_id, 1200, 200, "334.78", "weekly", date(2024, 1, 1))


def test_create_plan_persists_schedule(case_service: BondCaseService, db: Session, case_id, plan):
    """$1,000 financed at $334.78 a week"""
    schedule = case_service.ledger(case_id).installments

    assert [i.amount for i in schedule] == [Decimal("334.78"), Decimal("334.78"), Decimal("330.44")]
    assert [i.due_date for i in schedule] == [date(2024, 1, 1), date(2024, 1, 8), date(2024, 1, 15)]
    assert all(i.source == InstallmentSource.PLAN for i in schedule)

    record = db.get(BondCaseRecord, case_id)
    assert record.payment_plan == "weekly"
    assert record.payment_amount_cents == 33478
    assert record.down_payment_cents == 20000
    assert record.next_payment_date == date(2024, 1, 1)


def test_schedule_wire_form(case_service: BondCaseService, case_id, plan):
    schedule = case_service.schedule(case_id)

    assert [s.amount_cents for s in schedule] == [33478, 33478, 33044]
    assert schedule[0].status == "pending"
    assert schedule[0].case_id == str(case_id)


def test_mark_paid(case_service: BondCaseService, db: Session, case_id, plan):
    paid = case_service.mark_paid(plan[0].id, "card", now=datetime(2024, 1, 1, 10, tzinfo=timezone.utc))

    assert paid.status == InstallmentStatus.PAID
    assert paid.payment_method == "card"
    assert paid.paid_at is not None
    assert db.get(BondCaseRecord, case_id).next_payment_date == date(2024, 1, 8)

    totals = case_service.totals(case_id)
    assert totals.paid == Decimal("334.78")
    assert totals.balance == Decimal("865.22")


def test_mark_paid_twice_is_rejected(case_service: BondCaseService, plan):
    case_service.mark_paid(plan[0].id, "cash")

    with pytest.raises(InvalidTransition):
        case_service.mark_paid(plan[0].id, "cash")
    with pytest.raises(InvalidTransition):
        case_service.cancel(plan[0].id)


def test_unknown_ids(case_service: BondCaseService):
    with pytest.raises(NotFound):
        case_service.mark_paid(uuid.uuid4(), "cash")
    with pytest.raises(NotFound):
        case_service.create_plan(uuid.uuid4(), 1200, 200, 100, "weekly", date(2024, 1, 1))
    with pytest.raises(NotFound):
        case_service.get_case(uuid.uuid4())


def test_guarded_update_loses_to_earlier_change(case_service: BondCaseService, db: Session, plan):
    """A transition that read the row while pending still fails once it is cancelled"""
    case_service.cancel(plan[1].id)

    with pytest.raises(InvalidTransition) as exc_info:
        InstallmentRepository(db).transition(plan[1].id, InstallmentStatus.PAID, payment_method="cash")
    db.rollback()

    assert exc_info.value.current_status == "cancelled"
    assert case_service.ledger(plan[1].case_id).get(plan[1].id).status == InstallmentStatus.CANCELLED


def test_restructure_keeps_paid_history(case_service: BondCaseService, case_id, plan):
    case_service.mark_paid(plan[0].id, "cash")

    new_plan = case_service.create_plan(case_id, 1200, "534.78", 250, "biweekly", date(2024, 2, 1))
    ledger = case_service.ledger(case_id)

    assert ledger.get(plan[0].id).status == InstallmentStatus.PAID
    assert ledger.get(plan[1].id).status == InstallmentStatus.CANCELLED
    assert ledger.get(plan[2].id).status == InstallmentStatus.CANCELLED
    assert [i.amount for i in new_plan] == [Decimal("250.00"), Decimal("250.00"), Decimal("165.22")]
    assert min(i.sequence for i in new_plan) == 3

    active = [i for i in ledger.installments if i.status != InstallmentStatus.CANCELLED]
    assert ledger.totals().scheduled == sum(i.amount for i in active) == Decimal("1000.00")


def test_invalid_plan_changes_nothing(case_service: BondCaseService, db: Session, case_id, plan):
    with pytest.raises(InvalidPlanInput):
        case_service.create_plan(case_id, 1200, 200, 0, "weekly", date(2024, 2, 1))

    ledger = case_service.ledger(case_id)
    assert [i.id for i in ledger.installments] == [i.id for i in plan]
    assert all(i.is_pending for i in ledger.installments)
    assert db.get(BondCaseRecord, case_id).payment_plan == "weekly"


def test_record_manual_payment(case_service: BondCaseService, case_id, plan):
    entry = case_service.record_manual(case_id, 200, "cash", description="Down payment")

    assert entry.source == InstallmentSource.MANUAL
    assert entry.status == InstallmentStatus.PAID
    assert entry.due_date is None
    assert entry.sequence == 3

    ledger = case_service.ledger(case_id)
    assert ledger.installments[-1].id == entry.id
    assert ledger.totals().paid == Decimal("200.00")


def test_record_manual_rejects_zero(case_service: BondCaseService, case_id):
    with pytest.raises(InvalidPlanInput):
        case_service.record_manual(case_id, 0, "cash")

    assert case_service.ledger(case_id).installments == []


def test_cancel_pending(case_service: BondCaseService, db: Session, case_id, plan):
    case_service.mark_paid(plan[0].id, "cash")

    assert case_service.cancel_pending(case_id) == 2
    assert db.get(BondCaseRecord, case_id).next_payment_date is None
    assert case_service.cancel_pending(case_id) == 0


def test_mark_failed(case_service: BondCaseService, case_id, plan):
    failed = case_service.mark_failed(plan[0].id)

    assert failed.status == InstallmentStatus.FAILED
    assert case_service.overdue(case_id, date(2024, 1, 10)) == [case_service.ledger(case_id).get(plan[1].id)]


def test_update_bond_amount_keeps_explicit_premium(case_service: BondCaseService, case_id):
    case_service.update_bond_amount(case_id, 20_000)

    assert case_service.get_case(case_id).bond_amount == Decimal("20000.00")
    assert case_service.quote(case_id).premium == Decimal("1200.00")

    case_service.set_premium(case_id, None)
    assert case_service.quote(case_id).premium == Decimal("2400.00")


def test_apply_term(case_service: BondCaseService, db: Session):
    case = case_service.open_case(bond_amount=5_000)
    quote = compute_premium(case.bond_amount)
    term = suggest_terms(case.bond_amount, quote.remaining)[1]

    plan = case_service.apply_term(case.id, quote, term, date(2024, 3, 4))

    assert len(plan) == 6
    assert all(i.amount == Decimal("50.00") for i in plan)
    assert db.get(BondCaseRecord, case.id).down_payment_cents == 30000


def _sample(name: str, status: str) -> float:
    return REGISTRY.get_sample_value(name, {"status": status}) or 0.0


def test_manual_entries_are_not_counted_as_transitions(case_service: BondCaseService, case_id):
    transitions_before = _sample("bond_installment_transitions_total", "paid")
    manual_before = _sample("bond_manual_payments_total", "paid")

    case_service.record_manual(case_id, 75, "cash")
    case_service.record_manual(case_id, 50, "cash", status="pending", due_date=date(2024, 7, 1))

    assert _sample("bond_installment_transitions_total", "paid") == transitions_before
    assert REGISTRY.get_sample_value("bond_installment_transitions_total", {"status": "pending"}) is None
    assert _sample("bond_manual_payments_total", "paid") == manual_before + 1
    assert _sample("bond_manual_payments_total", "pending") >= 1


def test_negative_bond_amount_is_rejected(case_service: BondCaseService, case_id):
    with pytest.raises(InvalidPlanInput):
        case_service.update_bond_amount(case_id, "-500")
    with pytest.raises(InvalidPlanInput):
        case_service.open_case(bond_amount=-1)

    assert case_service.get_case(case_id).bond_amount == Decimal("10000.00")

    case_service.update_bond_amount(case_id, 0)
    assert case_service.get_case(case_id).bond_amount == Decimal("0.00")
