"""Data access layer for bond cases, installments and Books entries"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List, Optional
from sqlalchemy import func, update
from sqlalchemy.orm import Session
from bond_engine.infrastructure.database.models import (
    BankTransactionRecord,
    BondCaseRecord,
    ExpenseRecord,
    InstallmentRecord,
)
from bond_engine.domain.exceptions import InvalidTransition, NotFound
from bond_engine.domain.models import (
    BankTransaction,
    BondCase,
    Expense,
    Installment,
    InstallmentSource,
    InstallmentStatus,
)
from bond_engine.utils.money import from_cents, to_cents


def _optional_cents(amount: Optional[Decimal]) -> Optional[int]:
    return to_cents(amount) if amount is not None else None


def _optional_money(cents: Optional[int]) -> Optional[Decimal]:
    return from_cents(cents) if cents is not None else None


def case_to_domain(record: BondCaseRecord) -> BondCase:
    return BondCase(
        id=record.id,
        bond_amount=_optional_money(record.bond_amount_cents),
        premium=_optional_money(record.premium_cents),
        down_payment=_optional_money(record.down_payment_cents),
        payment_amount=_optional_money(record.payment_amount_cents),
        status=record.status,
        created_at=record.created_at,
    )


def installment_to_domain(record: InstallmentRecord) -> Installment:
    return Installment(
        id=record.id,
        case_id=record.case_id,
        amount=from_cents(record.amount_cents),
        due_date=record.due_date,
        status=InstallmentStatus(record.status),
        source=InstallmentSource(record.source),
        paid_at=record.paid_at,
        payment_method=record.payment_method,
        description=record.description,
        sequence=record.sequence,
    )


class CaseRepository:
    """Repository for bond cases"""

    def __init__(self, db: Session):
        self.db = db

    def create_case(
        self,
        bond_amount: Optional[Decimal] = None,
        premium: Optional[Decimal] = None,
        down_payment: Optional[Decimal] = None,
        status: str = "active",
        created_at: Optional[datetime] = None,
    ) -> BondCaseRecord:
        db_case = BondCaseRecord(
            bond_amount_cents=_optional_cents(bond_amount),
            premium_cents=_optional_cents(premium),
            down_payment_cents=_optional_cents(down_payment),
            status=status,
        )
        if created_at is not None:
            db_case.created_at = created_at
        self.db.add(db_case)
        self.db.flush()  # Get ID without committing
        return db_case

    def get_case(self, case_id: uuid.UUID) -> Optional[BondCaseRecord]:
        return self.db.get(BondCaseRecord, case_id)

    def require_case(self, case_id: uuid.UUID) -> BondCaseRecord:
        db_case = self.get_case(case_id)
        if db_case is None:
            raise NotFound("Case", case_id)
        return db_case

    def list_cases(self, statuses: Optional[Iterable[str]] = None) -> List[BondCaseRecord]:
        query = self.db.query(BondCaseRecord)
        if statuses is not None:
            query = query.filter(BondCaseRecord.status.in_(list(statuses)))
        return query.order_by(BondCaseRecord.created_at).all()


class InstallmentRepository:
    """Repository for installments; status changes are compare-and-swap"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, installment_id: uuid.UUID) -> Optional[InstallmentRecord]:
        return self.db.get(InstallmentRecord, installment_id)

    def list_for_case(self, case_id: uuid.UUID) -> List[InstallmentRecord]:
        """Installments ordered by due date (undated last), then creation order"""
        return (
            self.db.query(InstallmentRecord)
            .filter(InstallmentRecord.case_id == case_id)
            .order_by(
                InstallmentRecord.due_date.is_(None),
                InstallmentRecord.due_date,
                InstallmentRecord.sequence,
            )
            .all()
        )

    def list_all(self) -> List[InstallmentRecord]:
        return self.db.query(InstallmentRecord).all()

    def next_sequence(self, case_id: uuid.UUID) -> int:
        current = (
            self.db.query(func.max(InstallmentRecord.sequence))
            .filter(InstallmentRecord.case_id == case_id)
            .scalar()
        )
        return 0 if current is None else current + 1

    def add_many(self, case_id: uuid.UUID, installments: List[Installment]) -> List[InstallmentRecord]:
        """Persist installments in order, continuing the case's sequence"""
        offset = self.next_sequence(case_id)
        records = []
        for position, inst in enumerate(installments):
            db_installment = InstallmentRecord(
                id=inst.id,
                case_id=case_id,
                amount_cents=to_cents(inst.amount),
                due_date=inst.due_date,
                status=inst.status.value,
                source=inst.source.value,
                paid_at=inst.paid_at,
                payment_method=inst.payment_method,
                description=inst.description,
                sequence=offset + position,
            )
            self.db.add(db_installment)
            records.append(db_installment)

        self.db.flush()
        return records

    def transition(
        self,
        installment_id: uuid.UUID,
        target: InstallmentStatus,
        **values,
    ) -> InstallmentRecord:
        """
        Move a pending installment to `target`.

        The UPDATE only matches rows still pending, so of two racing
        transitions exactly one wins; the loser gets InvalidTransition.

        Raises:
            NotFound: Unknown installment
            InvalidTransition: Installment is no longer pending
        """
        result = self.db.execute(
            update(InstallmentRecord)
            .where(
                InstallmentRecord.id == installment_id,
                InstallmentRecord.status == InstallmentStatus.PENDING.value,
            )
            .values(status=target.value, **values)
            .execution_options(synchronize_session=False)
        )

        db_installment = self.get(installment_id)
        if db_installment is None:
            raise NotFound("Installment", installment_id)
        self.db.refresh(db_installment)

        if result.rowcount == 0:
            raise InvalidTransition(installment_id, db_installment.status, target.value)
        return db_installment

    def cancel_pending(self, case_id: uuid.UUID) -> int:
        """Bulk-cancel the case's pending installments; returns how many"""
        result = self.db.execute(
            update(InstallmentRecord)
            .where(
                InstallmentRecord.case_id == case_id,
                InstallmentRecord.status == InstallmentStatus.PENDING.value,
            )
            .values(status=InstallmentStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        self.db.expire_all()
        return result.rowcount

    def next_pending_due_date(self, case_id: uuid.UUID) -> Optional[date]:
        return (
            self.db.query(func.min(InstallmentRecord.due_date))
            .filter(
                InstallmentRecord.case_id == case_id,
                InstallmentRecord.status == InstallmentStatus.PENDING.value,
            )
            .scalar()
        )


class BooksRepository:
    """Repository for expenses and bank register entries"""

    def __init__(self, db: Session):
        self.db = db

    def add_expense(self, expense: Expense) -> ExpenseRecord:
        db_expense = ExpenseRecord(
            expense_date=expense.expense_date,
            amount_cents=to_cents(expense.amount),
            category=expense.category,
            description=expense.description,
        )
        self.db.add(db_expense)
        self.db.flush()
        return db_expense

    def add_transaction(self, transaction: BankTransaction) -> BankTransactionRecord:
        db_transaction = BankTransactionRecord(
            transaction_date=transaction.transaction_date,
            amount_cents=to_cents(transaction.amount),
            kind=transaction.kind,
        )
        self.db.add(db_transaction)
        self.db.flush()
        return db_transaction

    def list_expenses(self) -> List[Expense]:
        return [
            Expense(
                expense_date=r.expense_date,
                amount=from_cents(r.amount_cents),
                category=r.category,
                description=r.description,
            )
            for r in self.db.query(ExpenseRecord).order_by(ExpenseRecord.expense_date).all()
        ]

    def list_transactions(self) -> List[BankTransaction]:
        return [
            BankTransaction(
                transaction_date=r.transaction_date,
                amount=from_cents(r.amount_cents),
                kind=r.kind,
            )
            for r in self.db.query(BankTransactionRecord).order_by(BankTransactionRecord.transaction_date).all()
        ]
