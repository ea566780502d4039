"""Books reports over the stored cases, installments and register"""

from datetime import date
from typing import List, Optional, Sequence
from sqlalchemy.orm import Session

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig, settings
from bond_engine.domain import reporting
from bond_engine.domain.models import (
    AgingBucket,
    BankTransaction,
    DashboardSummary,
    Expense,
    OutstandingReport,
    PaymentReminder,
    PeriodReport,
)
from bond_engine.infrastructure.database.repositories import (
    BooksRepository,
    CaseRepository,
    InstallmentRepository,
    case_to_domain,
    installment_to_domain,
)
from bond_engine.utils.money import MoneyLike, to_money


class BooksService:
    """Aging, profit and loss, outstanding bonds and dashboard figures"""

    def __init__(
        self,
        db: Session,
        config: OrgConfig = DEFAULT_ORG_CONFIG,
        aging_boundaries: Sequence[int] | None = None,
        reminder_lead_days: Sequence[int] | None = None,
    ):
        self.db = db
        self.config = config
        self.aging_boundaries = tuple(
            aging_boundaries if aging_boundaries is not None else settings.aging_boundaries
        )
        self.reminder_lead_days = tuple(
            reminder_lead_days if reminder_lead_days is not None else settings.reminder_lead_days
        )
        self.cases = CaseRepository(db)
        self.installments = InstallmentRepository(db)
        self.books = BooksRepository(db)

    def _all_cases(self):
        return [case_to_domain(r) for r in self.cases.list_cases()]

    def _all_installments(self):
        return [installment_to_domain(r) for r in self.installments.list_all()]

    def record_expense(
        self,
        expense_date: date,
        amount: MoneyLike,
        category: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Expense:
        expense = Expense(
            expense_date=expense_date,
            amount=to_money(amount),
            category=category,
            description=description,
        )
        try:
            self.books.add_expense(expense)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return expense

    def record_transaction(self, transaction_date: date, amount: MoneyLike, kind: str) -> BankTransaction:
        if kind not in ("deposit", "withdrawal"):
            raise ValueError(f"Unknown transaction kind: {kind!r}")
        transaction = BankTransaction(transaction_date=transaction_date, amount=to_money(amount), kind=kind)
        try:
            self.books.add_transaction(transaction)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return transaction

    def aging(self, today: date, boundaries: Sequence[int] | None = None) -> List[AgingBucket]:
        return reporting.bucket_overdue(
            self._all_installments(),
            today,
            boundaries if boundaries is not None else self.aging_boundaries,
        )

    def profit_and_loss(self, start_date: date, end_date: date) -> PeriodReport:
        return reporting.profit_and_loss(
            start_date,
            end_date,
            self._all_cases(),
            self._all_installments(),
            self.books.list_expenses(),
            self.books.list_transactions(),
            self.config,
        )

    def outstanding(self) -> OutstandingReport:
        return reporting.outstanding_bonds(self._all_cases(), self._all_installments(), self.config)

    def dashboard(self, today: date) -> DashboardSummary:
        return reporting.dashboard_summary(
            self._all_cases(),
            self._all_installments(),
            self.books.list_expenses(),
            today,
            self.config,
        )

    def reminders(self, today: date, lead_days: Sequence[int] | None = None) -> List[PaymentReminder]:
        return reporting.upcoming_reminders(
            self._all_installments(),
            today,
            lead_days if lead_days is not None else self.reminder_lead_days,
        )
