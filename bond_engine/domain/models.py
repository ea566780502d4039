"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from bond_engine.utils.money import ZERO


class InstallmentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    CANCELLED = "cancelled"


class InstallmentSource(str, Enum):
    PLAN = "plan"
    MANUAL = "manual"


# Case statuses whose premium counts as earned / whose bond is live
EARNING_CASE_STATUSES = frozenset({"active", "approved", "completed"})
OPEN_CASE_STATUSES = frozenset({"active", "approved"})


@dataclass
class BondCase:
    """One bail bond engagement"""

    id: uuid.UUID
    bond_amount: Optional[Decimal] = None
    premium: Optional[Decimal] = None  # None until a user sets it explicitly
    down_payment: Optional[Decimal] = None
    payment_amount: Optional[Decimal] = None
    status: str = "active"
    created_at: Optional[datetime] = None


@dataclass
class Installment:
    """Single scheduled or recorded payment toward a case's premium"""

    amount: Decimal
    due_date: Optional[date]
    status: InstallmentStatus = InstallmentStatus.PENDING
    source: InstallmentSource = InstallmentSource.PLAN
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    case_id: Optional[uuid.UUID] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    description: Optional[str] = None
    sequence: int = 0  # creation order within the case

    @property
    def is_pending(self) -> bool:
        return self.status == InstallmentStatus.PENDING


@dataclass(frozen=True)
class PremiumQuote:
    """Premium, down payment and what is left to finance"""

    premium: Decimal
    down_payment: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class CommissionSplit:
    """How a bond's premium is divided between the parties"""

    premium: Decimal
    agent: Decimal
    general_agent: Decimal
    build_up_fund: Decimal
    jail: Decimal


@dataclass(frozen=True)
class TermOption:
    """Suggested installment amount and cadence"""

    label: str  # "4 wk", "3 mo", ...
    amount: Decimal
    frequency: str
    count: int


@dataclass(frozen=True)
class Recommendation:
    """Which of the three term options to highlight (1-based) and why"""

    index: int
    reason: str


@dataclass(frozen=True)
class LedgerTotals:
    paid: Decimal
    scheduled: Decimal
    balance: Decimal


@dataclass(frozen=True)
class OverdueInstallment:
    installment: Installment
    days_overdue: int


@dataclass
class AgingBucket:
    """Overdue installments grouped by days late"""

    label: str
    min_days: int
    max_days: Optional[int]  # None for the open-ended bucket
    installments: List[OverdueInstallment] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.installments)

    @property
    def total(self) -> Decimal:
        return sum((item.installment.amount for item in self.installments), ZERO)


@dataclass(frozen=True)
class Expense:
    """Business expense recorded in Books"""

    expense_date: date
    amount: Decimal
    category: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class BankTransaction:
    """Bank register entry"""

    transaction_date: date
    amount: Decimal
    kind: str  # "deposit" or "withdrawal"


@dataclass(frozen=True)
class PeriodReport:
    """Profit and loss for a date range"""

    start_date: date
    end_date: date
    premiums_earned: Decimal
    payments_collected: Decimal
    other_deposits: Decimal
    expenses_by_category: Dict[str, Decimal]

    @property
    def total_revenue(self) -> Decimal:
        return self.premiums_earned + self.payments_collected + self.other_deposits

    @property
    def total_expenses(self) -> Decimal:
        return sum(self.expenses_by_category.values(), ZERO)

    @property
    def net_income(self) -> Decimal:
        return self.total_revenue - self.total_expenses


@dataclass(frozen=True)
class OutstandingBond:
    case_id: uuid.UUID
    bond_amount: Decimal
    premium: Decimal
    collected: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class OutstandingReport:
    bonds: List[OutstandingBond]
    total_liability: Decimal
    total_premium_receivable: Decimal


@dataclass(frozen=True)
class CashFlowMonth:
    month: date  # first day of the month
    income: Decimal
    expenses: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    total_active_bonds: int
    total_bond_liability: Decimal
    total_premium_earned: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    total_expenses: Decimal
    net_income: Decimal
    overdue_payments: int
    cash_flow: List[CashFlowMonth]


@dataclass(frozen=True)
class PaymentReminder:
    installment: Installment
    days_until_due: int
