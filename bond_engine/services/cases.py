"""Case-level use cases: quotes, payment plans and installment status changes"""

import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Iterator, List, Optional
from sqlalchemy.orm import Session

from bond_engine.config import DEFAULT_ORG_CONFIG, OrgConfig
from bond_engine.domain.exceptions import DomainException, InvalidPlanInput, InvalidTransition, NotFound
from bond_engine.domain.installments import generate_plan
from bond_engine.domain.ledger import PaymentLedger, ensure_pending
from bond_engine.domain.models import (
    BondCase,
    Installment,
    InstallmentStatus,
    LedgerTotals,
    PremiumQuote,
    TermOption,
)
from bond_engine.domain.premium import quote_case
from bond_engine.infrastructure.database.repositories import (
    CaseRepository,
    InstallmentRepository,
    case_to_domain,
    installment_to_domain,
)
from bond_engine.infrastructure.observability.logging import (
    log_manual_payment,
    log_plan_created,
    log_transition,
)
from bond_engine.infrastructure.observability.metrics import (
    record_manual_payment,
    record_plan,
    record_transition,
    transition_conflict_counter,
)
from bond_engine.schemas import InstallmentSchema
from bond_engine.utils.money import MoneyLike, sum_money, to_cents, to_money

logger = logging.getLogger(__name__)


def _bond_amount(value: MoneyLike):
    """Validated bond amount, or None when cleared"""
    if value is None:
        return None
    amount = to_money(value)
    if amount < 0:
        raise InvalidPlanInput("bond_amount cannot be negative")
    return amount


class BondCaseService:
    """Payment plan and ledger operations for cases held in the database"""

    def __init__(self, db: Session, config: OrgConfig = DEFAULT_ORG_CONFIG):
        self.db = db
        self.config = config
        self.cases = CaseRepository(db)
        self.installments = InstallmentRepository(db)

    @contextmanager
    def _unit_of_work(self, case_id: Optional[uuid.UUID] = None) -> Iterator[None]:
        """Commit on success; roll back and re-raise on any error"""
        try:
            yield
            self.db.commit()
        except InvalidTransition as e:
            self.db.rollback()
            transition_conflict_counter.inc()
            logger.warning(f"Transition conflict: {e}", extra={"case_id": str(case_id), "step": "transition_conflict"})
            raise
        except DomainException as e:
            self.db.rollback()
            logger.warning(f"Rejected: {e}", extra={"case_id": str(case_id)})
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Unexpected error: {e}", extra={"case_id": str(case_id)})
            raise

    # Cases

    def open_case(
        self,
        bond_amount: MoneyLike = None,
        premium: MoneyLike = None,
        down_payment: MoneyLike = None,
        status: str = "active",
        created_at: Optional[datetime] = None,
    ) -> BondCase:
        with self._unit_of_work():
            db_case = self.cases.create_case(
                bond_amount=_bond_amount(bond_amount),
                premium=to_money(premium) if premium is not None else None,
                down_payment=to_money(down_payment) if down_payment is not None else None,
                status=status,
                created_at=created_at,
            )
        return case_to_domain(db_case)

    def get_case(self, case_id: uuid.UUID) -> BondCase:
        return case_to_domain(self.cases.require_case(case_id))

    def update_bond_amount(self, case_id: uuid.UUID, bond_amount: MoneyLike) -> BondCase:
        """Change the bond amount; a premium the user already set is left alone

        Raises:
            NotFound: Unknown case
            InvalidPlanInput: Negative bond amount
        """
        with self._unit_of_work(case_id):
            db_case = self.cases.require_case(case_id)
            amount = _bond_amount(bond_amount)
            db_case.bond_amount_cents = to_cents(amount) if amount is not None else None
        return case_to_domain(db_case)

    def set_premium(
        self,
        case_id: uuid.UUID,
        premium: MoneyLike,
        down_payment: MoneyLike = None,
    ) -> BondCase:
        """Record user-entered premium (and optionally down payment); None clears it"""
        with self._unit_of_work(case_id):
            db_case = self.cases.require_case(case_id)
            db_case.premium_cents = to_cents(premium) if premium is not None else None
            if down_payment is not None:
                db_case.down_payment_cents = to_cents(down_payment)
        return case_to_domain(db_case)

    def quote(self, case_id: uuid.UUID) -> PremiumQuote:
        return quote_case(self.get_case(case_id), self.config)

    # Ledger

    def ledger(self, case_id: uuid.UUID) -> PaymentLedger:
        """Snapshot of the case and its installments"""
        case = self.get_case(case_id)
        records = self.installments.list_for_case(case_id)
        return PaymentLedger(case, [installment_to_domain(r) for r in records])

    def schedule(self, case_id: uuid.UUID) -> List[InstallmentSchema]:
        """Ordered installments in wire form"""
        return [InstallmentSchema.from_domain(i) for i in self.ledger(case_id).installments]

    def totals(self, case_id: uuid.UUID) -> LedgerTotals:
        return self.ledger(case_id).totals()

    def overdue(self, case_id: uuid.UUID, today: date) -> List[Installment]:
        return self.ledger(case_id).overdue(today)

    def _refresh_next_payment(self, case_id: uuid.UUID) -> None:
        db_case = self.cases.require_case(case_id)
        db_case.next_payment_date = self.installments.next_pending_due_date(case_id)

    def create_plan(
        self,
        case_id: uuid.UUID,
        total_amount: MoneyLike,
        down_payment: MoneyLike,
        installment_amount: MoneyLike,
        frequency: str,
        start_date: date | None,
    ) -> List[Installment]:
        """
        Generate (or restructure) the case's payment plan.

        Flow, all in one transaction:
        1. Validate inputs and build the new schedule
        2. Cancel every still-pending installment of the case
        3. Insert the new installments
        4. Store plan terms and next payment date on the case

        Paid and failed installments are never touched.

        Raises:
            NotFound: Unknown case
            InvalidPlanInput: Missing or non-positive plan fields
        """
        with self._unit_of_work(case_id):
            db_case = self.cases.require_case(case_id)
            plan = generate_plan(
                total_amount,
                down_payment,
                installment_amount,
                frequency,
                start_date,
                case_id=case_id,
            )

            cancelled = self.installments.cancel_pending(case_id)
            records = self.installments.add_many(case_id, plan)

            db_case.payment_plan = frequency
            db_case.payment_amount_cents = to_cents(installment_amount)
            db_case.down_payment_cents = to_cents(down_payment)
            self._refresh_next_payment(case_id)

        created = [installment_to_domain(r) for r in records]
        record_plan(len(created))
        log_plan_created(
            str(case_id),
            len(created),
            str(sum_money(i.amount for i in created)),
            cancelled,
        )
        return created

    def apply_term(
        self,
        case_id: uuid.UUID,
        quote: PremiumQuote,
        term: TermOption,
        start_date: date,
    ) -> List[Installment]:
        """Turn an advisor-selected term into the case's plan"""
        if term.amount <= 0:
            raise InvalidPlanInput("Selected term has nothing to finance")
        return self.create_plan(
            case_id,
            total_amount=quote.premium,
            down_payment=quote.down_payment,
            installment_amount=term.amount,
            frequency=term.frequency,
            start_date=start_date,
        )

    def record_manual(
        self,
        case_id: uuid.UUID,
        amount: MoneyLike,
        method: str = "cash",
        description: Optional[str] = None,
        status: InstallmentStatus | str = InstallmentStatus.PAID,
        due_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Installment:
        """Record an ad hoc payment (cash at the counter, a check, ...)"""
        with self._unit_of_work(case_id):
            ledger = self.ledger(case_id)
            installment = ledger.record_manual(
                amount,
                method=method,
                description=description,
                status=status,
                due_date=due_date,
                now=now,
            )
            self.installments.add_many(case_id, [installment])
            self._refresh_next_payment(case_id)

        record_manual_payment(installment.status.value)
        log_manual_payment(str(case_id), str(installment.id), installment.status.value, str(installment.amount))
        return installment_to_domain(self.installments.get(installment.id))

    def _transition(self, installment_id: uuid.UUID, target: InstallmentStatus, **values) -> Installment:
        db_installment = self.installments.get(installment_id)
        case_id = db_installment.case_id if db_installment else None

        if db_installment is None:
            raise NotFound("Installment", installment_id)

        with self._unit_of_work(case_id):
            # Fail fast on a stale read, then let the guarded UPDATE decide races
            ensure_pending(installment_to_domain(db_installment), target)
            db_installment = self.installments.transition(installment_id, target, **values)
            self._refresh_next_payment(case_id)

        record_transition(target.value)
        log_transition(str(case_id), str(installment_id), target.value)
        return installment_to_domain(db_installment)

    def mark_paid(
        self,
        installment_id: uuid.UUID,
        method: str = "cash",
        now: Optional[datetime] = None,
    ) -> Installment:
        """
        Raises:
            NotFound: Unknown installment
            InvalidTransition: Installment is not pending
        """
        if not method:
            raise InvalidPlanInput("payment_method is required for a paid entry")
        return self._transition(
            installment_id,
            InstallmentStatus.PAID,
            paid_at=now or datetime.now(timezone.utc),
            payment_method=method,
        )

    def mark_failed(self, installment_id: uuid.UUID) -> Installment:
        return self._transition(installment_id, InstallmentStatus.FAILED)

    def cancel(self, installment_id: uuid.UUID) -> Installment:
        return self._transition(installment_id, InstallmentStatus.CANCELLED)

    def cancel_pending(self, case_id: uuid.UUID) -> int:
        """Cancel every pending installment ("delete pending"); history is kept"""
        with self._unit_of_work(case_id):
            self.cases.require_case(case_id)
            cancelled = self.installments.cancel_pending(case_id)
            self._refresh_next_payment(case_id)

        logger.info(
            "Pending installments cancelled",
            extra={"case_id": str(case_id), "step": "cancel_pending", "cancelled_count": cancelled},
        )
        return cancelled
