"""SQLAlchemy ORM models - money columns hold integer cents"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, BigInteger, DateTime, Date, Integer, ForeignKey, Text, Uuid
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BondCaseRecord(Base):
    """Bail bond case (application)"""

    __tablename__ = "bond_case"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    bond_amount_cents = Column(BigInteger, nullable=True)
    premium_cents = Column(BigInteger, nullable=True)
    down_payment_cents = Column(BigInteger, nullable=True)
    payment_amount_cents = Column(BigInteger, nullable=True)
    payment_plan = Column(String(16), nullable=True)  # frequency of the current plan
    next_payment_date = Column(Date, nullable=True)
    status = Column(Text, nullable=False, default="active")
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    installments = relationship("InstallmentRecord", back_populates="case", cascade="all, delete-orphan")


class InstallmentRecord(Base):
    """Scheduled or manually recorded payment toward a case's premium"""

    __tablename__ = "installment"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    case_id = Column(Uuid(as_uuid=True), ForeignKey("bond_case.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    due_date = Column(Date, nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    source = Column(String(16), nullable=False, default="plan")
    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_method = Column(String(32), nullable=True)
    description = Column(Text, nullable=True)
    sequence = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    case = relationship("BondCaseRecord", back_populates="installments")


class ExpenseRecord(Base):
    """Business expense tracked in Books"""

    __tablename__ = "expense"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    expense_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    category = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class BankTransactionRecord(Base):
    """Bank register deposit or withdrawal"""

    __tablename__ = "bank_transaction"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    transaction_date = Column(Date, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    kind = Column(String(16), nullable=False)  # deposit | withdrawal
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
