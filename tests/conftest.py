"""Pytest fixtures for testing"""

import uuid
import pytest
from datetime import date
from decimal import Decimal
from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from bond_engine.config import OrgConfig
from bond_engine.domain.models import BondCase
from bond_engine.infrastructure.database.models import Base
from bond_engine.services.books import BooksService
from bond_engine.services.cases import BondCaseService


# Test database: one shared in-memory connection
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def org_config() -> OrgConfig:
    return OrgConfig()


@pytest.fixture
def case_service(db: Session, org_config: OrgConfig) -> BondCaseService:
    return BondCaseService(db, org_config)


@pytest.fixture
def books_service(db: Session, org_config: OrgConfig) -> BooksService:
    return BooksService(db, org_config)


@pytest.fixture
def today() -> date:
    return date(2024, 6, 30)


@pytest.fixture
def sample_case() -> BondCase:
    """$5,000 bond with the premium set explicitly to $600"""
    return BondCase(
        id=uuid.uuid4(),
        bond_amount=Decimal("5000.00"),
        premium=Decimal("600.00"),
        down_payment=Decimal("300.00"),
    )
