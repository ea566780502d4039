"""Engine factory - wires settings, logging, storage and services together"""

from contextlib import contextmanager
from typing import Iterator, Optional, Sequence
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session, sessionmaker

from bond_engine.config import OrgConfig, Settings, settings as default_settings
from bond_engine.domain.reporting import DEFAULT_AGING_BOUNDARIES, DEFAULT_REMINDER_LEAD_DAYS
from bond_engine.infrastructure.clients.recommendation import RecommendationClient
from bond_engine.infrastructure.database.models import Base
from bond_engine.infrastructure.database.session import build_engine, get_session_factory
from bond_engine.infrastructure.observability.logging import setup_logging
from bond_engine.services.advisor import PlanAdvisor
from bond_engine.services.books import BooksService
from bond_engine.services.cases import BondCaseService


class BondEngine:
    """Configured engine instance handed to whatever surface hosts it"""

    def __init__(
        self,
        session_factory: sessionmaker,
        config: OrgConfig,
        advisor: PlanAdvisor,
        aging_boundaries: Sequence[int] = DEFAULT_AGING_BOUNDARIES,
        reminder_lead_days: Sequence[int] = DEFAULT_REMINDER_LEAD_DAYS,
    ):
        self.session_factory = session_factory
        self.config = config
        self.advisor = advisor
        self.aging_boundaries = tuple(aging_boundaries)
        self.reminder_lead_days = tuple(reminder_lead_days)

    def create_schema(self) -> None:
        with self.session() as db:
            Base.metadata.create_all(bind=db.get_bind())

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session and always close it"""
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def cases(self, db: Session) -> BondCaseService:
        return BondCaseService(db, self.config)

    def books(self, db: Session) -> BooksService:
        return BooksService(
            db,
            self.config,
            aging_boundaries=self.aging_boundaries,
            reminder_lead_days=self.reminder_lead_days,
        )

    @staticmethod
    def metrics() -> tuple[bytes, str]:
        """Prometheus exposition body and its content type"""
        return generate_latest(), CONTENT_TYPE_LATEST


def create_engine_app(source: Optional[Settings] = None, configure_logging: bool = True) -> BondEngine:
    """Create and configure a BondEngine from settings"""
    source = source or default_settings
    if configure_logging:
        setup_logging(source.log_level, service_name=source.service_name)

    if source is default_settings:
        session_factory = get_session_factory()
    else:
        session_factory = sessionmaker(autocommit=False, autoflush=False, bind=build_engine(source.database_url))

    client = RecommendationClient(
        base_url=source.recommendation_url or "",
        timeout=source.recommendation_timeout_seconds,
    )
    config = OrgConfig.from_settings(source)
    return BondEngine(
        session_factory,
        config,
        PlanAdvisor(config, client),
        aging_boundaries=source.aging_boundaries,
        reminder_lead_days=source.reminder_lead_days,
    )
