"""Unit tests for engine wiring, JSON logging and metrics exposition"""

import json
import logging
import pytest
from datetime import date
from decimal import Decimal
from bond_engine.app import BondEngine, create_engine_app
from bond_engine.config import Settings
from bond_engine.infrastructure.observability.logging import log_plan_created, setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_engine_uses_settings(tmp_path):
    source = Settings(
        database_url=f"sqlite:///{tmp_path / 'books.db'}",
        premium_rate=Decimal("0.10"),
        recommendation_url=None,
    )
    engine = create_engine_app(source, configure_logging=False)
    engine.create_schema()

    assert engine.config.premium_rate == Decimal("0.10")
    assert not engine.advisor.client.enabled

    with engine.session() as db:
        service = engine.cases(db)
        case = service.open_case(bond_amount=20_000)
        service.create_plan(case.id, 2000, 1000, 250, "weekly", date(2024, 1, 1))

        assert service.quote(case.id).premium == Decimal("2000.00")
        assert engine.books(db).outstanding().total_premium_receivable == Decimal("2000.00")


def test_metrics_exposition():
    body, content_type = BondEngine.metrics()

    assert content_type.startswith("text/plain")
    assert b"bond_plans_generated_total" in body
    assert b"bond_installment_transitions_total" in body


def test_json_log_lines(capsys, restore_root_logger):
    setup_logging("INFO")

    log_plan_created("case-1", 3, "1000.00", 0)

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["message"] == "Payment plan created"
    assert line["level"] == "INFO"
    assert line["service"] == "bond-engine"
    assert line["step"] == "plan_created"
    assert line["installment_count"] == 3
    assert "timestamp" in line


def test_engine_passes_report_settings_to_books(tmp_path):
    source = Settings(
        database_url=f"sqlite:///{tmp_path / 'aging.db'}",
        aging_boundaries=(15, 45),
        reminder_lead_days=(2,),
    )
    engine = create_engine_app(source, configure_logging=False)
    engine.create_schema()

    with engine.session() as db:
        service = engine.cases(db)
        case = service.open_case(bond_amount=20_000, premium=2000, down_payment=1000)
        # Due 01-01, 01-08, 01-15, 01-22
        service.create_plan(case.id, 2000, 1000, 250, "weekly", date(2024, 1, 1))

        books = engine.books(db)
        buckets = books.aging(date(2024, 1, 20))
        reminders = books.reminders(date(2024, 1, 20))

    assert [b.label for b in buckets] == ["1-15 days", "16-45 days", "45+ days"]
    assert [b.count for b in buckets] == [2, 1, 0]
    assert [r.installment.due_date for r in reminders] == [date(2024, 1, 22)]


def test_engine_logs_under_configured_service_name(tmp_path, capsys, restore_root_logger):
    source = Settings(database_url=f"sqlite:///{tmp_path / 'log.db'}", service_name="books-worker")
    create_engine_app(source)

    log_plan_created("case-2", 1, "50.00", 0)

    line = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert line["service"] == "books-worker"
