"""
Tests for fiscal-year helpers and the annual points reset
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.config import settings
from app.models.escalation import Escalation
from app.models.points import EmployeePoints, FiscalYearReset, PointsHistoryEntry, PointsEventKind
from app.services import points_service
from app.services.fiscal_year_service import get_fiscal_year_status, reset_at_fiscal_boundary
from app.utils.datetime_utils import local_today
from app.utils.fiscal_year import (
    fiscal_year_end,
    fiscal_year_label,
    fiscal_year_start,
    fiscal_year_start_utc,
    next_fiscal_year_start,
)


def _next_fiscal_year_instant():
    """An instant one hour into the next fiscal year."""
    upcoming = next_fiscal_year_start(fiscal_year_start(local_today()))
    return fiscal_year_start_utc(upcoming) + timedelta(hours=1), upcoming


@pytest.mark.parametrize("on,expected", [
    (date(2026, 3, 31), date(2025, 4, 1)),
    (date(2026, 4, 1), date(2026, 4, 1)),
    (date(2026, 12, 31), date(2026, 4, 1)),
    (date(2027, 1, 15), date(2026, 4, 1)),
])
def test_fiscal_year_start_april(on, expected):
    assert fiscal_year_start(on, start_month=4) == expected


def test_fiscal_year_start_calendar_year():
    assert fiscal_year_start(date(2026, 7, 4), start_month=1) == date(2026, 1, 1)


def test_fiscal_year_labels():
    assert fiscal_year_label(date(2025, 4, 1)) == "FY2025/26"
    assert fiscal_year_label(date(2099, 4, 1)) == "FY2099/00"
    assert fiscal_year_label(date(2026, 1, 1)) == "FY2026"


def test_fiscal_year_end():
    assert fiscal_year_end(date(2025, 4, 1)) == date(2026, 3, 31)


def test_fiscal_year_start_in_business_timezone(monkeypatch):
    monkeypatch.setattr(settings, "BUSINESS_TZ", "Asia/Singapore")

    start = fiscal_year_start_utc(date(2026, 4, 1))

    assert start == datetime(2026, 3, 31, 16, 0, tzinfo=timezone.utc)


def test_first_run_without_history_records_baseline(db):
    result = reset_at_fiscal_boundary(db)

    assert result["performed"] is False
    assert result["baseline"] is True
    assert db.query(FiscalYearReset).count() == 1

    again = reset_at_fiscal_boundary(db)
    assert again["performed"] is False
    assert again["baseline"] is False
    assert db.query(FiscalYearReset).count() == 1


def test_reset_at_boundary_zeroes_ledgers(db, employee, make_employee):
    clean = make_employee("EMP002")
    points_service.apply_delta(db, employee.id, 12, PointsEventKind.ADD, "Contravention")
    points_service.apply_delta(db, clean.id, 3, PointsEventKind.ADD, "Contravention")
    points_service.apply_delta(db, clean.id, -3, PointsEventKind.CREDIT, "Training completed")

    as_of, upcoming = _next_fiscal_year_instant()
    result = reset_at_fiscal_boundary(db, now=as_of)

    assert result["performed"] is True
    assert result["fiscal_year_start"] == upcoming
    assert result["fiscal_year_label"] == fiscal_year_label(upcoming)
    assert result["employees_reset"] == 1
    assert result["total_points_reset"] == 12
    assert result["details"] == [{"employee_id": employee.id, "previous_total": 12, "previous_level": "LEVEL_2"}]

    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    assert ledger.total_points == 0
    assert ledger.current_level is None
    last = ledger.history[-1]
    assert last.kind == PointsEventKind.DECAY
    assert last.delta == -12
    assert fiscal_year_label(upcoming) in last.reason
    assert sum(e.delta for e in ledger.history) == 0

    # Ledgers already at zero get no history entry
    assert (
        db.query(PointsHistoryEntry)
        .filter(PointsHistoryEntry.employee_id == clean.id, PointsHistoryEntry.kind == PointsEventKind.DECAY)
        .count()
        == 0
    )

    # Open escalations survive the reset
    escalation = db.query(Escalation).filter(Escalation.employee_id == employee.id).one()
    assert escalation.archived_at is None


def test_reset_is_idempotent_within_fiscal_year(db, employee):
    points_service.apply_delta(db, employee.id, 6, PointsEventKind.ADD, "Contravention")
    as_of, _ = _next_fiscal_year_instant()

    first = reset_at_fiscal_boundary(db, now=as_of)
    second = reset_at_fiscal_boundary(db, now=as_of + timedelta(days=30))

    assert first["performed"] is True
    assert second["performed"] is False
    assert db.query(FiscalYearReset).count() == 1
    decay_entries = db.query(PointsHistoryEntry).filter(PointsHistoryEntry.kind == PointsEventKind.DECAY).count()
    assert decay_entries == 1


def test_reset_within_current_year_after_baseline_is_noop(db, employee):
    reset_at_fiscal_boundary(db)
    points_service.apply_delta(db, employee.id, 6, PointsEventKind.ADD, "Contravention")

    result = reset_at_fiscal_boundary(db)

    assert result["performed"] is False
    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    assert ledger.total_points == 6


def test_reset_clears_negative_balance(db, employee, monkeypatch):
    monkeypatch.setattr(settings, "POINTS_FLOOR", None)
    points_service.apply_delta(db, employee.id, 1, PointsEventKind.ADD, "Contravention")
    points_service.apply_delta(db, employee.id, -4, PointsEventKind.CREDIT, "Training completed")

    as_of, _ = _next_fiscal_year_instant()
    result = reset_at_fiscal_boundary(db, now=as_of)

    assert result["total_points_reset"] == -3
    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    assert ledger.total_points == 0
    assert ledger.history[-1].kind == PointsEventKind.ADD
    assert ledger.history[-1].delta == 3


def test_points_after_reset_escalate_again(db, employee):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    as_of, _ = _next_fiscal_year_instant()
    reset_at_fiscal_boundary(db, now=as_of)

    # The surviving record was raised in the previous fiscal year
    previous = db.query(Escalation).filter(Escalation.employee_id == employee.id).one()
    previous.triggered_at = previous.triggered_at - timedelta(days=366)
    db.commit()

    ledger = points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "New contravention")

    assert ledger.current_level == "LEVEL_1"
    assert db.query(Escalation).filter(Escalation.tier_code == "LEVEL_1").count() == 2


def test_fiscal_year_status(db, employee):
    points_service.apply_delta(db, employee.id, 7, PointsEventKind.ADD, "Contravention")

    status = get_fiscal_year_status(db)

    today = local_today()
    start = fiscal_year_start(today)
    assert status["fiscal_year_start"] == start
    assert status["next_reset_date"] == next_fiscal_year_start(start)
    assert status["days_until_reset"] == (next_fiscal_year_start(start) - today).days
    assert status["employees_with_points"] == 1
    assert status["total_points_outstanding"] == 7
    assert status["last_reset"] is None


def test_reset_api_requires_admin(client, employee, auth_headers):
    response = client.post("/api/v1/fiscal-year/reset", headers=auth_headers(employee))
    assert response.status_code == 403


def test_reset_api_with_as_of(client, db, employee, admin, auth_headers):
    points_service.apply_delta(db, employee.id, 9, PointsEventKind.ADD, "Contravention")
    as_of, upcoming = _next_fiscal_year_instant()

    response = client.post(
        "/api/v1/fiscal-year/reset",
        json={"as_of": as_of.isoformat()},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    data = response.json()
    assert data["performed"] is True
    assert data["employees_reset"] == 1
    assert data["fiscal_year_start"] == upcoming.isoformat()

    status = client.get("/api/v1/fiscal-year/status", headers=auth_headers(employee))
    assert status.status_code == 200
    assert status.json()["last_reset"]["fiscal_year_label"] == fiscal_year_label(upcoming)
