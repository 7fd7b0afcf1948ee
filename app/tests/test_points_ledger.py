"""
Tests for the points ledger: history, clamping and tier evaluation
"""
import pytest
from fastapi import HTTPException

from app.core.config import settings
from app.models.escalation import Escalation
from app.models.notification import Notification, NotificationType
from app.models.points import EmployeePoints, PointsHistoryEntry, PointsEventKind
from app.models.training import TrainingRecord, TrainingStatus
from app.services import points_service


def _history_sum(db, employee_id):
    return sum(e.delta for e in db.query(PointsHistoryEntry).filter(PointsHistoryEntry.employee_id == employee_id))


def test_first_event_creates_ledger(db, employee):
    assert db.query(EmployeePoints).count() == 0

    ledger = points_service.apply_delta(db, employee.id, 3, PointsEventKind.ADD, "Missing AOR")

    assert ledger.total_points == 3
    assert ledger.current_level is None
    assert ledger.last_calculated is not None
    assert len(ledger.history) == 1
    assert ledger.history[0].delta == 3
    assert ledger.history[0].kind == PointsEventKind.ADD
    # Below the first tier: no escalation
    assert db.query(Escalation).count() == 0


def test_crossing_first_tier_creates_escalation(db, employee, manager):
    points_service.apply_delta(db, employee.id, 4, PointsEventKind.ADD, "First")
    ledger = points_service.apply_delta(db, employee.id, 1, PointsEventKind.ADD, "Second")

    assert ledger.total_points == 5
    assert ledger.current_level == "LEVEL_1"

    escalations = db.query(Escalation).filter(Escalation.employee_id == employee.id).all()
    assert len(escalations) == 1
    escalation = escalations[0]
    assert escalation.tier_code == "LEVEL_1"
    assert escalation.tier_name == "Stage 1"
    assert escalation.trigger_points == 5
    assert escalation.actions_required == ["Notify reporting manager"]
    assert escalation.actions_completed == []
    assert escalation.completed_at is None

    tier_crossed = db.query(Notification).filter(Notification.event_type == NotificationType.TIER_CROSSED).one()
    action_required = db.query(Notification).filter(Notification.event_type == NotificationType.ACTION_REQUIRED).one()
    assert tier_crossed.recipient_id == employee.id
    assert action_required.recipient_id == manager.id
    assert tier_crossed.payload["tier_code"] == "LEVEL_1"
    assert tier_crossed.payload["points"] == 5


def test_action_required_goes_to_employee_without_manager(db, make_employee):
    loner = make_employee("EMP900")
    points_service.apply_delta(db, loner.id, 5, PointsEventKind.ADD, "Contravention")

    recipients = {n.recipient_id for n in db.query(Notification).all()}
    assert recipients == {loner.id}


def test_jumping_tiers_creates_one_record_for_new_tier(db, employee):
    points_service.apply_delta(db, employee.id, 12, PointsEventKind.ADD, "Large contravention")

    escalations = db.query(Escalation).all()
    assert [e.tier_code for e in escalations] == ["LEVEL_2"]


def test_same_tier_change_creates_no_record(db, employee):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "First")
    points_service.apply_delta(db, employee.id, 2, PointsEventKind.ADD, "Second")

    assert db.query(Escalation).count() == 1


def test_credit_is_clamped_at_floor(db, employee):
    points_service.apply_delta(db, employee.id, 2, PointsEventKind.ADD, "Contravention")
    ledger = points_service.apply_delta(db, employee.id, -5, PointsEventKind.CREDIT, "Training completed")

    assert ledger.total_points == 0
    last = ledger.history[-1]
    assert last.delta == -2
    assert "clamped" in last.reason
    assert _history_sum(db, employee.id) == ledger.total_points


def test_credit_below_floor_without_clamping(db, employee, monkeypatch):
    monkeypatch.setattr(settings, "POINTS_FLOOR", None)

    points_service.apply_delta(db, employee.id, 2, PointsEventKind.ADD, "Contravention")
    ledger = points_service.apply_delta(db, employee.id, -5, PointsEventKind.CREDIT, "Training completed")

    assert ledger.total_points == -3
    assert ledger.history[-1].delta == -5
    assert _history_sum(db, employee.id) == -3


def test_total_always_matches_history(db, employee):
    for delta, kind in [
        (3, PointsEventKind.ADD),
        (5, PointsEventKind.ADD),
        (-1, PointsEventKind.CREDIT),
        (-3, PointsEventKind.ADD),
        (-10, PointsEventKind.CREDIT),
        (4, PointsEventKind.ADD),
    ]:
        ledger = points_service.apply_delta(db, employee.id, delta, kind, "event")
        assert ledger.total_points == _history_sum(db, employee.id)
        assert ledger.total_points >= 0


def test_positive_credit_rejected(db, employee):
    with pytest.raises(HTTPException) as exc:
        points_service.apply_delta(db, employee.id, 2, PointsEventKind.CREDIT, "Bad credit")
    assert exc.value.status_code == 400


def test_empty_reason_rejected(db, employee):
    with pytest.raises(HTTPException) as exc:
        points_service.apply_delta(db, employee.id, 2, PointsEventKind.ADD, "  ")
    assert exc.value.status_code == 400


def test_unknown_employee(db):
    with pytest.raises(HTTPException) as exc:
        points_service.apply_delta(db, 9999, 2, PointsEventKind.ADD, "Contravention")
    assert exc.value.status_code == 404


def test_reaching_training_trigger_assigns_course(db, employee, course):
    points_service.apply_delta(db, employee.id, 9, PointsEventKind.ADD, "First")
    assert db.query(TrainingRecord).count() == 0

    points_service.apply_delta(db, employee.id, 1, PointsEventKind.ADD, "Second")

    record = db.query(TrainingRecord).one()
    assert record.employee_id == employee.id
    assert record.course_id == course.id
    assert record.status == TrainingStatus.ASSIGNED
    assert record.points_credited is False


def test_training_trigger_does_not_duplicate_assignment(db, employee, course):
    points_service.apply_delta(db, employee.id, 10, PointsEventKind.ADD, "First")
    points_service.apply_delta(db, employee.id, 3, PointsEventKind.ADD, "Second")

    assert db.query(TrainingRecord).count() == 1


def test_training_trigger_disabled(db, employee, course, monkeypatch):
    monkeypatch.setattr(settings, "TRAINING_TRIGGER_POINTS", None)
    points_service.apply_delta(db, employee.id, 12, PointsEventKind.ADD, "Contravention")

    assert db.query(TrainingRecord).count() == 0


def test_points_summary(db, employee, course):
    points_service.apply_delta(db, employee.id, 6, PointsEventKind.ADD, "First")
    points_service.apply_delta(db, employee.id, 4, PointsEventKind.ADD, "Second")

    summary = points_service.get_points_summary(db, employee.id)

    assert summary["employee_id"] == employee.id
    assert summary["total_points"] == 10
    assert summary["current_level"] == "LEVEL_2"
    assert summary["current_level_name"] == "Stage 2"
    assert "Complete Mandatory Training" in summary["current_actions"]
    assert summary["next_level"] == "LEVEL_3"
    assert summary["next_threshold"] == 16
    assert summary["points_to_next"] == 6
    assert [h["delta"] for h in summary["history"]] == [6, 4]
    assert len(summary["pending_training"]) == 1
    assert summary["pending_training"][0]["course_name"] == course.name


def test_points_summary_without_ledger(db, employee):
    summary = points_service.get_points_summary(db, employee.id)

    assert summary["total_points"] == 0
    assert summary["current_level"] is None
    assert summary["next_threshold"] == 5
    assert summary["history"] == []


def test_points_me_endpoint(client, db, employee, auth_headers):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")

    response = client.get("/api/v1/points/me", headers=auth_headers(employee))

    assert response.status_code == 200
    data = response.json()
    assert data["total_points"] == 5
    assert data["current_level"] == "LEVEL_1"
    assert len(data["history"]) == 1


def test_points_visible_to_manager_not_peers(client, db, employee, manager, make_employee, auth_headers):
    peer = make_employee("EMP002")

    response = client.get(f"/api/v1/points/{employee.id}", headers=auth_headers(manager))
    assert response.status_code == 200

    response = client.get(f"/api/v1/points/{employee.id}", headers=auth_headers(peer))
    assert response.status_code == 403


def test_points_visible_to_admin(client, employee, admin, auth_headers):
    response = client.get(f"/api/v1/points/{employee.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["employee_name"] == employee.name
