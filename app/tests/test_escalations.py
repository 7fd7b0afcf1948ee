"""
Tests for escalation records: creation, recalculation and action completion
"""
from datetime import timedelta

import pytest
from fastapi import HTTPException

from app.core.escalation_config import load_escalation_matrix
from app.models.audit_log import AuditLog
from app.models.escalation import Escalation
from app.models.notification import Notification, NotificationType
from app.models.points import EmployeePoints, PointsEventKind
from app.services import escalation_service, points_service
from app.services.escalation_evaluator import EscalationEvaluator
from app.utils.datetime_utils import local_today


@pytest.fixture
def levels_evaluator():
    return EscalationEvaluator(load_escalation_matrix("levels"))


def _escalate_to_stage_two(db, employee):
    points_service.apply_delta(db, employee.id, 10, PointsEventKind.ADD, "Contravention")
    return db.query(Escalation).filter(Escalation.employee_id == employee.id).one()


def test_escalation_due_date_from_tier(db, employee):
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    escalation = db.query(Escalation).one()

    assert escalation.due_date == local_today() + timedelta(days=7)


def test_credit_dropping_tier_keeps_existing_record(db, employee):
    stage_two = _escalate_to_stage_two(db, employee)

    ledger = points_service.apply_delta(db, employee.id, -1, PointsEventKind.CREDIT, "Training completed")

    assert ledger.total_points == 9
    assert ledger.current_level == "LEVEL_1"
    escalations = db.query(Escalation).all()
    assert len(escalations) == 1
    db.refresh(stage_two)
    assert stage_two.archived_at is None
    assert stage_two.completed_at is None


def test_recalculate_is_noop_when_records_match(db, employee):
    _escalate_to_stage_two(db, employee)

    summary = escalation_service.recalculate_all(db)

    assert summary["employees_processed"] == 1
    assert summary["employees_updated"] == 0
    assert summary["escalations_created"] == 0
    assert summary["escalations_archived"] == 0
    assert summary["errors"] == []


def test_recalculate_with_new_matrix_archives_and_creates(db, employee, levels_evaluator):
    stage_two = _escalate_to_stage_two(db, employee)

    summary = escalation_service.recalculate_all(db, evaluator=levels_evaluator)

    assert summary["employees_updated"] == 1
    assert summary["escalations_archived"] == 1
    assert summary["escalations_created"] == 1
    detail = summary["details"][0]
    assert detail["previous_level"] == "LEVEL_2"
    assert detail["current_level"] == "LEVEL_4"

    db.refresh(stage_two)
    assert stage_two.archived_at is not None
    assert "Archived by recalculation" in stage_two.notes

    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    assert ledger.current_level == "LEVEL_4"

    active = escalation_service.list_escalations(db, employee_id=employee.id)
    assert [e.tier_code for e in active] == ["LEVEL_4"]
    everything = escalation_service.list_escalations(db, employee_id=employee.id, include_archived=True)
    assert len(everything) == 2

    second = escalation_service.recalculate_all(db, evaluator=levels_evaluator)
    assert second["employees_updated"] == 0
    assert second["escalations_created"] == 0
    assert second["escalations_archived"] == 0
    assert db.query(Escalation).count() == 2


def test_recalculate_below_first_tier_archives_open_record(db, employee):
    stage_one = points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    assert stage_one.current_level == "LEVEL_1"

    # Clear the ledger directly so recalculation sees a stale record
    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    points_service.record_event(db, ledger, -5, PointsEventKind.ADD, "Correction")
    db.commit()

    summary = escalation_service.recalculate_all(db)

    assert summary["escalations_archived"] == 1
    assert summary["escalations_created"] == 0
    assert escalation_service.list_escalations(db, employee_id=employee.id) == []


def test_recalculate_writes_audit_row(db, employee, admin):
    _escalate_to_stage_two(db, employee)

    escalation_service.recalculate_all(db, actor_id=admin.id)

    audit = db.query(AuditLog).filter(AuditLog.action == "ESCALATION_RECALCULATE").one()
    assert audit.actor_id == admin.id
    assert audit.meta_json["employees_processed"] == 1


def test_complete_action_flow(db, employee):
    escalation = _escalate_to_stage_two(db, employee)
    first, second = escalation.actions_required

    escalation = escalation_service.complete_action(db, escalation.id, first)
    assert escalation.actions_completed == [first]
    assert escalation.completed_at is None

    # Repeating an action is a no-op
    escalation = escalation_service.complete_action(db, escalation.id, first)
    assert escalation.actions_completed == [first]

    escalation = escalation_service.complete_action(db, escalation.id, second)
    assert escalation.actions_completed == [first, second]
    assert escalation.completed_at is not None


def test_complete_unknown_action(db, employee):
    escalation = _escalate_to_stage_two(db, employee)

    with pytest.raises(HTTPException) as exc:
        escalation_service.complete_action(db, escalation.id, "Buy everyone lunch")
    assert exc.value.status_code == 400


def test_complete_action_on_archived_record(db, employee, levels_evaluator):
    escalation = _escalate_to_stage_two(db, employee)
    escalation_service.recalculate_all(db, evaluator=levels_evaluator)

    with pytest.raises(HTTPException) as exc:
        escalation_service.complete_action(db, escalation.id, escalation.actions_required[0])
    assert exc.value.status_code == 400


def test_complete_action_unknown_escalation(db):
    with pytest.raises(HTTPException) as exc:
        escalation_service.complete_action(db, 12345, "Notify reporting manager")
    assert exc.value.status_code == 404


def test_list_escalations_filters(db, employee, make_employee):
    other = make_employee("EMP002")
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    points_service.apply_delta(db, other.id, 10, PointsEventKind.ADD, "Contravention")

    assert len(escalation_service.list_escalations(db)) == 2
    assert [e.employee_id for e in escalation_service.list_escalations(db, tier="LEVEL_2")] == [other.id]
    assert len(escalation_service.list_escalations(db, completed=False)) == 2
    assert escalation_service.list_escalations(db, completed=True) == []


def test_list_escalations_api_scopes_plain_users(client, db, employee, make_employee, admin, auth_headers):
    other = make_employee("EMP002")
    points_service.apply_delta(db, employee.id, 5, PointsEventKind.ADD, "Contravention")
    points_service.apply_delta(db, other.id, 5, PointsEventKind.ADD, "Contravention")

    response = client.get("/api/v1/escalations", headers=auth_headers(employee))
    assert response.status_code == 200
    assert [e["employee_id"] for e in response.json()] == [employee.id]

    response = client.get("/api/v1/escalations", headers=auth_headers(admin))
    assert len(response.json()) == 2


def test_complete_action_api_requires_admin(client, db, employee, admin, auth_headers):
    escalation = _escalate_to_stage_two(db, employee)
    body = {"action": escalation.actions_required[0]}

    response = client.patch(
        f"/api/v1/escalations/{escalation.id}/complete-action", json=body, headers=auth_headers(employee)
    )
    assert response.status_code == 403

    response = client.patch(
        f"/api/v1/escalations/{escalation.id}/complete-action", json=body, headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["actions_completed"] == [body["action"]]


def test_recalculate_api(client, db, employee, admin, auth_headers):
    _escalate_to_stage_two(db, employee)

    response = client.post("/api/v1/escalations/recalculate", headers=auth_headers(admin))

    assert response.status_code == 200
    data = response.json()
    assert data["employees_processed"] == 1
    assert data["errors"] == []


def test_recalculate_continues_after_employee_failure(db, employee, make_employee, levels_evaluator, monkeypatch):
    _escalate_to_stage_two(db, employee)
    other = make_employee("EMP002")
    points_service.apply_delta(db, other.id, 5, PointsEventKind.ADD, "Contravention")

    real_recalculate = escalation_service._recalculate_ledger

    def failing_recalculate(db, ledger, *args, **kwargs):
        if ledger.employee_id == employee.id:
            ledger.current_level = "LEVEL_5"
            db.flush()
            raise ValueError("ledger locked")
        return real_recalculate(db, ledger, *args, **kwargs)

    monkeypatch.setattr(escalation_service, "_recalculate_ledger", failing_recalculate)

    summary = escalation_service.recalculate_all(db, evaluator=levels_evaluator)

    assert summary["employees_processed"] == 2
    assert summary["errors"] == [{"employee_id": employee.id, "error": "ledger locked"}]
    assert summary["employees_updated"] == 1
    assert summary["escalations_archived"] == 1
    assert summary["escalations_created"] == 1
    assert [d["employee_id"] for d in summary["details"]] == [other.id]

    # The failed employee's partial change is rolled back
    failed = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee.id).one()
    db.refresh(failed)
    assert failed.current_level == "LEVEL_2"
    assert [e.tier_code for e in escalation_service.list_escalations(db, employee_id=employee.id)] == ["LEVEL_2"]
    assert [e.tier_code for e in escalation_service.list_escalations(db, employee_id=other.id)] == ["LEVEL_3"]

    audit = db.query(AuditLog).filter(AuditLog.action == "ESCALATION_RECALCULATE").one()
    assert audit.meta_json["errors"] == [{"employee_id": employee.id, "error": "ledger locked"}]


def test_reentering_tier_reuses_open_record(db, employee):
    first = _escalate_to_stage_two(db, employee)
    points_service.apply_delta(db, employee.id, -1, PointsEventKind.CREDIT, "Training completed")

    ledger = points_service.apply_delta(db, employee.id, 1, PointsEventKind.ADD, "Contravention")

    assert ledger.current_level == "LEVEL_2"
    records = db.query(Escalation).filter(Escalation.tier_code == "LEVEL_2").all()
    assert [r.id for r in records] == [first.id]
    assert db.query(Notification).filter(Notification.event_type == NotificationType.TIER_CROSSED).count() == 1

    summary = escalation_service.recalculate_all(db)
    assert summary["escalations_created"] == 0
    assert summary["escalations_archived"] == 0


def test_reentering_completed_tier_creates_new_record(db, employee):
    first = _escalate_to_stage_two(db, employee)
    for action in first.actions_required:
        escalation_service.complete_action(db, first.id, action)
    points_service.apply_delta(db, employee.id, -1, PointsEventKind.CREDIT, "Training completed")

    points_service.apply_delta(db, employee.id, 1, PointsEventKind.ADD, "Contravention")

    records = db.query(Escalation).filter(Escalation.tier_code == "LEVEL_2").order_by(Escalation.id).all()
    assert len(records) == 2
    assert records[0].completed_at is not None
    assert records[1].completed_at is None
