"""
Escalation record manager.

Records are created when a point change raises an employee's tier, are
archived (never deleted) when recalculation finds them stale, and are
completed action by action.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.escalation_config import TierConfig
from app.models.employee import Employee
from app.models.escalation import Escalation
from app.models.points import EmployeePoints
from app.services.audit_service import log_audit
from app.services.escalation_evaluator import EscalationEvaluator, get_evaluator
from app.services.notification_service import emit_escalation_events
from app.utils.datetime_utils import local_today, now_utc
from app.utils.fiscal_year import fiscal_year_start, fiscal_year_start_utc

logger = logging.getLogger(__name__)


def _create_escalation(
    db: Session,
    employee: Employee,
    tier: TierConfig,
    points: int,
    now: datetime,
    notes: Optional[str] = None,
) -> Escalation:
    due_days = tier.due_days if tier.due_days is not None else settings.ESCALATION_DUE_DAYS
    escalation = Escalation(
        employee_id=employee.id,
        tier_code=tier.code,
        tier_name=tier.name,
        trigger_points=points,
        actions_required=list(tier.actions),
        actions_completed=[],
        triggered_at=now,
        due_date=local_today(now) + timedelta(days=due_days),
        completed_at=None,
        archived_at=None,
        notes=notes,
    )
    db.add(escalation)
    db.flush()
    emit_escalation_events(db, employee, escalation)
    logger.info(
        "Escalation created: id=%s employee_id=%s tier=%s points=%s due=%s",
        escalation.id,
        employee.id,
        tier.code,
        points,
        escalation.due_date,
    )
    return escalation


def reconcile(
    db: Session,
    employee_id: int,
    previous_tier: Optional[str],
    new_tier: Optional[str],
    points: int,
    evaluator: Optional[EscalationEvaluator] = None,
    now: Optional[datetime] = None,
) -> Optional[Escalation]:
    """
    Create an escalation record when new_tier ranks strictly above previous_tier.

    Equal or lower tiers leave existing records untouched. A tier that is
    re-entered while its record from this fiscal year is still open reuses
    that record. Caller commits.
    """
    evaluator = evaluator or get_evaluator()
    if evaluator.ordinal(new_tier) <= evaluator.ordinal(previous_tier):
        return None

    now = now or now_utc()
    tier = evaluator.tier_for_code(new_tier)
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    fy_start_utc = fiscal_year_start_utc(fiscal_year_start(local_today(now)))
    open_record = (
        db.query(Escalation)
        .filter(
            Escalation.employee_id == employee_id,
            Escalation.tier_code == tier.code,
            Escalation.completed_at.is_(None),
            Escalation.archived_at.is_(None),
            Escalation.triggered_at >= fy_start_utc,
        )
        .first()
    )
    if open_record is not None:
        logger.info(
            "Escalation reused: id=%s employee_id=%s tier=%s points=%s",
            open_record.id,
            employee_id,
            tier.code,
            points,
        )
        return None
    return _create_escalation(db, employee, tier, points, now)


def _append_note(escalation: Escalation, note: str) -> None:
    escalation.notes = f"{escalation.notes}\n{note}" if escalation.notes else note


def _recalculate_ledger(
    db: Session,
    ledger: EmployeePoints,
    evaluator: EscalationEvaluator,
    fy_start_utc: datetime,
    now: datetime,
) -> Dict[str, Any]:
    ledger = (
        db.query(EmployeePoints)
        .filter(EmployeePoints.id == ledger.id)
        .with_for_update()
        .one()
    )
    result = evaluator.evaluate(ledger.total_points)
    detail = {
        "employee_id": ledger.employee_id,
        "total_points": ledger.total_points,
        "previous_level": ledger.current_level,
        "current_level": result.tier_code,
        "archived": [],
        "created": None,
    }

    if ledger.current_level != result.tier_code:
        ledger.current_level = result.tier_code
    ledger.last_calculated = now

    open_records = (
        db.query(Escalation)
        .filter(
            Escalation.employee_id == ledger.employee_id,
            Escalation.completed_at.is_(None),
            Escalation.archived_at.is_(None),
        )
        .all()
    )
    for record in open_records:
        if record.tier_code != result.tier_code:
            record.archived_at = now
            _append_note(
                record,
                f"Archived by recalculation: {ledger.total_points} points map to {result.tier_code or 'no tier'}",
            )
            detail["archived"].append(record.id)

    if result.tier is not None:
        existing = (
            db.query(Escalation)
            .filter(
                Escalation.employee_id == ledger.employee_id,
                Escalation.tier_code == result.tier_code,
                Escalation.archived_at.is_(None),
                Escalation.triggered_at >= fy_start_utc,
            )
            .first()
        )
        if existing is None:
            created = _create_escalation(
                db,
                ledger.employee,
                result.tier,
                ledger.total_points,
                now,
                notes="Created by recalculation",
            )
            detail["created"] = created.id

    db.flush()
    return detail


def recalculate_all(
    db: Session,
    actor_id: Optional[int] = None,
    now: Optional[datetime] = None,
    evaluator: Optional[EscalationEvaluator] = None,
) -> Dict[str, Any]:
    """
    Recompute every ledger's tier and bring escalation records in line.

    Each employee runs in its own savepoint; a failure is recorded in
    errors[] and the run continues. Running twice changes nothing the
    second time.
    """
    now = now or now_utc()
    evaluator = evaluator or get_evaluator()
    fy_start_utc = fiscal_year_start_utc(fiscal_year_start(local_today(now)))

    ledgers = db.query(EmployeePoints).order_by(EmployeePoints.id).all()

    processed = 0
    updated = 0
    archived = 0
    created = 0
    errors: List[Dict[str, Any]] = []
    details: List[Dict[str, Any]] = []

    for ledger in ledgers:
        processed += 1
        employee_id = ledger.employee_id
        try:
            with db.begin_nested():
                detail = _recalculate_ledger(db, ledger, evaluator, fy_start_utc, now)
        except Exception as e:
            logger.exception("Recalculation failed for employee_id=%s", employee_id)
            errors.append({"employee_id": employee_id, "error": str(e)})
            continue

        changed = (
            detail["previous_level"] != detail["current_level"]
            or detail["archived"]
            or detail["created"] is not None
        )
        archived += len(detail["archived"])
        if detail["created"] is not None:
            created += 1
        if changed:
            updated += 1
            details.append(detail)

    summary = {
        "employees_processed": processed,
        "employees_updated": updated,
        "escalations_archived": archived,
        "escalations_created": created,
        "errors": errors,
        "details": details,
    }

    log_audit(
        db=db,
        actor_id=actor_id,
        action="ESCALATION_RECALCULATE",
        entity_type="escalation",
        entity_id=None,
        meta={k: v for k, v in summary.items() if k != "details"},
        commit=False,
    )
    db.commit()

    logger.info(
        "Recalculation complete: processed=%s updated=%s archived=%s created=%s errors=%s",
        processed,
        updated,
        archived,
        created,
        len(errors),
    )
    return summary


def complete_action(
    db: Session,
    escalation_id: int,
    action: str,
    actor_id: Optional[int] = None,
) -> Escalation:
    """
    Mark one required action as done.

    Raises:
        HTTPException: 404 unknown escalation, 400 archived record or unknown action
    """
    escalation = (
        db.query(Escalation)
        .filter(Escalation.id == escalation_id)
        .with_for_update()
        .first()
    )
    if not escalation:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Escalation not found")

    if escalation.archived_at is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Escalation has been archived and cannot be updated",
        )

    required = list(escalation.actions_required or [])
    if action not in required:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Action '{action}' is not required for this escalation",
        )

    completed = list(escalation.actions_completed or [])
    if action in completed:
        return escalation

    completed.append(action)
    escalation.actions_completed = completed
    if set(completed) >= set(required):
        escalation.completed_at = now_utc()

    log_audit(
        db=db,
        actor_id=actor_id,
        action="ESCALATION_ACTION_COMPLETE",
        entity_type="escalation",
        entity_id=escalation.id,
        meta={"action": action, "completed": escalation.completed_at is not None},
        commit=False,
    )
    db.commit()
    db.refresh(escalation)
    logger.info(
        "Escalation action completed: id=%s action=%r fully_completed=%s",
        escalation.id,
        action,
        escalation.completed_at is not None,
    )
    return escalation


def list_escalations(
    db: Session,
    tier: Optional[str] = None,
    completed: Optional[bool] = None,
    employee_id: Optional[int] = None,
    include_archived: bool = False,
) -> List[Escalation]:
    query = db.query(Escalation)
    if tier:
        query = query.filter(Escalation.tier_code == tier)
    if completed is True:
        query = query.filter(Escalation.completed_at.isnot(None))
    elif completed is False:
        query = query.filter(Escalation.completed_at.is_(None))
    if employee_id is not None:
        query = query.filter(Escalation.employee_id == employee_id)
    if not include_archived:
        query = query.filter(Escalation.archived_at.is_(None))
    return query.order_by(Escalation.triggered_at.desc(), Escalation.id.desc()).all()
