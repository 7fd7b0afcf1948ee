"""
Points ledger service.

- One EmployeePoints row per employee, created on the first point event.
- Every change appends a PointsHistoryEntry; total_points always equals the
  sum of history deltas.
- The ledger row is read FOR UPDATE so changes to one employee serialize.
- Negative events are clamped at POINTS_FLOOR (default 0); the history entry
  records the delta actually applied.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.contravention import Contravention
from app.models.employee import Employee
from app.models.points import EmployeePoints, PointsHistoryEntry, PointsEventKind, validate_points_event
from app.models.training import TrainingRecord, ACTIVE_TRAINING_STATUSES
from app.services.escalation_evaluator import EscalationEvaluator, get_evaluator
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)


def get_or_create_ledger(db: Session, employee_id: int) -> EmployeePoints:
    """Locked ledger row for employee_id; created with total 0 if absent."""
    query = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee_id)
    ledger = query.with_for_update().first()
    if ledger:
        return ledger

    try:
        with db.begin_nested():
            ledger = EmployeePoints(
                employee_id=employee_id,
                total_points=0,
                current_level=None,
                created_at=now_utc(),
            )
            db.add(ledger)
    except IntegrityError:
        # Another transaction created it first
        logger.info("Ledger for employee_id=%s created concurrently, re-reading", employee_id)
        ledger = query.with_for_update().one()
    return ledger


def record_event(
    db: Session,
    ledger: EmployeePoints,
    delta: int,
    kind: PointsEventKind,
    reason: str,
    contravention_id: Optional[int] = None,
    clamp: bool = True,
) -> PointsHistoryEntry:
    """
    Append one history entry and move the total by the applied delta.

    Does not evaluate tiers; callers that change points outside fiscal
    reset go through apply_delta.
    """
    try:
        validate_points_event(kind, delta, reason)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    previous_total = ledger.total_points or 0
    applied = delta
    floor = settings.POINTS_FLOOR
    if clamp and delta < 0 and floor is not None:
        new_total = max(previous_total + delta, min(previous_total, floor))
        applied = new_total - previous_total
        if applied != delta:
            reason = f"{reason} (clamped from {delta} to {applied} at floor {floor})"

    entry = PointsHistoryEntry(
        employee_points_id=ledger.id,
        employee_id=ledger.employee_id,
        kind=kind,
        delta=applied,
        reason=reason,
        contravention_id=contravention_id,
        created_at=now_utc(),
    )
    db.add(entry)
    ledger.history.append(entry)
    ledger.total_points = previous_total + applied
    return entry


def apply_delta(
    db: Session,
    employee_id: int,
    delta: int,
    kind: PointsEventKind,
    reason: str,
    contravention_id: Optional[int] = None,
    commit: bool = True,
    evaluator: Optional[EscalationEvaluator] = None,
) -> EmployeePoints:
    """
    Apply a point change to an employee's ledger.

    Appends history, recomputes the tier, reconciles escalation records and,
    for contravention points reaching TRAINING_TRIGGER_POINTS, assigns
    mandatory training. With commit=False the caller owns the transaction.

    Raises:
        HTTPException: 404 unknown employee, 400 invalid event
    """
    from app.services.escalation_service import reconcile

    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    evaluator = evaluator or get_evaluator()
    ledger = get_or_create_ledger(db, employee_id)
    previous_tier = ledger.current_level
    previous_total = ledger.total_points or 0

    entry = record_event(db, ledger, delta, kind, reason, contravention_id)
    result = evaluator.evaluate(ledger.total_points)
    ledger.current_level = result.tier_code
    ledger.last_calculated = now_utc()
    db.flush()

    reconcile(
        db,
        employee_id=employee_id,
        previous_tier=previous_tier,
        new_tier=result.tier_code,
        points=ledger.total_points,
        evaluator=evaluator,
    )

    trigger = settings.TRAINING_TRIGGER_POINTS
    if kind == PointsEventKind.ADD and entry.delta > 0 and trigger is not None and ledger.total_points >= trigger:
        from app.services.training_service import auto_assign_training
        auto_assign_training(db, employee_id)

    logger.info(
        "Points %s: employee_id=%s delta=%s applied=%s total %s -> %s tier %s -> %s",
        kind.value,
        employee_id,
        delta,
        entry.delta,
        previous_total,
        ledger.total_points,
        previous_tier,
        ledger.current_level,
    )

    if commit:
        db.commit()
        db.refresh(ledger)
    else:
        db.flush()
    return ledger


def get_points_summary(db: Session, employee_id: int, evaluator: Optional[EscalationEvaluator] = None) -> Dict[str, Any]:
    """Total, tier, next threshold, history and open training for one employee."""
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    evaluator = evaluator or get_evaluator()
    ledger = db.query(EmployeePoints).filter(EmployeePoints.employee_id == employee_id).first()
    total = ledger.total_points if ledger else 0
    current_code = ledger.current_level if ledger else None
    current_tier = evaluator.tier_for_code(current_code)
    next_tier = evaluator.next_threshold(total)

    contravention_count = db.query(Contravention).filter(Contravention.employee_id == employee_id).count()
    pending_training = (
        db.query(TrainingRecord)
        .filter(
            TrainingRecord.employee_id == employee_id,
            TrainingRecord.status.in_(ACTIVE_TRAINING_STATUSES),
        )
        .order_by(TrainingRecord.id)
        .all()
    )

    history = []
    if ledger:
        history = [
            {
                "id": e.id,
                "date": e.created_at,
                "delta": e.delta,
                "kind": e.kind,
                "reason": e.reason,
                "contravention_id": e.contravention_id,
            }
            for e in ledger.history
        ]

    return {
        "employee_id": employee.id,
        "employee_name": employee.name,
        "total_points": total,
        "current_level": current_code,
        "current_level_name": current_tier.name if current_tier else None,
        "current_actions": list(current_tier.actions) if current_tier else [],
        "next_level": next_tier.code if next_tier else None,
        "next_threshold": next_tier.min_points if next_tier else None,
        "points_to_next": (next_tier.min_points - total) if next_tier else None,
        "contravention_count": contravention_count,
        "last_calculated": ledger.last_calculated if ledger else None,
        "history": history,
        "pending_training": [
            {
                "id": t.id,
                "course_id": t.course_id,
                "course_name": t.course.name if t.course else None,
                "status": t.status,
                "due_date": t.due_date,
            }
            for t in pending_training
        ],
    }
