"""
Training service - courses, assignments and the training credit rule.

Completing a course credits -course.points_credit to the employee's ledger
exactly once per completion record (guarded by points_credited).
"""
import logging
from datetime import date, timedelta
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import DEFAULT_COURSE
from app.models.employee import Employee
from app.models.points import EmployeePoints, PointsEventKind
from app.models.training import Course, TrainingRecord, TrainingStatus, ACTIVE_TRAINING_STATUSES
from app.services.audit_service import log_audit
from app.services import points_service
from app.utils.datetime_utils import local_today

logger = logging.getLogger(__name__)


def list_courses(db: Session, active_only: bool = True) -> List[Course]:
    query = db.query(Course)
    if active_only:
        query = query.filter(Course.is_active.is_(True))
    return query.order_by(Course.id).all()


def create_course(
    db: Session,
    name: str,
    description: Optional[str] = None,
    points_credit: Optional[int] = None,
    actor_id: Optional[int] = None,
) -> Course:
    if db.query(Course).filter(Course.name == name).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Course with this name already exists")

    course = Course(
        name=name,
        description=description,
        points_credit=settings.TRAINING_CREDIT if points_credit is None else points_credit,
        is_active=True,
    )
    db.add(course)
    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="COURSE_CREATE",
        entity_type="course",
        entity_id=course.id,
        meta={"name": name, "points_credit": course.points_credit},
        commit=False,
    )
    db.commit()
    db.refresh(course)
    return course


def _get_course(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def assign_training(
    db: Session,
    employee_id: int,
    course_id: int,
    due_date: Optional[date] = None,
    actor_id: Optional[int] = None,
    commit: bool = True,
) -> TrainingRecord:
    """
    Assign a course to an employee.

    Re-assigning a finished (COMPLETED/WAIVED/OVERDUE) record resets it as a
    new completion record with points_credited cleared.

    Raises:
        HTTPException: 404 unknown employee/course, 400 inactive course or active assignment
    """
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    course = _get_course(db, course_id)
    if not course.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course is not active")

    today = local_today()
    due = due_date or today + timedelta(days=settings.TRAINING_DUE_DAYS)

    record = (
        db.query(TrainingRecord)
        .filter(TrainingRecord.employee_id == employee_id, TrainingRecord.course_id == course_id)
        .with_for_update()
        .first()
    )
    if record:
        if record.status in ACTIVE_TRAINING_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Training already assigned (status {record.status.value})",
            )
        record.status = TrainingStatus.ASSIGNED
        record.assigned_date = today
        record.due_date = due
        record.completed_date = None
        record.points_credited = False
        record.assigned_by = actor_id
    else:
        record = TrainingRecord(
            employee_id=employee_id,
            course_id=course_id,
            status=TrainingStatus.ASSIGNED,
            assigned_date=today,
            due_date=due,
            points_credited=False,
            assigned_by=actor_id,
        )
        db.add(record)
    db.flush()

    log_audit(
        db=db,
        actor_id=actor_id,
        action="TRAINING_ASSIGN",
        entity_type="training_record",
        entity_id=record.id,
        meta={"employee_id": employee_id, "course_id": course_id, "due_date": due},
        commit=False,
    )
    logger.info("Training assigned: employee_id=%s course_id=%s due=%s", employee_id, course_id, due)

    if commit:
        db.commit()
        db.refresh(record)
    return record


def auto_assign_training(db: Session, employee_id: int) -> Optional[TrainingRecord]:
    """
    Assign the first active course when none is on record for the employee.
    Joins the caller's transaction.
    """
    course = db.query(Course).filter(Course.is_active.is_(True)).order_by(Course.id).first()
    if not course:
        logger.warning("Training trigger reached for employee_id=%s but no active course exists", employee_id)
        return None

    existing = (
        db.query(TrainingRecord)
        .filter(TrainingRecord.employee_id == employee_id, TrainingRecord.course_id == course.id)
        .first()
    )
    if existing:
        return None

    return assign_training(db, employee_id, course.id, commit=False)


def on_training_completed(
    db: Session,
    employee_id: int,
    course_id: int,
    actor_id: Optional[int] = None,
) -> EmployeePoints:
    """
    Mark the training record COMPLETED and credit the course's points.

    A record that has already been credited is a silent no-op.

    Raises:
        HTTPException: 404 when the employee has no record for the course
    """
    record = (
        db.query(TrainingRecord)
        .filter(TrainingRecord.employee_id == employee_id, TrainingRecord.course_id == course_id)
        .with_for_update()
        .first()
    )
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Training record not found")

    if record.points_credited:
        logger.info(
            "Training already credited: employee_id=%s course_id=%s, skipping",
            employee_id,
            course_id,
        )
        ledger = points_service.get_or_create_ledger(db, employee_id)
        db.commit()
        return ledger

    course = record.course
    record.status = TrainingStatus.COMPLETED
    record.completed_date = local_today()
    record.points_credited = True

    ledger = points_service.apply_delta(
        db,
        employee_id=employee_id,
        delta=-course.points_credit,
        kind=PointsEventKind.CREDIT,
        reason=f"Training completed: {course.name}",
        commit=False,
    )

    log_audit(
        db=db,
        actor_id=actor_id,
        action="TRAINING_COMPLETE",
        entity_type="training_record",
        entity_id=record.id,
        meta={"employee_id": employee_id, "course_id": course_id, "credit": course.points_credit},
        commit=False,
    )
    db.commit()
    db.refresh(ledger)
    return ledger


def get_training_record(db: Session, training_id: int) -> TrainingRecord:
    record = db.query(TrainingRecord).filter(TrainingRecord.id == training_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Training record not found")
    return record


def update_training_status(
    db: Session,
    training_id: int,
    new_status: TrainingStatus,
    actor_id: Optional[int] = None,
) -> TrainingRecord:
    """Status update; COMPLETED goes through the credit rule."""
    record = get_training_record(db, training_id)

    if new_status == TrainingStatus.COMPLETED:
        on_training_completed(db, record.employee_id, record.course_id, actor_id=actor_id)
        db.refresh(record)
        return record

    if record.status == TrainingStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Completed training cannot change status; re-assign it instead",
        )

    old_status = record.status
    record.status = new_status
    log_audit(
        db=db,
        actor_id=actor_id,
        action="TRAINING_STATUS_UPDATE",
        entity_type="training_record",
        entity_id=record.id,
        meta={"from": old_status, "to": new_status},
        commit=False,
    )
    db.commit()
    db.refresh(record)
    return record


def list_training(
    db: Session,
    employee_id: Optional[int] = None,
    status_filter: Optional[TrainingStatus] = None,
) -> List[TrainingRecord]:
    query = db.query(TrainingRecord)
    if employee_id is not None:
        query = query.filter(TrainingRecord.employee_id == employee_id)
    if status_filter is not None:
        query = query.filter(TrainingRecord.status == status_filter)
    return query.order_by(TrainingRecord.assigned_date.desc(), TrainingRecord.id.desc()).all()


def seed_default_course(db: Session) -> Optional[Course]:
    """Create the mandatory compliance course when no course exists."""
    if db.query(Course).first():
        return None
    course = Course(
        name=DEFAULT_COURSE["name"],
        description=DEFAULT_COURSE["description"],
        points_credit=settings.TRAINING_CREDIT,
        is_active=True,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    logger.info("Seeded default course %r (credit %s)", course.name, course.points_credit)
    return course
