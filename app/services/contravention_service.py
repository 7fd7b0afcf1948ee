"""
Contravention workflow service.

Lifecycle:
- Created as PENDING_APPROVAL (approver named), PENDING_REVIEW (approval
  document supplied) or PENDING_UPLOAD.
- PENDING_APPROVAL -> PENDING_REVIEW | REJECTED (approver or admin)
- PENDING_UPLOAD -> PENDING_REVIEW (document uploaded)
- PENDING_REVIEW -> COMPLETED (admin)
- REJECTED -> PENDING_APPROVAL (submitter resubmits)

Points are added to the employee's ledger at creation and only move again
through compensating events (admin correction, reassignment, deletion).
"""
import logging
import math
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.contravention import (
    ALLOWED_TRANSITIONS,
    EDITABLE_STATUSES,
    Contravention,
    ContraventionCategory,
    ContraventionStatus,
    ContraventionType,
)
from app.models.employee import Employee, Role
from app.models.points import PointsEventKind
from app.services.audit_service import log_audit
from app.services import points_service
from app.utils.datetime_utils import local_today, now_utc

logger = logging.getLogger(__name__)

REFERENCE_PREFIX = "CONTRA"
APPROVER_ROLES = (Role.APPROVER.value, Role.ADMIN.value)
USER_EDITABLE_FIELDS = (
    "incident_date",
    "description",
    "vendor",
    "value_amount",
    "justification",
    "mitigation",
    "summary",
    "evidence_urls",
)


def generate_reference_no(db: Session, year: Optional[int] = None) -> str:
    """Next CONTRA-<year>-<seq> number; the sequence restarts each calendar year."""
    year = year or local_today().year
    prefix = f"{REFERENCE_PREFIX}-{year}-"
    existing = (
        db.query(Contravention.reference_no)
        .filter(Contravention.reference_no.like(f"{prefix}%"))
        .all()
    )
    last = 0
    for (ref,) in existing:
        try:
            last = max(last, int(ref.rsplit("-", 1)[1]))
        except (IndexError, ValueError):
            logger.warning("Ignoring malformed reference number %r", ref)
    return f"{prefix}{last + 1:03d}"


def _assert_transition(current: ContraventionStatus, target: ContraventionStatus) -> None:
    if target not in ALLOWED_TRANSITIONS.get(current, set()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot move contravention from {current.value} to {target.value}",
        )


def _is_admin(user: Employee) -> bool:
    return user.role == Role.ADMIN.value


def _get_employee(db: Session, employee_id: int, label: str = "Employee") -> Employee:
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return employee


def _get_approver(db: Session, approver_id: int) -> Employee:
    approver = _get_employee(db, approver_id, label="Approver")
    if approver.role not in APPROVER_ROLES or not approver.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The specified user is not an active approver",
        )
    return approver


def _get_active_type(db: Session, type_id: int) -> ContraventionType:
    ctype = db.query(ContraventionType).filter(ContraventionType.id == type_id).first()
    if not ctype:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contravention type not found")
    if not ctype.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Contravention type is inactive")
    return ctype


def get_contravention(db: Session, contravention_id: int) -> Contravention:
    contravention = db.query(Contravention).filter(Contravention.id == contravention_id).first()
    if not contravention:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contravention not found")
    return contravention


def _audit(db: Session, actor_id: Optional[int], action: str, contravention: Contravention, **meta) -> None:
    log_audit(
        db=db,
        actor_id=actor_id,
        action=action,
        entity_type="contravention",
        entity_id=contravention.id,
        meta={"reference_no": contravention.reference_no, **meta},
        commit=False,
    )


def create_contravention(db: Session, data: Dict[str, Any], logged_by: Employee) -> Contravention:
    """
    Log a contravention and add its type's points to the employee's ledger.

    Everything is validated before the first write; the insert, the ledger
    event and any resulting escalation commit together.
    """
    employee = _get_employee(db, data["employee_id"])
    if not employee.active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Employee is inactive")
    ctype = _get_active_type(db, data["type_id"])
    approver_id = data.get("approver_id")
    if approver_id is not None:
        _get_approver(db, approver_id)

    if approver_id is not None:
        initial_status = ContraventionStatus.PENDING_APPROVAL
    elif data.get("approval_doc_url"):
        initial_status = ContraventionStatus.PENDING_REVIEW
    else:
        initial_status = ContraventionStatus.PENDING_UPLOAD

    reference_no = generate_reference_no(db)
    contravention = Contravention(
        reference_no=reference_no,
        employee_id=employee.id,
        logged_by_id=logged_by.id,
        type_id=ctype.id,
        approver_id=approver_id,
        points=ctype.default_points,
        status=initial_status,
        incident_date=data["incident_date"],
        description=data["description"],
        vendor=data.get("vendor"),
        value_amount=data.get("value_amount"),
        justification=data.get("justification"),
        mitigation=data.get("mitigation"),
        summary=data.get("summary"),
        evidence_urls=data.get("evidence_urls"),
        approval_doc_url=data.get("approval_doc_url"),
    )
    db.add(contravention)
    db.flush()

    points_service.apply_delta(
        db,
        employee_id=employee.id,
        delta=contravention.points,
        kind=PointsEventKind.ADD,
        reason=f"{reference_no}: {ctype.name}",
        contravention_id=contravention.id,
        commit=False,
    )
    _audit(
        db,
        logged_by.id,
        "CONTRAVENTION_CREATE",
        contravention,
        employee_id=employee.id,
        type=ctype.name,
        points=contravention.points,
        status=initial_status,
    )
    db.commit()
    db.refresh(contravention)
    logger.info(
        "Contravention %s logged: employee_id=%s type=%s points=%s status=%s",
        reference_no,
        employee.id,
        ctype.name,
        contravention.points,
        initial_status.value,
    )
    return contravention


def review_contravention(
    db: Session,
    contravention_id: int,
    reviewer: Employee,
    approve: bool,
    notes: Optional[str] = None,
) -> Contravention:
    """Approver decision on a PENDING_APPROVAL contravention. Points are unchanged either way."""
    contravention = get_contravention(db, contravention_id)
    if not _is_admin(reviewer) and contravention.approver_id != reviewer.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the assigned approver can review this contravention",
        )

    target = ContraventionStatus.PENDING_REVIEW if approve else ContraventionStatus.REJECTED
    _assert_transition(contravention.status, target)

    if not approve and not (notes and notes.strip()):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Rejection requires notes")

    previous = contravention.status
    contravention.status = target
    contravention.review_notes = notes
    contravention.reviewed_by_id = reviewer.id
    contravention.reviewed_at = now_utc()
    _audit(
        db,
        reviewer.id,
        "CONTRAVENTION_APPROVE" if approve else "CONTRAVENTION_REJECT",
        contravention,
        from_status=previous,
        to_status=target,
        notes=notes,
    )
    db.commit()
    db.refresh(contravention)
    return contravention


def upload_approval(db: Session, contravention_id: int, url: str, actor: Employee) -> Contravention:
    """
    Attach the approval document. Non-admins may only upload while
    PENDING_UPLOAD; admins may replace it in any status, and a COMPLETED
    contravention stays COMPLETED.
    """
    contravention = get_contravention(db, contravention_id)
    previous = contravention.status

    if not _is_admin(actor):
        if previous != ContraventionStatus.PENDING_UPLOAD:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Contravention is not pending approval upload",
            )
        _assert_transition(previous, ContraventionStatus.PENDING_REVIEW)

    if previous in (ContraventionStatus.PENDING_UPLOAD, ContraventionStatus.PENDING_APPROVAL):
        contravention.status = ContraventionStatus.PENDING_REVIEW
    contravention.approval_doc_url = url

    _audit(
        db,
        actor.id,
        "CONTRAVENTION_UPLOAD_APPROVAL",
        contravention,
        from_status=previous,
        to_status=contravention.status,
        url=url,
    )
    db.commit()
    db.refresh(contravention)
    return contravention


def mark_complete(db: Session, contravention_id: int, admin: Employee, notes: Optional[str] = None) -> Contravention:
    contravention = get_contravention(db, contravention_id)
    if contravention.status != ContraventionStatus.PENDING_REVIEW:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Contravention is not pending review")
    _assert_transition(contravention.status, ContraventionStatus.COMPLETED)

    contravention.status = ContraventionStatus.COMPLETED
    contravention.resolved_at = now_utc()
    if notes:
        contravention.review_notes = notes
    _audit(db, admin.id, "CONTRAVENTION_COMPLETE", contravention, notes=notes)
    db.commit()
    db.refresh(contravention)
    return contravention


def _apply_user_fields(contravention: Contravention, data: Dict[str, Any]) -> Dict[str, Any]:
    changed = {}
    for field in USER_EDITABLE_FIELDS:
        if field in data:
            setattr(contravention, field, data[field])
            changed[field] = data[field]
    return changed


def user_update(db: Session, contravention_id: int, user: Employee, data: Dict[str, Any]) -> Contravention:
    """Submitter edit, allowed only before approval (PENDING_APPROVAL or REJECTED)."""
    contravention = get_contravention(db, contravention_id)
    if contravention.logged_by_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only edit contraventions you created",
        )
    if contravention.status not in EDITABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This contravention can no longer be edited",
        )

    changed = _apply_user_fields(contravention, data)
    _audit(db, user.id, "CONTRAVENTION_USER_UPDATE", contravention, changes=changed)
    db.commit()
    db.refresh(contravention)
    return contravention


def resubmit(db: Session, contravention_id: int, user: Employee, data: Dict[str, Any]) -> Contravention:
    """REJECTED -> PENDING_APPROVAL with an approver; review fields are cleared."""
    contravention = get_contravention(db, contravention_id)
    if contravention.logged_by_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only resubmit contraventions you created",
        )
    if contravention.status != ContraventionStatus.REJECTED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only rejected contraventions can be resubmitted",
        )
    approver_id = data.get("approver_id")
    if approver_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="An approver is required to resubmit")
    _get_approver(db, approver_id)
    _assert_transition(contravention.status, ContraventionStatus.PENDING_APPROVAL)

    changed = _apply_user_fields(contravention, data)
    contravention.approver_id = approver_id
    contravention.status = ContraventionStatus.PENDING_APPROVAL
    contravention.review_notes = None
    contravention.reviewed_by_id = None
    contravention.reviewed_at = None
    _audit(db, user.id, "CONTRAVENTION_RESUBMIT", contravention, approver_id=approver_id, changes=changed)
    db.commit()
    db.refresh(contravention)
    return contravention


def admin_update(db: Session, contravention_id: int, data: Dict[str, Any], admin: Employee) -> Contravention:
    """
    Administrative correction.

    A points change posts the difference as an add event; reassigning the
    employee moves the points from the old ledger to the new one.
    """
    contravention = get_contravention(db, contravention_id)
    old_employee_id = contravention.employee_id
    old_points = contravention.points

    new_employee_id = data.get("employee_id", old_employee_id)
    new_points = data.get("points", old_points)
    if new_points is None or new_points < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Points must be non-negative")

    if new_employee_id != old_employee_id:
        _get_employee(db, new_employee_id)
    if "type_id" in data and data["type_id"] != contravention.type_id:
        _get_active_type(db, data["type_id"])
    if data.get("approver_id") is not None:
        _get_approver(db, data["approver_id"])
    if "status" in data and data["status"] is not None and data["status"] != contravention.status:
        _assert_transition(contravention.status, data["status"])

    ref = contravention.reference_no
    if new_employee_id != old_employee_id:
        points_service.apply_delta(
            db,
            employee_id=old_employee_id,
            delta=-old_points,
            kind=PointsEventKind.ADD,
            reason=f"{ref}: reassigned to employee {new_employee_id}",
            contravention_id=contravention.id,
            commit=False,
        )
        points_service.apply_delta(
            db,
            employee_id=new_employee_id,
            delta=new_points,
            kind=PointsEventKind.ADD,
            reason=f"{ref}: reassigned from employee {old_employee_id}",
            contravention_id=contravention.id,
            commit=False,
        )
    elif new_points != old_points:
        points_service.apply_delta(
            db,
            employee_id=old_employee_id,
            delta=new_points - old_points,
            kind=PointsEventKind.ADD,
            reason=f"{ref}: points corrected from {old_points} to {new_points}",
            contravention_id=contravention.id,
            commit=False,
        )

    for field in ("employee_id", "type_id", "points", "approver_id", "status", "review_notes", *USER_EDITABLE_FIELDS):
        if field in data:
            setattr(contravention, field, data[field])
    if contravention.status == ContraventionStatus.COMPLETED and contravention.resolved_at is None:
        contravention.resolved_at = now_utc()

    _audit(
        db,
        admin.id,
        "CONTRAVENTION_ADMIN_UPDATE",
        contravention,
        old_employee_id=old_employee_id,
        old_points=old_points,
        changes=data,
    )
    db.commit()
    db.refresh(contravention)
    return contravention


def delete_contravention(db: Session, contravention_id: int, admin: Employee) -> None:
    """Reverse the contravention's points with a compensating event, then delete it."""
    contravention = get_contravention(db, contravention_id)
    ref = contravention.reference_no

    if contravention.points:
        points_service.apply_delta(
            db,
            employee_id=contravention.employee_id,
            delta=-contravention.points,
            kind=PointsEventKind.ADD,
            reason=f"{ref}: contravention deleted",
            contravention_id=contravention.id,
            commit=False,
        )

    _audit(
        db,
        admin.id,
        "CONTRAVENTION_DELETE",
        contravention,
        employee_id=contravention.employee_id,
        points=contravention.points,
    )
    db.delete(contravention)
    db.commit()
    logger.info("Contravention %s deleted by employee_id=%s", ref, admin.id)


def list_contraventions(
    db: Session,
    employee_id: Optional[int] = None,
    status_filter: Optional[ContraventionStatus] = None,
    type_id: Optional[int] = None,
    category: Optional[ContraventionCategory] = None,
    logged_by_id: Optional[int] = None,
    approver_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    query = db.query(Contravention)
    if employee_id is not None:
        query = query.filter(Contravention.employee_id == employee_id)
    if status_filter is not None:
        query = query.filter(Contravention.status == status_filter)
    if type_id is not None:
        query = query.filter(Contravention.type_id == type_id)
    if category is not None:
        query = query.join(ContraventionType).filter(ContraventionType.category == category)
    if logged_by_id is not None:
        query = query.filter(Contravention.logged_by_id == logged_by_id)
    if approver_id is not None:
        query = query.filter(Contravention.approver_id == approver_id)
    if date_from is not None:
        query = query.filter(Contravention.incident_date >= date_from)
    if date_to is not None:
        query = query.filter(Contravention.incident_date <= date_to)
    if search:
        term = f"%{search}%"
        query = query.filter(or_(
            Contravention.reference_no.ilike(term),
            Contravention.description.ilike(term),
            Contravention.vendor.ilike(term),
        ))

    total = query.count()
    items: List[Contravention] = (
        query.order_by(Contravention.created_at.desc(), Contravention.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "items": items,
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
