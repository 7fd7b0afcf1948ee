"""
Notification events for escalations.

Delivery (email/Slack) is external; this module only persists the payload
as an in-app Notification row and logs it.
"""
import logging
from typing import List

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from app.models.employee import Employee
from app.models.escalation import Escalation
from app.models.notification import Notification, NotificationType
from app.utils.datetime_utils import now_utc
from app.utils.json_serializer import to_json_safe

logger = logging.getLogger(__name__)


def escalation_payload(escalation: Escalation) -> dict:
    return to_json_safe({
        "escalation_id": escalation.id,
        "employee_id": escalation.employee_id,
        "tier_code": escalation.tier_code,
        "tier_name": escalation.tier_name,
        "points": escalation.trigger_points,
        "due_date": escalation.due_date,
        "actions_required": list(escalation.actions_required or []),
    })


def _notify(db: Session, recipient_id: int, event_type: str, payload: dict) -> Notification:
    notification = Notification(
        recipient_id=recipient_id,
        event_type=event_type,
        payload=payload,
        is_read=False,
        created_at=now_utc(),
    )
    db.add(notification)
    return notification


def emit_escalation_events(db: Session, employee: Employee, escalation: Escalation) -> List[Notification]:
    """
    TIER_CROSSED goes to the employee; ACTION_REQUIRED goes to the reporting
    manager, or to the employee when no manager is set. Caller commits.
    """
    db.flush()
    payload = escalation_payload(escalation)
    action_owner = employee.reporting_manager_id or employee.id
    notifications = [
        _notify(db, employee.id, NotificationType.TIER_CROSSED, payload),
        _notify(db, action_owner, NotificationType.ACTION_REQUIRED, payload),
    ]
    logger.info(
        "Escalation events: employee_id=%s tier=%s due=%s actions=%s",
        employee.id,
        escalation.tier_code,
        payload["due_date"],
        payload["actions_required"],
    )
    return notifications


def list_notifications(db: Session, recipient_id: int, unread_only: bool = False) -> List[Notification]:
    query = db.query(Notification).filter(Notification.recipient_id == recipient_id)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()


def mark_read(db: Session, notification_id: int, recipient_id: int) -> Notification:
    notification = db.query(Notification).filter(Notification.id == notification_id).first()
    if not notification or notification.recipient_id != recipient_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not notification.is_read:
        notification.is_read = True
        db.commit()
        db.refresh(notification)
    return notification


def unread_count(db: Session, recipient_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id, Notification.is_read.is_(False))
        .count()
    )
