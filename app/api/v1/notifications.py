"""
In-app notification endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user
from app.models.employee import Employee
from app.schemas.notification import NotificationOut, NotificationListResponse
from app.services import notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    items = notification_service.list_notifications(db, current_user.id, unread_only=unread_only)
    return NotificationListResponse(
        items=[NotificationOut.model_validate(n) for n in items],
        unread=notification_service.unread_count(db, current_user.id),
    )


@router.patch("/{notification_id}/read", response_model=NotificationOut)
async def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return notification_service.mark_read(db, notification_id, current_user.id)
