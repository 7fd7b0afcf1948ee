"""
Escalation endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin
from app.models.employee import Employee, Role
from app.schemas.escalation import EscalationOut, CompleteActionRequest, RecalculateResponse
from app.services import escalation_service

router = APIRouter()


@router.get("", response_model=List[EscalationOut])
async def list_escalations(
    tier: Optional[str] = Query(None, description="Tier code, e.g. LEVEL_2"),
    completed: Optional[bool] = Query(None),
    employee_id: Optional[int] = Query(None),
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    List escalation records

    Plain users only see their own records.
    """
    if current_user.role not in (Role.ADMIN, Role.APPROVER):
        employee_id = current_user.id
    return escalation_service.list_escalations(
        db,
        tier=tier,
        completed=completed,
        employee_id=employee_id,
        include_archived=include_archived,
    )


@router.post("/recalculate", response_model=RecalculateResponse)
async def recalculate_escalations(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Recompute every employee's tier and reconcile escalation records (admin only)"""
    return escalation_service.recalculate_all(db, actor_id=current_user.id)


@router.patch("/{escalation_id}/complete-action", response_model=EscalationOut)
async def complete_escalation_action(
    escalation_id: int,
    data: CompleteActionRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Mark one required action done (admin only)"""
    return escalation_service.complete_action(db, escalation_id, data.action, actor_id=current_user.id)
