"""
Points summary endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user
from app.models.employee import Employee
from app.schemas.points import PointsSummaryOut
from app.services.employee_service import ensure_can_view
from app.services.points_service import get_points_summary

router = APIRouter()


@router.get("/me", response_model=PointsSummaryOut)
async def my_points(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Current user's total, tier, next threshold and point history"""
    return get_points_summary(db, current_user.id)


@router.get("/{employee_id}", response_model=PointsSummaryOut)
async def employee_points(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """
    Points summary for an employee

    Visible to the employee, their reporting manager, approvers and admins.
    """
    ensure_can_view(db, current_user, employee_id)
    return get_points_summary(db, employee_id)
