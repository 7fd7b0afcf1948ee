"""
Reports endpoints (ADMIN/APPROVER)
"""
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_roles
from app.models.employee import Employee, Role
from app.schemas.report import (
    DashboardStatsOut,
    DepartmentBreakdownItem,
    RepeatOffender,
    TypeBreakdownItem,
)
from app.services import report_service

router = APIRouter()

report_reader = require_roles(Role.APPROVER)


@router.get("/dashboard", response_model=DashboardStatsOut)
async def dashboard_stats(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(report_reader),
):
    """
    Dashboard counts

    Totals, status and points breakdowns, employees at the second tier or
    above, and a twelve-month trend by incident date.
    """
    return report_service.get_dashboard_stats(db)


@router.get("/departments", response_model=List[DepartmentBreakdownItem])
async def department_breakdown(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(report_reader),
):
    return report_service.get_department_breakdown(db)


@router.get("/types", response_model=List[TypeBreakdownItem])
async def type_breakdown(
    db: Session = Depends(get_db),
    current_user: Employee = Depends(report_reader),
):
    return report_service.get_type_breakdown(db)


@router.get("/repeat-offenders", response_model=List[RepeatOffender])
async def repeat_offenders(
    min_count: int = Query(2, ge=1, description="Minimum number of contraventions"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(report_reader),
):
    return report_service.get_repeat_offenders(db, min_count=min_count)
