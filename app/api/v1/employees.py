"""
Employee management endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin, require_roles
from app.models.employee import Employee, Role
from app.schemas.contravention import ContraventionListResponse
from app.schemas.employee import (
    DepartedMemberCreate,
    EmployeeCreate,
    EmployeeOut,
    EmployeeUpdate,
    PasswordReset,
)
from app.schemas.escalation import EscalationOut
from app.schemas.training import TrainingRecordOut
from app.services import contravention_service, employee_service, escalation_service, training_service

router = APIRouter()


@router.post("", response_model=EmployeeOut, status_code=201)
async def create_employee_endpoint(
    employee_data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Create a new employee (ADMIN-only)"""
    employee = employee_service.create_employee(db, employee_data, current_user.id)
    return employee_service.employee_to_out(db, employee)


@router.post("/departed", response_model=EmployeeOut)
async def create_departed_member_endpoint(
    data: DepartedMemberCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """
    Create an inactive record for a departed member (ADMIN-only)

    Returns the existing employee with is_existing=true when the email is already known.
    """
    employee, is_existing = employee_service.create_departed_member(db, data.name, data.email, current_user.id)
    return employee_service.employee_to_out(db, employee, is_existing=is_existing)


@router.get("", response_model=List[EmployeeOut])
async def list_employees_endpoint(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    department: Optional[str] = Query(None),
    role: Optional[Role] = Query(None),
    active_only: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, employee code or email"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_roles(Role.APPROVER)),
):
    """List employees with points standing (ADMIN/APPROVER)"""
    employees = employee_service.list_employees(
        db,
        skip=skip,
        limit=limit,
        department=department,
        role=role,
        active_only=active_only,
        search=search,
    )
    return [employee_service.employee_to_out(db, e) for e in employees]


@router.get("/{employee_id}", response_model=EmployeeOut)
async def get_employee_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Get an employee by ID (self, reporting manager, approvers and admins)"""
    employee_service.ensure_can_view(db, current_user, employee_id)
    return employee_service.employee_to_out(db, employee_service.get_employee(db, employee_id))


@router.get("/{employee_id}/contraventions", response_model=ContraventionListResponse)
async def employee_contraventions_endpoint(
    employee_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    employee_service.ensure_can_view(db, current_user, employee_id)
    employee_service.get_employee(db, employee_id)
    return contravention_service.list_contraventions(db, employee_id=employee_id, page=page, limit=limit)


@router.get("/{employee_id}/escalations", response_model=List[EscalationOut])
async def employee_escalations_endpoint(
    employee_id: int,
    include_archived: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    employee_service.ensure_can_view(db, current_user, employee_id)
    employee_service.get_employee(db, employee_id)
    return escalation_service.list_escalations(db, employee_id=employee_id, include_archived=include_archived)


@router.get("/{employee_id}/training", response_model=List[TrainingRecordOut])
async def employee_training_endpoint(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    employee_service.ensure_can_view(db, current_user, employee_id)
    employee_service.get_employee(db, employee_id)
    return training_service.list_training(db, employee_id=employee_id)


@router.patch("/{employee_id}", response_model=EmployeeOut)
async def update_employee_endpoint(
    employee_id: int,
    employee_data: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Update role, reporting manager, active flag or profile fields (ADMIN-only)"""
    employee = employee_service.update_employee(db, employee_id, employee_data, current_user.id)
    return employee_service.employee_to_out(db, employee)


@router.post("/{employee_id}/reset-password", response_model=EmployeeOut)
async def reset_password_endpoint(
    employee_id: int,
    password_data: PasswordReset,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """Reset an employee's password (ADMIN-only)"""
    employee = employee_service.reset_password(db, employee_id, password_data.new_password, current_user.id)
    return employee_service.employee_to_out(db, employee)
