"""
Employee service - business logic for employee management
"""
import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload

from app.core.security import hash_password
from app.models.contravention import Contravention
from app.models.employee import Employee, Role
from app.schemas.employee import EmployeeCreate, EmployeeOut, EmployeeUpdate, ReportingManagerRef
from app.services.audit_service import log_audit

logger = logging.getLogger(__name__)

DEPARTED_PREFIX = "DEP"


def _check_reporting_hierarchy_cycle(db: Session, employee_id: int, reporting_manager_id: int) -> bool:
    """
    Check if setting reporting_manager_id would create a cycle

    Returns:
        True if cycle would be created, False otherwise
    """
    if employee_id == reporting_manager_id:
        return True

    # Walk up the chain from the proposed manager
    visited = set()
    current_id = reporting_manager_id
    while current_id is not None:
        if current_id == employee_id:
            return True
        if current_id in visited:
            break
        visited.add(current_id)
        manager = db.query(Employee).filter(Employee.id == current_id).first()
        if not manager:
            break
        current_id = manager.reporting_manager_id

    return False


def _validate_manager(db: Session, manager_id: int) -> Employee:
    manager = db.query(Employee).filter(Employee.id == manager_id).first()
    if not manager:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Reporting manager with id {manager_id} not found",
        )
    if not manager.active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Reporting manager with id {manager_id} is inactive",
        )
    return manager


def _ensure_unique(db: Session, emp_code: Optional[str] = None, email: Optional[str] = None, exclude_id: Optional[int] = None) -> None:
    if emp_code is not None:
        query = db.query(Employee).filter(Employee.emp_code == emp_code)
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Employee with emp_code '{emp_code}' already exists",
            )
    if email is not None:
        query = db.query(Employee).filter(func.lower(Employee.email) == email.lower())
        if exclude_id is not None:
            query = query.filter(Employee.id != exclude_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Employee with email '{email}' already exists",
            )


def employee_to_out(db: Session, employee: Employee, is_existing: Optional[bool] = None) -> EmployeeOut:
    """Convert Employee instance to EmployeeOut with points standing"""
    ledger = employee.points_record
    contravention_count = (
        db.query(func.count(Contravention.id))
        .filter(Contravention.employee_id == employee.id)
        .scalar()
    )
    return EmployeeOut(
        id=employee.id,
        emp_code=employee.emp_code,
        name=employee.name,
        email=employee.email,
        department=employee.department,
        role=employee.role,
        reporting_manager_id=employee.reporting_manager_id,
        reporting_manager=ReportingManagerRef.model_validate(employee.reporting_manager) if employee.reporting_manager else None,
        active=employee.active,
        total_points=ledger.total_points if ledger else 0,
        current_level=ledger.current_level if ledger else None,
        contravention_count=contravention_count or 0,
        is_existing=is_existing,
        created_at=employee.created_at,
        updated_at=employee.updated_at,
    )


def get_employee(db: Session, employee_id: int) -> Employee:
    """
    Get an employee by ID

    Raises:
        HTTPException: 404 if not found
    """
    employee = (
        db.query(Employee)
        .options(joinedload(Employee.reporting_manager), joinedload(Employee.points_record))
        .filter(Employee.id == employee_id)
        .first()
    )
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Employee with id {employee_id} not found",
        )
    return employee


def ensure_can_view(db: Session, viewer: Employee, employee_id: int) -> None:
    """
    Employee-scoped records are visible to the employee, their reporting
    manager, approvers and admins.

    Raises:
        HTTPException: 403 otherwise
    """
    if viewer.id == employee_id or viewer.role in (Role.ADMIN, Role.APPROVER):
        return
    employee = db.query(Employee).filter(Employee.id == employee_id).first()
    if not employee or employee.reporting_manager_id != viewer.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to view this employee's records",
        )


def create_employee(db: Session, employee_data: EmployeeCreate, actor_id: int) -> Employee:
    """
    Create a new employee

    Raises:
        HTTPException: 409 duplicate emp_code or email, 400 invalid manager
    """
    _ensure_unique(db, emp_code=employee_data.emp_code, email=employee_data.email)
    if employee_data.reporting_manager_id is not None:
        _validate_manager(db, employee_data.reporting_manager_id)

    employee = Employee(
        emp_code=employee_data.emp_code,
        name=employee_data.name,
        email=employee_data.email,
        department=employee_data.department,
        role=employee_data.role.value,
        reporting_manager_id=employee_data.reporting_manager_id,
        password_hash=hash_password(employee_data.password) if employee_data.password else None,
        active=employee_data.active,
    )
    db.add(employee)
    db.flush()

    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_CREATE",
        entity_type="employee",
        entity_id=employee.id,
        meta={
            "emp_code": employee.emp_code,
            "role": employee.role,
            "reporting_manager_id": employee.reporting_manager_id,
            "has_password": employee.password_hash is not None,
        },
        commit=False,
    )
    db.commit()
    db.refresh(employee)
    logger.info("Employee created: id=%s emp_code=%s role=%s", employee.id, employee.emp_code, employee.role)
    return employee


def create_departed_member(db: Session, name: str, email: str, actor_id: int) -> tuple:
    """
    Create an inactive placeholder for someone who has already left.

    Returns (employee, is_existing); an email already on record returns
    that employee unchanged.
    """
    existing = db.query(Employee).filter(func.lower(Employee.email) == email.strip().lower()).first()
    if existing:
        return existing, True

    emp_code = f"{DEPARTED_PREFIX}-{_base36(int(time.time() * 1000))}"
    _ensure_unique(db, emp_code=emp_code)
    employee = Employee(
        emp_code=emp_code,
        name=name.strip(),
        email=email.strip(),
        role=Role.USER.value,
        password_hash=None,
        active=False,
    )
    db.add(employee)
    db.flush()
    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_DEPARTED_CREATE",
        entity_type="employee",
        entity_id=employee.id,
        meta={"emp_code": emp_code},
        commit=False,
    )
    db.commit()
    db.refresh(employee)
    logger.info("Departed member created: id=%s emp_code=%s", employee.id, emp_code)
    return employee, False


def _base36(value: int) -> str:
    digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


def list_employees(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    department: Optional[str] = None,
    role: Optional[Role] = None,
    active_only: Optional[bool] = None,
    search: Optional[str] = None,
) -> List[Employee]:
    """List employees ordered by name with optional filtering"""
    query = db.query(Employee).options(
        joinedload(Employee.reporting_manager),
        joinedload(Employee.points_record),
    )
    if department is not None:
        query = query.filter(Employee.department == department)
    if role is not None:
        query = query.filter(Employee.role == role.value)
    if active_only is not None:
        query = query.filter(Employee.active == active_only)
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Employee.name).like(pattern),
            func.lower(Employee.emp_code).like(pattern),
            func.lower(Employee.email).like(pattern),
        ))
    return query.order_by(Employee.name.asc(), Employee.id.asc()).offset(skip).limit(limit).all()


def update_employee(db: Session, employee_id: int, employee_data: EmployeeUpdate, actor_id: int) -> Employee:
    """
    Update an employee's profile, role, reporting manager or active flag

    Raises:
        HTTPException: 404 unknown employee, 400 invalid manager or self-lockout, 409 duplicate email
    """
    employee = get_employee(db, employee_id)
    update_dict: Dict[str, Any] = employee_data.model_dump(exclude_unset=True)

    if employee_id == actor_id:
        if update_dict.get("role") not in (None, Role.ADMIN):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot remove your own admin role",
            )
        if update_dict.get("active") is False:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="You cannot deactivate your own account",
            )

    if "email" in update_dict and update_dict["email"] is not None:
        _ensure_unique(db, email=update_dict["email"], exclude_id=employee_id)

    if update_dict.get("reporting_manager_id") is not None:
        manager_id = update_dict["reporting_manager_id"]
        if _check_reporting_hierarchy_cycle(db, employee_id, manager_id):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot set reporting manager: would create a cycle in hierarchy",
            )
        _validate_manager(db, manager_id)

    if "reporting_manager_id" in update_dict:
        employee.reporting_manager_id = update_dict["reporting_manager_id"]
    if update_dict.get("name") is not None:
        employee.name = update_dict["name"].strip()
    if update_dict.get("email") is not None:
        employee.email = update_dict["email"].strip()
    if "department" in update_dict:
        employee.department = update_dict["department"]
    if update_dict.get("role") is not None:
        employee.role = update_dict["role"].value
    if update_dict.get("active") is not None:
        employee.active = update_dict["active"]

    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_UPDATE",
        entity_type="employee",
        entity_id=employee.id,
        meta={"emp_code": employee.emp_code, "updated_fields": update_dict},
        commit=False,
    )
    db.commit()
    db.refresh(employee)
    logger.info("Employee updated: id=%s fields=%s", employee.id, sorted(update_dict))
    return employee


def reset_password(db: Session, employee_id: int, new_password: str, actor_id: int) -> Employee:
    """
    Reset an employee's password

    Raises:
        HTTPException: 404 if employee not found
    """
    employee = get_employee(db, employee_id)
    employee.password_hash = hash_password(new_password)
    log_audit(
        db=db,
        actor_id=actor_id,
        action="EMPLOYEE_PASSWORD_RESET",
        entity_type="employee",
        entity_id=employee.id,
        meta={"emp_code": employee.emp_code},
        commit=False,
    )
    db.commit()
    db.refresh(employee)
    return employee
