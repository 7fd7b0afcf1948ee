"""
Training endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, get_current_user, require_admin
from app.models.employee import Employee, Role
from app.models.training import TrainingStatus
from app.schemas.training import (
    CourseCreate,
    CourseOut,
    TrainingAssignRequest,
    TrainingStatusUpdate,
    TrainingRecordOut,
)
from app.services import training_service

router = APIRouter()


@router.get("/courses", response_model=List[CourseOut])
async def list_courses(
    active_only: bool = Query(True),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    return training_service.list_courses(db, active_only=active_only)


@router.post("/courses", response_model=CourseOut, status_code=201)
async def create_course(
    data: CourseCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    return training_service.create_course(
        db,
        name=data.name,
        description=data.description,
        points_credit=data.points_credit,
        actor_id=current_user.id,
    )


@router.get("", response_model=List[TrainingRecordOut])
async def list_training(
    employee_id: Optional[int] = Query(None),
    status_filter: Optional[TrainingStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user),
):
    """Training records; plain users only see their own"""
    if current_user.role not in (Role.ADMIN, Role.APPROVER):
        employee_id = current_user.id
    return training_service.list_training(db, employee_id=employee_id, status_filter=status_filter)


@router.post("/assign", response_model=TrainingRecordOut, status_code=201)
async def assign_training(
    data: TrainingAssignRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    return training_service.assign_training(
        db,
        employee_id=data.employee_id,
        course_id=data.course_id,
        due_date=data.due_date,
        actor_id=current_user.id,
    )


@router.post("/{training_id}/complete", response_model=TrainingRecordOut)
async def complete_training(
    training_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    """
    Training completion callback (admin only)

    Credits the course's points once; repeating the call is a no-op.
    """
    record = training_service.get_training_record(db, training_id)
    training_service.on_training_completed(db, record.employee_id, record.course_id, actor_id=current_user.id)
    db.refresh(record)
    return record


@router.patch("/{training_id}/status", response_model=TrainingRecordOut)
async def update_training_status(
    training_id: int,
    data: TrainingStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_admin),
):
    return training_service.update_training_status(db, training_id, data.status, actor_id=current_user.id)
