"""
Training schemas
"""
from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.models.training import TrainingStatus


class CourseCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    points_credit: Optional[int] = Field(None, ge=0, description="Points removed on completion; defaults to TRAINING_CREDIT")


class CourseOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    points_credit: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class TrainingAssignRequest(BaseModel):
    employee_id: int
    course_id: int
    due_date: Optional[date] = None


class TrainingStatusUpdate(BaseModel):
    status: TrainingStatus


class TrainingRecordOut(BaseModel):
    id: int
    employee_id: int
    course_id: int
    course: Optional[CourseOut] = None
    status: TrainingStatus
    assigned_date: date
    due_date: Optional[date] = None
    completed_date: Optional[date] = None
    points_credited: bool

    model_config = ConfigDict(from_attributes=True)
