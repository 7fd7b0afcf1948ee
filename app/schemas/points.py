"""
Points ledger schemas
"""
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, field_serializer

from app.models.points import PointsEventKind
from app.models.training import TrainingStatus
from app.utils.datetime_utils import iso_local


class PointsHistoryItem(BaseModel):
    id: int
    date: datetime
    delta: int
    kind: PointsEventKind
    reason: str
    contravention_id: Optional[int] = None

    @field_serializer("date")
    def _ser_date(self, dt: datetime) -> str:
        return iso_local(dt)


class PendingTrainingItem(BaseModel):
    id: int
    course_id: int
    course_name: Optional[str] = None
    status: TrainingStatus
    due_date: Optional[date] = None


class PointsSummaryOut(BaseModel):
    """Points summary for one employee"""
    employee_id: int
    employee_name: str
    total_points: int
    current_level: Optional[str] = None
    current_level_name: Optional[str] = None
    current_actions: List[str] = []
    next_level: Optional[str] = None
    next_threshold: Optional[int] = None
    points_to_next: Optional[int] = None
    contravention_count: int
    last_calculated: Optional[datetime] = None
    history: List[PointsHistoryItem] = []
    pending_training: List[PendingTrainingItem] = []

    @field_serializer("last_calculated")
    def _ser_last_calculated(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)
