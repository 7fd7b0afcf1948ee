"""
Escalation schemas
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.utils.datetime_utils import iso_local


class EscalationOut(BaseModel):
    id: int
    employee_id: int
    tier_code: str
    tier_name: str
    trigger_points: int
    actions_required: List[str]
    actions_completed: List[str]
    triggered_at: datetime
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("triggered_at", "completed_at", "archived_at", when_used="always")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class CompleteActionRequest(BaseModel):
    action: str = Field(..., min_length=1, description="Action text exactly as listed in actions_required")


class RecalculateResponse(BaseModel):
    employees_processed: int
    employees_updated: int
    escalations_archived: int
    escalations_created: int
    errors: List[Dict[str, Any]]
    details: List[Dict[str, Any]]
