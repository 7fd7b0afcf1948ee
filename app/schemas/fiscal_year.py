"""
Fiscal-year reset schemas
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, field_serializer

from app.utils.datetime_utils import iso_local


class FiscalResetRequest(BaseModel):
    """Optional override of the evaluation instant (defaults to now)"""
    as_of: Optional[datetime] = None


class FiscalResetResponse(BaseModel):
    performed: bool
    baseline: bool
    fiscal_year_label: str
    fiscal_year_start: date
    employees_reset: int
    total_points_reset: int
    details: List[Dict[str, Any]]


class LastResetOut(BaseModel):
    fiscal_year_start: date
    fiscal_year_label: str
    performed_at: datetime
    employees_reset: int
    total_points_reset: int
    performed_by: Optional[int] = None

    @field_serializer("performed_at")
    def _ser_performed_at(self, dt: datetime) -> str:
        return iso_local(dt)


class FiscalYearStatusOut(BaseModel):
    fiscal_year_label: str
    fiscal_year_start: date
    fiscal_year_end: date
    next_reset_date: date
    days_until_reset: int
    last_reset: Optional[LastResetOut] = None
    employees_with_points: int
    total_points_outstanding: int
