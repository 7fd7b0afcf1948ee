"""
Report schemas
"""
from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel

from app.models.contravention import ContraventionCategory


class DashboardSummary(BaseModel):
    total_contraventions: int
    pending_upload: int
    this_month: int
    high_points_issues: int
    total_value_affected: float


class AtRiskEmployee(BaseModel):
    id: int
    name: str
    points: int
    level: Optional[str] = None


class MonthCount(BaseModel):
    month: str  # YYYY-MM
    count: int


class DashboardStatsOut(BaseModel):
    summary: DashboardSummary
    by_status: Dict[str, int]
    by_points: Dict[str, int]
    employees_at_risk: List[AtRiskEmployee]
    monthly_trend: List[MonthCount]


class DepartmentBreakdownItem(BaseModel):
    name: str
    employee_count: int
    contravention_count: int
    total_points: int
    by_points: Dict[str, int]


class TypeBreakdownItem(BaseModel):
    id: int
    name: str
    category: ContraventionCategory
    count: int
    total_value: float


class RecentContravention(BaseModel):
    id: int
    reference_no: str
    points: int
    incident_date: date
    type_name: Optional[str] = None


class RepeatOffender(BaseModel):
    id: int
    emp_code: str
    name: str
    department: str
    contravention_count: int
    total_points: int
    current_level: Optional[str] = None
    recent_contraventions: List[RecentContravention]
