"""
Employee schemas
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from app.core.security import validate_password
from app.models.employee import Role
from app.utils.datetime_utils import iso_local


class EmployeeBrief(BaseModel):
    """Employee summary nested in other responses"""
    id: int
    emp_code: str
    name: str
    email: str
    department: Optional[str] = None
    role: str

    model_config = ConfigDict(from_attributes=True)


class EmployeeCreate(BaseModel):
    """Schema for creating an employee"""
    emp_code: str = Field(..., min_length=1, max_length=50, description="Employee code (unique)")
    name: str = Field(..., min_length=1, description="Employee name")
    email: str = Field(..., min_length=3, description="Work email (unique)")
    department: Optional[str] = Field(None, description="Department name")
    role: Role = Field(default=Role.USER, description="Employee role")
    reporting_manager_id: Optional[int] = Field(None, description="Reporting manager ID")
    password: Optional[str] = Field(None, description="Initial password; without one the account cannot log in")
    active: bool = Field(default=True, description="Employee active status")

    @field_validator("emp_code", "name", "email", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password", mode="before")
    @classmethod
    def _validate_password(cls, v):
        """Blank passwords mean no password"""
        if v is None or not str(v).strip():
            return None
        return validate_password(v)


class EmployeeUpdate(BaseModel):
    """Schema for updating an employee (admin only)"""
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[str] = Field(None, min_length=3)
    department: Optional[str] = None
    role: Optional[Role] = None
    reporting_manager_id: Optional[int] = None
    active: Optional[bool] = None


class DepartedMemberCreate(BaseModel):
    """Placeholder for someone who has left but still needs contraventions logged against them"""
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)


class PasswordReset(BaseModel):
    new_password: str = Field(..., description="New password")

    @field_validator("new_password", mode="before")
    @classmethod
    def _validate_password(cls, v):
        return validate_password(v)


class ReportingManagerRef(BaseModel):
    id: int
    emp_code: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class EmployeeOut(BaseModel):
    """Employee with points standing"""
    id: int
    emp_code: str
    name: str
    email: str
    department: Optional[str] = None
    role: Role
    reporting_manager_id: Optional[int] = None
    reporting_manager: Optional[ReportingManagerRef] = None
    active: bool
    total_points: int = 0
    current_level: Optional[str] = None
    contravention_count: int = 0
    is_existing: Optional[bool] = Field(None, description="Set by the departed-member endpoint when the email was already known")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at", "updated_at")
    def _ser_datetime(self, dt: datetime) -> Optional[str]:
        return iso_local(dt)
