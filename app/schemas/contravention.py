"""
Contravention and contravention type schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

from app.models.contravention import ContraventionCategory, ContraventionStatus
from app.schemas.employee import EmployeeBrief
from app.utils.datetime_utils import iso_local


class ContraventionTypeCreate(BaseModel):
    """Schema for creating a contravention type"""
    name: str = Field(..., min_length=1, max_length=200)
    category: ContraventionCategory
    default_points: int = Field(..., ge=0, description="Points added when a contravention of this type is logged")
    description: Optional[str] = None


class ContraventionTypeUpdate(BaseModel):
    """Administrative correction of a type; only provided fields change"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[ContraventionCategory] = None
    default_points: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ContraventionTypeOut(BaseModel):
    id: int
    name: str
    category: ContraventionCategory
    description: Optional[str]
    default_points: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class ContraventionCreate(BaseModel):
    """Schema for logging a contravention"""
    employee_id: int = Field(..., description="Employee the contravention is logged against")
    type_id: int = Field(..., description="Contravention type ID")
    incident_date: date
    description: str = Field(..., min_length=1)
    vendor: Optional[str] = Field(None, max_length=200)
    value_amount: Optional[Decimal] = Field(None, ge=0)
    justification: Optional[str] = None
    mitigation: Optional[str] = None
    summary: Optional[str] = None
    evidence_urls: Optional[List[str]] = None
    approver_id: Optional[int] = Field(None, description="Approver; sets status PENDING_APPROVAL")
    approval_doc_url: Optional[str] = Field(None, max_length=500)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Description cannot be empty")
        return v


class ContraventionUserUpdate(BaseModel):
    """Submitter edit (PENDING_APPROVAL or REJECTED only)"""
    incident_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=1)
    vendor: Optional[str] = Field(None, max_length=200)
    value_amount: Optional[Decimal] = Field(None, ge=0)
    justification: Optional[str] = None
    mitigation: Optional[str] = None
    summary: Optional[str] = None
    evidence_urls: Optional[List[str]] = None


class ContraventionResubmit(ContraventionUserUpdate):
    approver_id: int = Field(..., description="Approver for the resubmitted contravention")


class ContraventionAdminUpdate(ContraventionUserUpdate):
    """Admin correction; points and employee changes post compensating ledger events"""
    employee_id: Optional[int] = None
    type_id: Optional[int] = None
    points: Optional[int] = Field(None, ge=0)
    approver_id: Optional[int] = None
    status: Optional[ContraventionStatus] = None
    review_notes: Optional[str] = None


class ReviewRequest(BaseModel):
    """Approver decision"""
    approve: bool
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_notes_on_reject(self) -> "ReviewRequest":
        if not self.approve and not (self.notes and self.notes.strip()):
            raise ValueError("Notes are required when rejecting")
        return self


class UploadApprovalRequest(BaseModel):
    approval_doc_url: str = Field(..., min_length=1, max_length=500)


class MarkCompleteRequest(BaseModel):
    notes: Optional[str] = None


class ContraventionOut(BaseModel):
    id: int
    reference_no: str
    employee_id: int
    employee: Optional[EmployeeBrief] = None
    logged_by_id: int
    type_id: int
    type: Optional[ContraventionTypeOut] = None
    approver_id: Optional[int] = None
    points: int
    status: ContraventionStatus
    incident_date: date
    description: str
    vendor: Optional[str] = None
    value_amount: Optional[Decimal] = None
    justification: Optional[str] = None
    mitigation: Optional[str] = None
    summary: Optional[str] = None
    evidence_urls: Optional[List[str]] = None
    approval_doc_url: Optional[str] = None
    review_notes: Optional[str] = None
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("reviewed_at", "resolved_at", "created_at", "updated_at", when_used="always")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_local(dt)


class ContraventionListResponse(BaseModel):
    items: List[ContraventionOut]
    total: int
    page: int
    limit: int
    pages: int
