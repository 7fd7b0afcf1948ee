"""
Contravention models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Numeric,
    Enum as SQLEnum,
    Boolean,
    Index,
    CheckConstraint,
    JSON,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import text
import enum
from app.db.base import Base


class ContraventionCategory(str, enum.Enum):
    DC_PROCUREMENT = "DC_PROCUREMENT"
    SVP = "SVP"
    MANPOWER = "MANPOWER"
    SIGNATORY = "SIGNATORY"


class ContraventionStatus(str, enum.Enum):
    PENDING_APPROVAL = "PENDING_APPROVAL"  # waiting on the named approver
    PENDING_UPLOAD = "PENDING_UPLOAD"      # external approval document not yet uploaded
    PENDING_REVIEW = "PENDING_REVIEW"      # approved/uploaded, waiting on admin review
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


# Forward-only lifecycle; REJECTED may only return to PENDING_APPROVAL via resubmit
ALLOWED_TRANSITIONS = {
    ContraventionStatus.PENDING_APPROVAL: {ContraventionStatus.PENDING_REVIEW, ContraventionStatus.REJECTED},
    ContraventionStatus.PENDING_UPLOAD: {ContraventionStatus.PENDING_REVIEW},
    ContraventionStatus.PENDING_REVIEW: {ContraventionStatus.COMPLETED},
    ContraventionStatus.COMPLETED: set(),
    ContraventionStatus.REJECTED: {ContraventionStatus.PENDING_APPROVAL},
}

EDITABLE_STATUSES = (ContraventionStatus.PENDING_APPROVAL, ContraventionStatus.REJECTED)


class ContraventionType(Base):
    __tablename__ = "contravention_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    category = Column(SQLEnum(ContraventionCategory), nullable=False, index=True)
    description = Column(Text, nullable=True)
    default_points = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    contraventions = relationship("Contravention", back_populates="type")

    __table_args__ = (
        CheckConstraint("default_points >= 0", name="check_type_default_points_non_negative"),
    )


class Contravention(Base):
    __tablename__ = "contraventions"

    id = Column(Integer, primary_key=True, index=True)
    reference_no = Column(String(30), unique=True, nullable=False, index=True)  # CONTRA-YYYY-NNN
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    logged_by_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    type_id = Column(Integer, ForeignKey("contravention_types.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("employees.id"), nullable=True, index=True)
    points = Column(Integer, nullable=False)  # copied from type at creation
    status = Column(SQLEnum(ContraventionStatus), nullable=False, index=True)
    incident_date = Column(Date, nullable=False)
    description = Column(Text, nullable=False)
    vendor = Column(String(200), nullable=True)
    value_amount = Column(Numeric(12, 2), nullable=True)
    justification = Column(Text, nullable=True)
    mitigation = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    evidence_urls = Column(JSON, nullable=True)
    approval_doc_url = Column(String(500), nullable=True)
    review_notes = Column(Text, nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("employees.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=text("CURRENT_TIMESTAMP"), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=text("CURRENT_TIMESTAMP"),
        nullable=False,
    )

    # Relationships
    employee = relationship("Employee", foreign_keys=[employee_id], back_populates="contraventions")
    logged_by = relationship("Employee", foreign_keys=[logged_by_id])
    approver = relationship("Employee", foreign_keys=[approver_id])
    reviewed_by = relationship("Employee", foreign_keys=[reviewed_by_id])
    type = relationship("ContraventionType", back_populates="contraventions")

    __table_args__ = (
        Index("ix_contraventions_employee_incident", "employee_id", "incident_date"),
        CheckConstraint("points >= 0", name="check_contravention_points_non_negative"),
    )
