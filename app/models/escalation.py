"""
Escalation record model
"""
from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, String, Text, JSON, Index
from sqlalchemy.orm import relationship
from app.db.base import Base


class Escalation(Base):
    __tablename__ = "escalations"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    tier_code = Column(String(50), nullable=False)
    tier_name = Column(String(100), nullable=False)
    trigger_points = Column(Integer, nullable=False)
    # Lists are replaced, never mutated in place, so JSON change tracking sees the update
    actions_required = Column(JSON, nullable=False)
    actions_completed = Column(JSON, nullable=False)
    triggered_at = Column(DateTime(timezone=True), nullable=False)
    due_date = Column(Date, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    archived_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    employee = relationship("Employee", backref="escalations")

    __table_args__ = (
        Index("ix_escalations_employee_tier", "employee_id", "tier_code"),
    )
