"""
Points ledger models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    String,
    Text,
    Enum as SQLEnum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base


class PointsEventKind(str, enum.Enum):
    ADD = "add"        # contravention points (negative only when compensating)
    DECAY = "decay"    # fiscal-year reset
    CREDIT = "credit"  # training completion


def validate_points_event(kind: PointsEventKind, delta: int, reason: str) -> None:
    """
    Validate a history entry before it is written.

    Raises:
        ValueError: credit/decay with a positive delta, or an empty reason
    """
    if not reason or not reason.strip():
        raise ValueError("Points event reason is required")
    if kind in (PointsEventKind.CREDIT, PointsEventKind.DECAY) and delta > 0:
        raise ValueError(f"{kind.value} events cannot add points (delta={delta})")


class EmployeePoints(Base):
    __tablename__ = "employee_points"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, unique=True, index=True)
    total_points = Column(Integer, nullable=False, default=0)
    current_level = Column(String(50), nullable=True)  # tier code, None below the first tier
    last_calculated = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    # Relationships
    employee = relationship("Employee", back_populates="points_record")
    history = relationship(
        "PointsHistoryEntry",
        back_populates="ledger",
        order_by="PointsHistoryEntry.id",
        cascade="all, delete-orphan",
    )


class PointsHistoryEntry(Base):
    __tablename__ = "points_history"

    id = Column(Integer, primary_key=True, index=True)
    employee_points_id = Column(Integer, ForeignKey("employee_points.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    kind = Column(SQLEnum(PointsEventKind), nullable=False)
    delta = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    contravention_id = Column(Integer, ForeignKey("contraventions.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)

    ledger = relationship("EmployeePoints", back_populates="history")

    __table_args__ = (
        Index("ix_points_history_employee_created", "employee_id", "created_at"),
        CheckConstraint("kind = 'ADD' OR delta <= 0", name="check_points_history_non_add_not_positive"),
    )


class FiscalYearReset(Base):
    __tablename__ = "fiscal_year_resets"

    id = Column(Integer, primary_key=True, index=True)
    fiscal_year_start = Column(Date, nullable=False, unique=True, index=True)
    fiscal_year_label = Column(String(20), nullable=False)  # e.g. FY2025/26
    performed_at = Column(DateTime(timezone=True), nullable=False)
    employees_reset = Column(Integer, nullable=False, default=0)
    total_points_reset = Column(Integer, nullable=False, default=0)
    performed_by = Column(Integer, ForeignKey("employees.id"), nullable=True)  # None for cron / baseline
