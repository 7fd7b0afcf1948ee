"""
Training models
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
    Boolean,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum
from app.db.base import Base


class TrainingStatus(str, enum.Enum):
    ASSIGNED = "ASSIGNED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    OVERDUE = "OVERDUE"
    WAIVED = "WAIVED"


ACTIVE_TRAINING_STATUSES = (TrainingStatus.ASSIGNED, TrainingStatus.IN_PROGRESS)


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    points_credit = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    records = relationship("TrainingRecord", back_populates="course")

    __table_args__ = (
        CheckConstraint("points_credit >= 0", name="check_course_points_credit_non_negative"),
    )


class TrainingRecord(Base):
    __tablename__ = "training_records"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status = Column(SQLEnum(TrainingStatus), nullable=False, default=TrainingStatus.ASSIGNED)
    assigned_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=True)
    completed_date = Column(Date, nullable=True)
    points_credited = Column(Boolean, nullable=False, default=False)
    assigned_by = Column(Integer, ForeignKey("employees.id"), nullable=True)  # None when auto-assigned

    employee = relationship("Employee", foreign_keys=[employee_id], backref="training_records")
    course = relationship("Course", back_populates="records")

    __table_args__ = (
        UniqueConstraint("employee_id", "course_id", name="uq_training_employee_course"),
    )
