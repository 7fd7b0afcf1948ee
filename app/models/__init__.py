"""
Database models
"""
from app.models.employee import Employee, Role
from app.models.audit_log import AuditLog
from app.models.contravention import (
    Contravention,
    ContraventionType,
    ContraventionCategory,
    ContraventionStatus,
    ALLOWED_TRANSITIONS,
)
from app.models.points import EmployeePoints, PointsHistoryEntry, PointsEventKind, FiscalYearReset
from app.models.escalation import Escalation
from app.models.training import Course, TrainingRecord, TrainingStatus
from app.models.notification import Notification, NotificationType

__all__ = [
    "Employee",
    "Role",
    "AuditLog",
    "Contravention",
    "ContraventionType",
    "ContraventionCategory",
    "ContraventionStatus",
    "ALLOWED_TRANSITIONS",
    "EmployeePoints",
    "PointsHistoryEntry",
    "PointsEventKind",
    "FiscalYearReset",
    "Escalation",
    "Course",
    "TrainingRecord",
    "TrainingStatus",
    "Notification",
    "NotificationType",
]
