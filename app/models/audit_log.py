"""
Audit log model
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from app.db.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("employees.id"), nullable=True)  # None for system/cron runs
    action = Column(String, nullable=False)  # e.g. "CONTRAVENTION_CREATE", "FISCAL_RESET_RUN"
    entity_type = Column(String, nullable=False)  # e.g. "contravention", "escalation", "fiscal_year"
    entity_id = Column(Integer, nullable=True)
    meta_json = Column(JSON, nullable=True)
    # Set explicitly by log_audit; SQLite server defaults are unreliable for tz-aware columns
    created_at = Column(DateTime(timezone=True), nullable=False)
