"""
Audit Log Database Model.

Tracks logins, route claims and status changes for dispute resolution.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from lastmile.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED
    - ROUTE_CLAIMED / ROUTE_STATUS_CHANGED
    - DELIVERY_STATUS_CHANGED / PACKAGE_PICKED_UP
    - REPORT_CREATED / REPORT_STATUS_CHANGED
    - DRIVER_CREATED / DRIVER_UPDATED / DRIVER_DELETED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for dispatch or system actions)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # What it was performed on ("route", "delivery", ...)
    target_type = Column(String(50), nullable=True)
    target_id = Column(String(100), index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    ip_address = Column(String(50), nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, target={self.target_type}:{self.target_id})>"
