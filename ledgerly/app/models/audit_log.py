"""
Audit Log Database Model.

Tracks security-critical and destructive events for compliance and support.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model.

    Events logged:
    - LOGIN_SUCCESS / LOGIN_FAILED / LOGOUT
    - USER_REGISTERED
    - CUSTOMER_ARCHIVED
    - CUSTOMER_DELETED (hard delete with transactions)
    - PLAN_CHANGED / SUBSCRIPTION_CANCELED / SUBSCRIPTION_REACTIVATED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for failed logins of unknown accounts)
    actor_id = Column(Integer, index=True, nullable=True)
    actor_email = Column(String(255), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # IP address for login tracking
    ip_address = Column(String(50), nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email})>"
