"""
Audit logging service for tracking security events and destructive actions.

Provides centralized logging for compliance and support investigations.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from ledgerly.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    USER_REGISTERED = "USER_REGISTERED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"
    LOGOUT = "LOGOUT"

    # Customers
    CUSTOMER_ARCHIVED = "CUSTOMER_ARCHIVED"
    CUSTOMER_DELETED = "CUSTOMER_DELETED"

    # Subscriptions
    PLAN_CHANGED = "PLAN_CHANGED"
    SUBSCRIPTION_CANCELED = "SUBSCRIPTION_CANCELED"
    SUBSCRIPTION_REACTIVATED = "SUBSCRIPTION_REACTIVATED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_email: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Log a security or destructive event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_email: Email of actor
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_email=actor_email,
        action=action,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_user_audit_history(
    db: AsyncSession,
    user_id: int,
    action: Optional[str] = None,
    limit: int = 50
) -> list[AuditLog]:
    """
    Get audit history for a specific user, most recent first.

    Args:
        db: Database session
        user_id: User ID to get history for
        action: Filter by action type
        limit: Maximum number of records
    """
    query = select(AuditLog).where(AuditLog.actor_id == user_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.order_by(desc(AuditLog.timestamp), desc(AuditLog.id)).limit(limit)

    result = await db.execute(query)
    return result.scalars().all()
