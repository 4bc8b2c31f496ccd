"""
Customer database model.

A customer is a person a merchant extends credit to. Customers are
archived (soft-deleted) through is_deleted; hard deletion removes their
transactions first.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base


class Customer(Base):
    """
    Customer model.

    Balance is not stored here; it is aggregated from transactions
    (see services.customers.customer_balances_query).
    """
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership - customer belongs to one merchant
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Customer details
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)

    # Values of the merchant's custom fields, keyed by slug
    custom_fields = Column(JSON, nullable=False, default=dict)

    # Archive flag (soft delete)
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}', owner_id={self.user_id}, archived={self.is_deleted})>"
