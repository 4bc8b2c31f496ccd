"""
Transaction database model.

Debt and payment records against a customer.
"""

from sqlalchemy import Column, Integer, String, Numeric, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base
from ledgerly.app.models.enums import TransactionType


class Transaction(Base):
    """
    Transaction model.

    amount is always positive; the direction comes from type.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Ownership and linkage
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey('customers.id'), nullable=False, index=True)

    # Entry details
    type = Column(
        Enum(TransactionType, values_callable=lambda e: [m.value for m in e], name="transaction_type"),
        nullable=False,
    )
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String(500), nullable=True)

    # Timestamps
    transaction_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Transaction(id={self.id}, type='{self.type.value}', amount={self.amount}, customer_id={self.customer_id})>"
