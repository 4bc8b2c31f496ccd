"""
Custom field definitions.

Extra inputs a merchant adds to the customer form. Values live on the
customer row (customers.custom_fields) keyed by the definition's slug.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base


class CustomFieldDefinition(Base):
    """
    Custom field definition.

    The slug is derived from the name on creation and never changes, so
    stored values stay attached when a field is renamed.
    """
    __tablename__ = "custom_field_definitions"
    __table_args__ = (
        UniqueConstraint("user_id", "slug", name="uq_custom_field_user_slug"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    slug = Column(String(100), nullable=False)
    field_type = Column(String(20), nullable=False)

    # [{"label": ..., "value": ...}] for select fields
    options = Column(JSON, nullable=False, default=list)
    is_required = Column(Boolean, default=False, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<CustomFieldDefinition(id={self.id}, slug='{self.slug}', type='{self.field_type}')>"
