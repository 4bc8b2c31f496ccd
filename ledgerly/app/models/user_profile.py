"""
User profile database model.

Extended merchant info: shop details, currency, language, onboarding state.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base


class UserProfile(Base):
    """One profile row per user, keyed by the user's id."""
    __tablename__ = "user_profiles"

    id = Column(Integer, ForeignKey('users.id', ondelete="CASCADE"), primary_key=True)

    full_name = Column(String(100), nullable=True)
    shop_name = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True)
    address = Column(String(500), nullable=True)
    industry = Column(String(100), nullable=True)

    # Locale
    currency = Column(String(3), nullable=False)
    language = Column(String(5), nullable=False)

    onboarding_completed = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<UserProfile(id={self.id}, currency='{self.currency}', language='{self.language}')>"
