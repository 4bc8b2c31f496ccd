"""
Config database model.

Key/value store for runtime configuration such as plan feature overrides
("plans.pro.features") and plan customer limits ("plans.pro.customer_limit").
"""

from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.sql import func
from ledgerly.app.db.session import Base


class ConfigEntry(Base):
    __tablename__ = "config"

    key = Column(String(200), primary_key=True)
    value = Column(JSON, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<ConfigEntry(key='{self.key}')>"
