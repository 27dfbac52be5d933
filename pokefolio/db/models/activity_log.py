"""ActivityLog model recording portfolio events for the admin surface."""
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, Integer, String, DateTime, JSON, Index

from pokefolio.db.base import Base


class ActivityType(str, Enum):
    """Kinds of recorded activity."""
    CARD_ADDED = "card_added"
    CARD_UPDATED = "card_updated"
    CARD_DELETED = "card_deleted"
    PORTFOLIO_CLEARED = "portfolio_cleared"
    DATA_REPAIRED = "data_repaired"


class ActivityLog(Base):
    """Single activity event."""
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_owner_created", "owner_id", "created_at"),
        Index("ix_activity_logs_type_created", "type", "created_at"),
        {'schema': 'app'}
    )

    # Primary Key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    owner_id = Column(String(64), nullable=False)
    type = Column(String(32), nullable=False)
    event_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, owner_id={self.owner_id}, type={self.type})>"
