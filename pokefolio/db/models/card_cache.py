"""CardCache model storing catalog responses for a limited time."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON

from pokefolio.db.base import Base


class CardCache(Base):
    """Cached TCGdex payload keyed by ``search:{lang}:{query}`` or ``card:{lang}:{id}``."""
    __tablename__ = "card_cache"
    __table_args__ = {'schema': 'app'}

    # Primary Key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    cache_key = Column(String(255), nullable=False, unique=True, index=True)
    data = Column(JSON, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<CardCache(id={self.id}, cache_key={self.cache_key}, expires_at={self.expires_at})>"
