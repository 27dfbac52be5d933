"""WishlistItem model representing cards an owner wants to acquire."""
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, JSON, UniqueConstraint

from pokefolio.db.base import Base


class WishlistItem(Base):
    """Wishlist entry, unique per owner and card."""
    __tablename__ = "wishlist_items"
    __table_args__ = (
        UniqueConstraint("owner_id", "card_id", name="uq_wishlist_items_owner_card"),
        {'schema': 'app'}
    )

    # Primary Key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    owner_id = Column(String(64), nullable=False, index=True)
    card_id = Column(String(64), nullable=False)

    card_snapshot = Column(JSON, nullable=True)
    priority = Column(String(10), nullable=False, default="medium")  # "low", "medium", "high"
    target_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<WishlistItem(id={self.id}, owner_id={self.owner_id}, card_id={self.card_id})>"
