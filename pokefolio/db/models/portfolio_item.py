"""PortfolioItem model representing a card holding in the database."""
from datetime import datetime
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)

from pokefolio.db.base import Base


class PortfolioItem(Base):
    """
    One holding: an owner's copies of a card in one language.

    A holding is either in unitary mode (the purchase_* / booster / graded /
    grading / notes columns describe every copy) or in variant mode
    (``variants`` lists one dict per copy and the unitary columns are NULL).
    In variant mode ``quantity`` always equals ``len(variants)``.
    """
    __tablename__ = "portfolio_items"
    __table_args__ = (
        UniqueConstraint("owner_id", "card_id", "language", name="uq_portfolio_items_identity"),
        Index("ix_portfolio_items_owner_created", "owner_id", "created_at"),
        Index("ix_portfolio_items_owner_updated", "owner_id", "updated_at"),
        Index("ix_portfolio_items_owner_purchase_date", "owner_id", "purchase_date"),
        {'schema': 'app'}
    )

    # Primary Key
    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identity
    owner_id = Column(String(64), nullable=False, index=True)
    card_id = Column(String(64), nullable=False)
    language = Column(String(8), nullable=False)

    quantity = Column(Integer, nullable=False, default=1)

    # Unitary mode
    purchase_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    purchase_date = Column(DateTime(timezone=True), nullable=True)
    booster = Column(Boolean, nullable=True)
    graded = Column(Boolean, nullable=True)
    grading = Column(JSON, nullable=True)  # {"company", "grade", "certification_number"}
    notes = Column(Text, nullable=True)

    # Variant mode
    variants = Column(JSON, nullable=True)

    # Catalog metadata captured at creation
    card_snapshot = Column(JSON, nullable=True)

    is_favorite = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_variant_mode(self) -> bool:
        return bool(self.variants)

    def __repr__(self) -> str:
        return (
            f"<PortfolioItem(id={self.id}, owner_id={self.owner_id}, "
            f"card_id={self.card_id}, language={self.language}, quantity={self.quantity})>"
        )
