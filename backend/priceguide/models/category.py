from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Enum, Index
from sqlalchemy.dialects.postgresql import UUID
from ..db import Base
from ..enums import CategoryType
from ..types import OrderKeyString


def _utcnow():
    return datetime.now(timezone.utc)


class PriceGuideCategory(Base):
    """
    A node in a company's price guide category tree.

    Relationships are deliberately not mapped: parents and children are
    loaded through CategoryStore so every traversal is an explicit query.
    ``version`` is the optimistic-lock counter; SQLAlchemy increments it on
    every UPDATE and refuses to write over a newer row.
    """
    __tablename__ = "price_guide_categories"
    __table_args__ = (
        Index("ix_price_guide_categories_company_parent", "company_id", "parent_id"),
    )
    
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("price_guide_categories.id"), nullable=True)
    name = Column(String(255), nullable=False)
    depth = Column(Integer, nullable=False, default=0)
    sort_order = Column(OrderKeyString, nullable=False)  # fractional index key
    category_type = Column(Enum(CategoryType), nullable=False, default=CategoryType.DEFAULT)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False)
    last_modified_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    
    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<PriceGuideCategory {self.name} (depth={self.depth})>"
