from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from ..db import Base


class CategoryOfficeAssignment(Base):
    """Makes a root price guide category visible to one office."""
    __tablename__ = "price_guide_category_offices"
    __table_args__ = (
        UniqueConstraint("category_id", "office_id", name="uq_price_guide_category_office"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(
        UUID(as_uuid=True),
        ForeignKey("price_guide_categories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    office_id = Column(Integer, ForeignKey("offices.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
