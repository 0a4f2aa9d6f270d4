from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from ..db import Base


class MeasureSheetItem(Base):
    """
    Catalog item filed under a price guide category.
    Only the category link is modelled here; pricing, upcharges and
    additional details live with the catalog itself.
    """
    __tablename__ = "measure_sheet_items"
    
    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    category_id = Column(
        UUID(as_uuid=True),
        ForeignKey("price_guide_categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
