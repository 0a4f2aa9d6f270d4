# Import and re-export all models so callers can use `from priceguide import models`

# Import Base from db module
from ..db import Base

# Import all models from their individual files
from .company import Company
from .office import Office
from .category import PriceGuideCategory
from .category_office import CategoryOfficeAssignment
from .measure_sheet_item import MeasureSheetItem

# Ensure all models are available at package level
__all__ = [
    "Base",
    "Company",
    "Office",
    "PriceGuideCategory",
    "CategoryOfficeAssignment",
    "MeasureSheetItem",
]
