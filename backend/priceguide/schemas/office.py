from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
from typing import Optional


class Office(BaseModel):
    id: int
    company_id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OfficeListResponse(BaseModel):
    offices: List[Office]


class AssignOfficesRequest(BaseModel):
    office_ids: List[int] = Field(..., min_length=1)


class AssignOfficesResponse(BaseModel):
    message: str
    assigned_count: int


class UnassignOfficeResponse(BaseModel):
    message: str
