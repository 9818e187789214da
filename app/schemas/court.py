from pydantic import Field
from typing import Optional
from datetime import datetime

from app.models.court import CourtType
from app.schemas.common import CamelModel


class CourtBase(CamelModel):
    name: str = Field(..., min_length=2)
    type: CourtType = CourtType.FUTSAL
    surface: Optional[str] = None
    covered: bool = False
    price_per_hour: Optional[int] = Field(None, ge=0)
    capacity: int = Field(14, ge=1, le=100)


class CourtCreate(CourtBase):
    arena_id: int


class CourtUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2)
    type: Optional[CourtType] = None
    surface: Optional[str] = None
    covered: Optional[bool] = None
    price_per_hour: Optional[int] = Field(None, ge=0)
    capacity: Optional[int] = Field(None, ge=1, le=100)


class CourtResponse(CourtBase):
    id: int
    arena_id: int
    created_at: datetime
