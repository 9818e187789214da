from pydantic import Field, field_validator
from typing import List, Optional
from datetime import datetime

from app.models.court import CourtType
from app.schemas.common import CamelModel, PublicUser
from app.utils.time_slots import parse_hhmm


def _validate_hhmm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = parse_hhmm(value)
    if parsed is None:
        raise ValueError("must be a time in HH:MM format")
    return parsed.strftime("%H:%M")


class ArenaBase(CamelModel):
    name: str = Field(..., min_length=2)
    city: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    open_time: Optional[str] = None  # "09:00"
    close_time: Optional[str] = None  # "23:00"

    @field_validator("open_time", "close_time")
    @classmethod
    def check_times(cls, value: Optional[str]) -> Optional[str]:
        return _validate_hhmm(value)


class ArenaCreate(ArenaBase):
    pass


class ArenaUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2)
    city: Optional[str] = None
    district: Optional[str] = None
    address: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def check_times(cls, value: Optional[str]) -> Optional[str]:
        return _validate_hhmm(value)


class ArenaCourt(CamelModel):
    id: int
    name: str
    type: CourtType
    price_per_hour: Optional[int] = None
    capacity: int


class ArenaResponse(ArenaBase):
    id: int
    slug: str
    owner_id: int
    owner: PublicUser
    courts: List[ArenaCourt] = []
    courts_count: int = 0
    created_at: datetime
