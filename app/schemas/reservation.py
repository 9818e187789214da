from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from app.models.court import CourtType
from app.models.reservation import PaymentStatus, ReservationStatus
from app.schemas.common import CamelModel, PublicUser, strip_timezone


class ReservationCreate(CamelModel):
    court_id: int
    start_at: datetime  # ISO
    duration_minutes: int = Field(60, ge=30, le=24 * 60)
    notes: Optional[str] = Field(None, max_length=500)

    @field_validator("start_at")
    @classmethod
    def naive_start(cls, value: datetime) -> datetime:
        return strip_timezone(value)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


class ReservationCourt(CamelModel):
    id: int
    name: str
    type: CourtType
    arena_id: int
    price_per_hour: Optional[int] = None


class ReservationResponse(CamelModel):
    id: int
    court_id: int
    user_id: int
    start_at: datetime
    end_at: datetime
    status: ReservationStatus
    payment_status: PaymentStatus
    total_price: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: PublicUser
    court: ReservationCourt
