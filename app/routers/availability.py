from datetime import date, datetime
from typing import Annotated, Optional
import os

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.availability import AvailabilityResponse
from app.services.availability import get_arena_availability
from app.utils.time_slots import MAX_SLOT_MINUTES, MIN_SLOT_MINUTES

DEFAULT_SLOT_MINUTES = int(os.getenv("DEFAULT_SLOT_MINUTES", "60"))

router = APIRouter()


@router.get("/{arena_slug}", response_model=AvailabilityResponse)
def read_availability(
    arena_slug: str,
    target_date: Annotated[Optional[date], Query(alias="date")] = None,
    slot_minutes: Annotated[
        int, Query(alias="slotMinutes", ge=MIN_SLOT_MINUTES, le=MAX_SLOT_MINUTES)
    ] = DEFAULT_SLOT_MINUTES,
    db: Session = Depends(get_db),
):
    """Grilla pública de slots libres y ocupados de todas las canchas de la arena."""
    now = datetime.now()
    return get_arena_availability(
        db, arena_slug, target_date or now.date(), slot_minutes, now=now
    )
