from typing import Dict, List, Literal, Optional

from app.schemas.common import CamelModel


class SlotResponse(CamelModel):
    start: str  # "HH:MM"
    end: str
    status: Literal["free", "busy"]
    price: Optional[int] = None
    busy_meta: Optional[dict] = None


class AvailabilityArena(CamelModel):
    id: int
    name: str
    slug: str
    open_time: Optional[str] = None
    close_time: Optional[str] = None


class AvailabilityResponse(CamelModel):
    arena: AvailabilityArena
    date: str
    date_label: str
    slot_minutes: int
    courts: Dict[int, List[SlotResponse]]
