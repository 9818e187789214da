"""
Disponibilidad pública de una arena: grilla de slots libres/ocupados por cancha.
"""

from datetime import date, datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.crud.arena import get_arena_by_slug
from app.crud.conflicts import get_blocking_intervals
from app.exceptions import NotFoundError, ValidationError
from app.utils.booking_overlap import first_overlapping
from app.utils.time_slots import (
    MAX_SLOT_MINUTES,
    MIN_SLOT_MINUTES,
    build_day_slots,
    slot_price,
)

logger = logging.getLogger(__name__)

DATE_LABEL_FORMAT = "%d/%m/%Y"


def build_court_slots(court, slots, intervals) -> list:
    """
    Marca cada slot de la grilla como libre u ocupado para una cancha.

    Args:
        court: Cancha (se usa su precio por hora)
        slots: Grilla del día (List[TimeSlot])
        intervals: Bloqueos de la cancha en la ventana del día

    Returns:
        list: Slots serializables con start, end, status, price y busyMeta
    """
    result = []
    for slot in slots:
        blocker = first_overlapping(intervals, slot.start, slot.end)
        minutes = int((slot.end - slot.start).total_seconds() // 60)
        result.append(
            {
                "start": slot.start_label,
                "end": slot.end_label,
                "status": "busy" if blocker else "free",
                "price": slot_price(court.price_per_hour, minutes),
                "busy_meta": blocker.to_busy_meta() if blocker else None,
            }
        )
    return result


def get_arena_availability(
    db: Session,
    slug: str,
    target_date: date,
    slot_minutes: int,
    now: Optional[datetime] = None,
) -> dict:
    """
    Calcula la disponibilidad de todas las canchas de una arena en un día.

    Se hacen dos consultas en total (reservas y partidos de todas las canchas en
    la ventana del día), no una por slot.

    Args:
        db: Sesión de base de datos
        slug: Slug de la arena
        target_date: Día a consultar
        slot_minutes: Duración de los slots (30 a 180)
        now: Momento de referencia para el vencimiento de partidos

    Returns:
        dict: arena, date, date_label, slot_minutes y courts {court_id: slots}

    Raises:
        NotFoundError: la arena no existe
        ValidationError: duración de slot fuera de rango
    """
    if slot_minutes < MIN_SLOT_MINUTES or slot_minutes > MAX_SLOT_MINUTES:
        raise ValidationError(
            f"slotMinutes must be between {MIN_SLOT_MINUTES} and {MAX_SLOT_MINUTES}",
            field="slotMinutes",
        )

    arena = get_arena_by_slug(db, slug)
    if not arena:
        raise NotFoundError("Arena not found")

    now = now or datetime.now()
    slots = build_day_slots(arena.open_time, arena.close_time, target_date, slot_minutes)
    courts = list(arena.courts)

    if slots and courts:
        blocking = get_blocking_intervals(
            db, [c.id for c in courts], slots[0].start, slots[-1].end, now
        )
    else:
        blocking = {}

    if not slots and courts:
        logger.info(f"Arena {arena.slug} sin horario válido: grilla vacía")

    return {
        "arena": {
            "id": arena.id,
            "name": arena.name,
            "slug": arena.slug,
            "open_time": arena.open_time,
            "close_time": arena.close_time,
        },
        "date": target_date.isoformat(),
        "date_label": target_date.strftime(DATE_LABEL_FORMAT),
        "slot_minutes": slot_minutes,
        "courts": {
            court.id: build_court_slots(court, slots, blocking.get(court.id, []))
            for court in courts
        },
    }
