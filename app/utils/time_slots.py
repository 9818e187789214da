"""
Utilidades para discretizar el horario de una arena en slots.

Un slot es un intervalo semiabierto [inicio, inicio + duración). Si la hora de
cierre es menor o igual a la de apertura, el cierre se interpreta como del día
siguiente (arenas que abren pasada la medianoche).
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

MIN_SLOT_MINUTES = 30
MAX_SLOT_MINUTES = 180

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class TimeSlot:
    start: datetime
    end: datetime

    @property
    def start_label(self) -> str:
        return self.start.strftime("%H:%M")

    @property
    def end_label(self) -> str:
        return self.end.strftime("%H:%M")


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    """
    Convierte un string "HH:MM" en un `time`.

    Args:
        value: String en formato "HH:MM" (00:00 - 23:59)

    Returns:
        time o None si el valor no se puede interpretar
    """
    if not value or not isinstance(value, str):
        return None
    match = _HHMM_RE.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return time(hours, minutes)


def operating_window(
    open_time: Optional[str], close_time: Optional[str], target_date: date
) -> Optional[tuple]:
    """
    Devuelve (apertura, cierre) como datetimes para el día indicado.

    El cierre se mueve al día siguiente cuando es <= a la apertura.
    None si alguno de los horarios es inválido.
    """
    opening = parse_hhmm(open_time)
    closing = parse_hhmm(close_time)
    if opening is None or closing is None:
        return None

    opening_dt = datetime.combine(target_date, opening)
    closing_dt = datetime.combine(target_date, closing)
    if closing_dt <= opening_dt:
        closing_dt += timedelta(days=1)
    return opening_dt, closing_dt


def build_day_slots(
    open_time: Optional[str],
    close_time: Optional[str],
    target_date: date,
    slot_minutes: int,
) -> List[TimeSlot]:
    """
    Genera la grilla de slots de un día.

    El último slot solo se incluye si termina antes (o justo en) el cierre; no se
    generan slots parciales. Nunca lanza excepciones: con horarios inválidos
    devuelve una lista vacía.

    Args:
        open_time: Hora de apertura "HH:MM"
        close_time: Hora de cierre "HH:MM"
        target_date: Día a calcular
        slot_minutes: Duración de cada slot en minutos

    Returns:
        List[TimeSlot]: Slots ordenados por inicio
    """
    if not slot_minutes or slot_minutes <= 0:
        return []

    window = operating_window(open_time, close_time, target_date)
    if window is None:
        return []

    opening_dt, closing_dt = window
    step = timedelta(minutes=slot_minutes)

    slots = []
    current = opening_dt
    while current + step <= closing_dt:
        slots.append(TimeSlot(start=current, end=current + step))
        current += step

    return slots


def slot_price(price_per_hour: Optional[int], minutes: int) -> Optional[int]:
    """Precio proporcional a la duración, redondeando la mitad hacia arriba."""
    if price_per_hour is None or price_per_hour < 0:
        return None
    return (price_per_hour * minutes + 30) // 60
