"""
Utilidades para detectar solapamientos entre reservas y partidos de una cancha.

Un partido ocupa la cancha durante MATCH_DURATION_MINUTES (60 por defecto), por lo
que un partido que comienza a las 21:00 ocupa el rango [21:00, 22:00).
Los intervalos son semiabiertos: una reserva que termina a las 10:00 no se solapa
con otra que empieza a las 10:00.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, Optional, Tuple

from app.models.match import MatchStatus
from app.models.reservation import ReservationStatus

MATCH_DURATION_MINUTES = int(os.getenv("MATCH_DURATION_MINUTES", "60"))

SOURCE_RESERVATION = "reservation"
SOURCE_MATCH = "match"

# Partidos en estos estados ya no ocupan la cancha
NON_BLOCKING_MATCH_STATUSES = (
    MatchStatus.CANCELED,
    MatchStatus.EXPIRED,
    MatchStatus.FINISHED,
)
BLOCKING_MATCH_STATUSES = (MatchStatus.SCHEDULED, MatchStatus.LIVE)


@dataclass(frozen=True)
class BlockingInterval:
    """Intervalo ocupado por una reserva o un partido."""

    source: str
    entity_id: int
    court_id: int
    start: datetime
    end: datetime
    status: str
    title: Optional[str] = None
    kind: Optional[str] = None
    capacity: Optional[dict] = field(default=None, compare=False)

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return intervals_overlap(self.start, self.end, start, end)

    def to_conflict(self) -> dict:
        """Detalle de conflicto para respuestas 409."""
        detail = {
            "type": self.source,
            "id": self.entity_id,
            "courtId": self.court_id,
            "startAt": self.start.isoformat(),
            "endAt": self.end.isoformat(),
            "status": self.status,
        }
        if self.title is not None:
            detail["title"] = self.title
        return detail

    def to_busy_meta(self) -> dict:
        """Metadata del ocupante de un slot (solo para mostrar)."""
        meta = {
            "source": self.source,
            "kind": self.kind,
            "id": self.entity_id,
            "title": self.title,
            "status": self.status,
        }
        if self.capacity is not None:
            meta["capacity"] = self.capacity
        return meta


def intervals_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """A se solapa con B si A empieza antes de que B termine y B empieza antes de que A termine."""
    return a_start < b_end and b_start < a_end


def match_duration(minutes: Optional[int] = None) -> timedelta:
    return timedelta(minutes=minutes if minutes is not None else MATCH_DURATION_MINUTES)


def match_window(match_date: datetime, minutes: Optional[int] = None) -> Tuple[datetime, datetime]:
    return match_date, match_date + match_duration(minutes)


def _status_value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def is_blocking_reservation(reservation) -> bool:
    return reservation.status != ReservationStatus.CANCELED


def is_blocking_match(match) -> bool:
    return match.status not in NON_BLOCKING_MATCH_STATUSES


def reservation_interval(reservation) -> BlockingInterval:
    return BlockingInterval(
        source=SOURCE_RESERVATION,
        entity_id=reservation.id,
        court_id=reservation.court_id,
        start=reservation.start_at,
        end=reservation.end_at,
        status=_status_value(reservation.status),
        title="Reserva",
        kind=SOURCE_RESERVATION,
    )


def match_interval(match, minutes: Optional[int] = None) -> BlockingInterval:
    start, end = match_window(match.date, minutes)
    return BlockingInterval(
        source=SOURCE_MATCH,
        entity_id=match.id,
        court_id=match.court_id,
        start=start,
        end=end,
        status=_status_value(match.status),
        title=match.title,
        kind=_status_value(match.kind) if match.kind is not None else None,
        capacity={"confirmed": len(match.presences), "max": match.max_players},
    )


def first_overlapping(
    intervals: Iterable[BlockingInterval], start: datetime, end: datetime
) -> Optional[BlockingInterval]:
    """Devuelve el primer intervalo (en el orden recibido) que se solapa con [start, end)."""
    for interval in intervals:
        if interval.overlaps(start, end):
            return interval
    return None
