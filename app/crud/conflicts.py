"""
Consultas de ocupación de canchas: reservas y partidos que bloquean un horario.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional
import logging

from sqlalchemy.orm import Session

from app.crud.expiration import mark_expired_if_due, refresh_expirations
from app.exceptions import ConflictError
from app.models.match import Match
from app.models.reservation import Reservation, ReservationStatus
from app.utils.booking_overlap import (
    BLOCKING_MATCH_STATUSES,
    SOURCE_MATCH,
    SOURCE_RESERVATION,
    BlockingInterval,
    first_overlapping,
    is_blocking_match,
    match_duration,
    match_interval,
    reservation_interval,
)

logger = logging.getLogger(__name__)

CONFLICT_MESSAGES = {
    SOURCE_RESERVATION: "Time slot already reserved",
    SOURCE_MATCH: "Time slot already taken by a match",
}


def _reservations_query(db: Session, court_ids: Iterable[int], start: datetime, end: datetime):
    return db.query(Reservation).filter(
        Reservation.court_id.in_(list(court_ids)),
        Reservation.status != ReservationStatus.CANCELED,
        Reservation.start_at < end,
        Reservation.end_at > start,
    )


def _matches_query(db: Session, court_ids: Iterable[int], start: datetime, end: datetime):
    # Un partido que empieza antes de `start` todavía ocupa la cancha si termina después
    return db.query(Match).filter(
        Match.court_id.in_(list(court_ids)),
        Match.status.in_(BLOCKING_MATCH_STATUSES),
        Match.date < end,
        Match.date > start - match_duration(),
    )


def find_court_conflict(
    db: Session,
    court_id: int,
    start: datetime,
    end: datetime,
    now: datetime,
    exclude_reservation_id: Optional[int] = None,
    exclude_match_id: Optional[int] = None,
) -> Optional[BlockingInterval]:
    """
    Busca el primer bloqueo de la cancha que se solapa con [start, end).

    Primero revisa reservas no canceladas y después partidos activos. Los partidos
    vencidos se marcan EXPIRED en la sesión (sin commit) y dejan de bloquear; el
    cambio se persiste junto con la operación que hizo la consulta.

    Args:
        db: Sesión de base de datos
        court_id: ID de la cancha
        start: Inicio del intervalo propuesto
        end: Fin del intervalo propuesto
        now: Momento de referencia para el vencimiento de partidos
        exclude_reservation_id: Reserva a ignorar
        exclude_match_id: Partido a ignorar (ej: al reactivarlo)

    Returns:
        Optional[BlockingInterval]: El bloqueo encontrado o None
    """
    reservations = _reservations_query(db, [court_id], start, end)
    if exclude_reservation_id is not None:
        reservations = reservations.filter(Reservation.id != exclude_reservation_id)
    reservations = reservations.order_by(Reservation.start_at, Reservation.id).all()

    conflict = first_overlapping(
        (reservation_interval(r) for r in reservations), start, end
    )
    if conflict:
        return conflict

    matches = _matches_query(db, [court_id], start, end)
    if exclude_match_id is not None:
        matches = matches.filter(Match.id != exclude_match_id)
    matches = matches.order_by(Match.date, Match.id).all()

    blocking = []
    for match in matches:
        mark_expired_if_due(match, now)
        if is_blocking_match(match):
            blocking.append(match_interval(match))

    return first_overlapping(blocking, start, end)


def raise_conflict(conflict: BlockingInterval):
    logger.warning(
        f"Conflicto en cancha {conflict.court_id}: {conflict.source} {conflict.entity_id} "
        f"ocupa {conflict.start:%Y-%m-%d %H:%M}-{conflict.end:%H:%M}"
    )
    raise ConflictError(
        CONFLICT_MESSAGES.get(conflict.source, "Time slot not available"),
        conflict=conflict.to_conflict(),
    )


def get_blocking_intervals(
    db: Session,
    court_ids: List[int],
    window_start: datetime,
    window_end: datetime,
    now: datetime,
) -> Dict[int, List[BlockingInterval]]:
    """
    Obtiene todos los bloqueos de varias canchas en una ventana, agrupados por cancha.

    Hace una consulta de reservas y una de partidos en total, no una por slot.
    Aplica el vencimiento automático a los partidos leídos.
    """
    buckets: Dict[int, List[BlockingInterval]] = defaultdict(list)
    if not court_ids:
        return buckets

    reservations = (
        _reservations_query(db, court_ids, window_start, window_end)
        .order_by(Reservation.start_at)
        .all()
    )
    matches = (
        _matches_query(db, court_ids, window_start, window_end)
        .order_by(Match.date)
        .all()
    )
    refresh_expirations(db, matches, now)

    for reservation in reservations:
        buckets[reservation.court_id].append(reservation_interval(reservation))
    for match in matches:
        if is_blocking_match(match):
            buckets[match.court_id].append(match_interval(match))

    return buckets
