"""
Máquinas de estado de reservas y partidos.

Las funciones de este módulo no tocan la base de datos: validan la transición,
modifican la entidad recibida y la devuelven. El commit queda a cargo de la capa crud.
"""

import os
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from app.exceptions import ConflictError, ValidationError
from app.models.match import MatchStatus
from app.models.reservation import PaymentStatus, ReservationStatus

MATCH_EXPIRE_GRACE_MINUTES = int(os.getenv("MATCH_EXPIRE_GRACE_MINUTES", "30"))

# Estados en los que no se admiten nuevas presencias
CLOSED_MATCH_STATUSES = (
    MatchStatus.CANCELED,
    MatchStatus.EXPIRED,
    MatchStatus.FINISHED,
)


def _status_conflict(entity: str, current, expected, message: str) -> ConflictError:
    expected_values = [getattr(s, "value", s) for s in expected]
    return ConflictError(
        message,
        conflict={
            "type": "status",
            "entity": entity,
            "current": getattr(current, "value", current),
            "expected": expected_values,
        },
    )


# ---------------------------------------------------------------------------
# Reservas
# ---------------------------------------------------------------------------


def confirm_reservation(reservation):
    if reservation.status != ReservationStatus.PENDING:
        raise _status_conflict(
            "reservation",
            reservation.status,
            [ReservationStatus.PENDING],
            "Only pending reservations can be confirmed",
        )
    reservation.status = ReservationStatus.CONFIRMED
    return reservation


def mark_reservation_paid(reservation):
    if reservation.status != ReservationStatus.CONFIRMED:
        raise _status_conflict(
            "reservation",
            reservation.status,
            [ReservationStatus.CONFIRMED],
            "Only confirmed reservations can be marked as paid",
        )
    if reservation.payment_status != PaymentStatus.UNPAID:
        raise _status_conflict(
            "payment",
            reservation.payment_status,
            [PaymentStatus.UNPAID],
            "Reservation payment was already registered",
        )
    reservation.payment_status = PaymentStatus.PAID
    return reservation


def cancel_reservation(reservation):
    if reservation.status == ReservationStatus.CANCELED:
        raise _status_conflict(
            "reservation",
            reservation.status,
            [ReservationStatus.PENDING, ReservationStatus.CONFIRMED],
            "Reservation is already canceled",
        )
    reservation.status = ReservationStatus.CANCELED
    return reservation


RESERVATION_ACTIONS = {
    "confirm": confirm_reservation,
    "pay": mark_reservation_paid,
    "cancel": cancel_reservation,
}


def apply_reservation_action(reservation, action: str):
    handler = RESERVATION_ACTIONS.get(action)
    if handler is None:
        raise ValidationError(f"Unknown reservation action: {action}", field="action")
    return handler(reservation)


# ---------------------------------------------------------------------------
# Partidos
# ---------------------------------------------------------------------------


class MatchTransition(NamedTuple):
    allowed_from: tuple
    target: MatchStatus
    timestamp_field: Optional[str]


MATCH_TRANSITIONS = {
    "start": MatchTransition(
        (MatchStatus.SCHEDULED,), MatchStatus.LIVE, "started_at"
    ),
    "finish": MatchTransition((MatchStatus.LIVE,), MatchStatus.FINISHED, "finished_at"),
    "cancel": MatchTransition(
        (MatchStatus.SCHEDULED, MatchStatus.LIVE), MatchStatus.CANCELED, "canceled_at"
    ),
    # Reactivar un partido cancelado por error
    "uncancel": MatchTransition((MatchStatus.CANCELED,), MatchStatus.SCHEDULED, None),
    "expire": MatchTransition((MatchStatus.SCHEDULED,), MatchStatus.EXPIRED, "canceled_at"),
}


def apply_match_transition(match, action: str, now: datetime):
    """
    Aplica una transición manual sobre el partido.

    Args:
        match: Partido a modificar
        action: start | finish | cancel | uncancel | expire
        now: Momento de la transición

    Returns:
        El mismo partido con el nuevo estado

    Raises:
        ValidationError: si la acción no existe
        ConflictError: si el estado actual no admite la transición
    """
    transition = MATCH_TRANSITIONS.get(action)
    if transition is None:
        raise ValidationError(f"Unknown match action: {action}", field="action")

    if match.status not in transition.allowed_from:
        raise _status_conflict(
            "match",
            match.status,
            transition.allowed_from,
            f"Cannot {action} a match with status {match.status.value}",
        )

    match.status = transition.target
    if transition.timestamp_field:
        setattr(match, transition.timestamp_field, now)
    if action == "uncancel":
        # Vuelve a estar programado: se descarta el inicio si se había cancelado en juego
        match.canceled_at = None
        match.started_at = None
    return match


class MatchEvaluation(NamedTuple):
    status: MatchStatus
    canceled_at: Optional[datetime]
    changed: bool


def is_expiration_due(
    status: MatchStatus,
    min_players: int,
    match_date: datetime,
    presence_count: int,
    now: datetime,
) -> bool:
    """Un partido programado sin el mínimo de jugadores vence pasados 30 minutos del inicio."""
    if status != MatchStatus.SCHEDULED:
        return False
    if not min_players or min_players <= 0:
        return False
    if now <= match_date + timedelta(minutes=MATCH_EXPIRE_GRACE_MINUTES):
        return False
    return presence_count < min_players


def evaluate_match(match, now: datetime) -> MatchEvaluation:
    """
    Evalúa el vencimiento automático de un partido sin modificarlo.

    Returns:
        MatchEvaluation con el estado que debería tener el partido en `now`
    """
    if is_expiration_due(
        match.status, match.min_players, match.date, len(match.presences), now
    ):
        return MatchEvaluation(MatchStatus.EXPIRED, now, True)
    return MatchEvaluation(match.status, match.canceled_at, False)


def can_join_match(match, user_id: int) -> None:
    """
    Valida que el usuario pueda confirmar presencia.

    Raises:
        ConflictError: partido cerrado o sin lugares disponibles
    """
    if match.status in CLOSED_MATCH_STATUSES:
        raise _status_conflict(
            "match",
            match.status,
            [MatchStatus.SCHEDULED, MatchStatus.LIVE],
            "Match is not open for players",
        )

    if match.has_player(user_id):
        return

    if len(match.presences) >= match.max_players:
        raise ConflictError(
            "Match is full",
            conflict={
                "type": "capacity",
                "confirmed": len(match.presences),
                "max": match.max_players,
            },
        )


# ---------------------------------------------------------------------------
# Estadísticas
# ---------------------------------------------------------------------------

STAT_FIELDS = {
    ("goal", "official"): "goals_official",
    ("assist", "official"): "assists_official",
    ("goal", "unofficial"): "goals_unofficial",
    ("assist", "unofficial"): "assists_unofficial",
}


def apply_stat_delta(current: Optional[int], delta: int) -> int:
    # Nunca por debajo de cero: un decremento de más se ignora
    return max(0, (current or 0) + delta)


def apply_stat_event(stat, event_type: str, mode: str, delta: int):
    field_name = STAT_FIELDS.get((event_type, mode))
    if field_name is None:
        raise ValidationError(f"Unknown stat {event_type}/{mode}", field="type")
    if delta not in (-1, 1):
        raise ValidationError("delta must be -1 or 1", field="delta")

    setattr(stat, field_name, apply_stat_delta(getattr(stat, field_name), delta))
    return stat
