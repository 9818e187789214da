from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.conflicts import find_court_conflict, raise_conflict
from app.crud.court import lock_court
from app.crud.expiration import expire_due_matches, expire_if_due
from app.exceptions import ConflictError, NotFoundError
from app.models.arena import Arena
from app.models.court import Court
from app.models.match import Match, MatchPlayerStat, MatchPresence, MatchStatus
from app.models.user import UserRole
from app.schemas.match import MatchCreate, StatEvent
from app.utils.booking_overlap import match_window
from app.utils.booking_state import (
    apply_match_transition,
    apply_stat_event,
    can_join_match,
)

logger = logging.getLogger(__name__)


def get_match(db: Session, match_id: int) -> Optional[Match]:
    return db.query(Match).filter(Match.id == match_id).first()


def get_match_for_read(db: Session, match_id: int, now: datetime) -> Optional[Match]:
    """Obtiene el partido aplicando el vencimiento automático."""
    match = get_match(db, match_id)
    if match:
        expire_if_due(db, match, now)
    return match


def lock_match(db: Session, match_id: int) -> Optional[Match]:
    match = db.query(Match).filter(Match.id == match_id).with_for_update().first()
    if match:
        # Las presencias se releen dentro del bloqueo
        db.expire(match, ["presences"])
    return match


def get_matches_for_user(
    db: Session,
    user,
    now: datetime,
    status: Optional[MatchStatus] = None,
    court_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Match]:
    """
    Lista partidos según el rol.

    admin ve todos, arena_owner los de las canchas de sus arenas, owner los que
    organiza y user todos (para poder sumarse).
    """
    query = db.query(Match)

    if user.role == UserRole.ARENA_OWNER:
        query = (
            query.join(Court, Match.court_id == Court.id)
            .join(Arena, Court.arena_id == Arena.id)
            .filter(Arena.owner_id == user.id)
        )
    elif user.role == UserRole.OWNER:
        query = query.filter(Match.organizer_id == user.id)

    if court_id:
        query = query.filter(Match.court_id == court_id)

    # El vencimiento va antes de paginar para que el filtro por estado vea el estado vigente
    expire_due_matches(db, query, now)

    if status:
        query = query.filter(Match.status == status)
    return query.order_by(Match.date, Match.id).offset(skip).limit(limit).all()


def _ensure_window_free(db: Session, match: Match, now: datetime, exclude_match_id=None):
    start, end = match_window(match.date)
    conflict = find_court_conflict(
        db, match.court_id, start, end, now, exclude_match_id=exclude_match_id
    )
    if conflict:
        db.rollback()
        raise_conflict(conflict)


def _commit_match(db: Session, match: Match, now: datetime, exclude_match_id=None):
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Alta concurrente rechazada en cancha {match.court_id} a las {match.date:%Y-%m-%d %H:%M}"
        )
        start, end = match_window(match.date)
        conflict = find_court_conflict(
            db, match.court_id, start, end, now, exclude_match_id=exclude_match_id
        )
        if conflict:
            raise_conflict(conflict)
        raise ConflictError(
            "Time slot already taken by a match", conflict={"type": "match"}
        )


def create_match(db: Session, match: MatchCreate, organizer_id: int, now: datetime) -> Match:
    """
    Crea un partido SCHEDULED si la cancha está libre durante su duración.

    Mismo esquema que las reservas: bloqueo de la cancha, verificación contra
    reservas y partidos activos, inserción y commit en una sola transacción.

    Raises:
        NotFoundError: la cancha no existe
        ConflictError: el horario está ocupado
    """
    court = lock_court(db, match.court_id)
    if not court:
        raise NotFoundError("Court not found")

    db_match = Match(**match.model_dump(), organizer_id=organizer_id)
    _ensure_window_free(db, db_match, now)

    db.add(db_match)
    _commit_match(db, db_match, now)
    db.refresh(db_match)
    logger.info(
        f"Partido {db_match.id} ({db_match.kind.value}) creado en cancha {court.id} "
        f"por usuario {organizer_id}"
    )
    return db_match


def transition_match(db: Session, match: Match, action: str, now: datetime) -> Match:
    """
    Aplica start, finish, cancel, uncancel o expire.

    Reactivar un partido cancelado vuelve a ocupar la cancha, así que antes se
    verifica que el horario siga libre.
    """
    previous = match.status.value
    if action == "uncancel" and match.status == MatchStatus.CANCELED:
        lock_court(db, match.court_id)
        _ensure_window_free(db, match, now, exclude_match_id=match.id)

    apply_match_transition(match, action, now)
    _commit_match(db, match, now, exclude_match_id=match.id)
    db.refresh(match)
    logger.info(f"Partido {match.id}: {action} ({previous} -> {match.status.value})")
    return match


def join_match(db: Session, match: Match, user_id: int) -> Match:
    """
    Confirma la presencia del usuario. Si ya estaba anotado no hace nada.

    Raises:
        ConflictError: partido cerrado o completo
    """
    locked = lock_match(db, match.id)
    can_join_match(locked, user_id)
    if locked.has_player(user_id):
        return locked

    db.add(MatchPresence(match_id=locked.id, user_id=user_id))
    try:
        db.commit()
    except IntegrityError:
        # Otra solicitud del mismo usuario ya creó la presencia
        db.rollback()
    db.refresh(locked)
    logger.info(
        f"Usuario {user_id} confirmado en partido {locked.id} "
        f"({locked.presence_count}/{locked.max_players})"
    )
    return locked


def leave_match(db: Session, match: Match, user_id: int) -> Match:
    presence = (
        db.query(MatchPresence)
        .filter(MatchPresence.match_id == match.id, MatchPresence.user_id == user_id)
        .first()
    )
    if presence:
        db.delete(presence)
        db.commit()
        logger.info(f"Usuario {user_id} salió del partido {match.id}")
    db.refresh(match)
    return match


def get_match_stats(db: Session, match_id: int) -> List[MatchPlayerStat]:
    return (
        db.query(MatchPlayerStat)
        .filter(MatchPlayerStat.match_id == match_id)
        .order_by(MatchPlayerStat.user_id)
        .all()
    )


def get_or_create_stat(db: Session, match_id: int, user_id: int) -> MatchPlayerStat:
    stat = (
        db.query(MatchPlayerStat)
        .filter(MatchPlayerStat.match_id == match_id, MatchPlayerStat.user_id == user_id)
        .first()
    )
    if stat:
        return stat

    stat = MatchPlayerStat(
        match_id=match_id,
        user_id=user_id,
        goals_official=0,
        assists_official=0,
        goals_unofficial=0,
        assists_unofficial=0,
    )
    db.add(stat)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        return (
            db.query(MatchPlayerStat)
            .filter(
                MatchPlayerStat.match_id == match_id, MatchPlayerStat.user_id == user_id
            )
            .one()
        )
    db.refresh(stat)
    return stat


def record_stat_event(db: Session, match: Match, event: StatEvent) -> MatchPlayerStat:
    stat = get_or_create_stat(db, match.id, event.user_id)
    apply_stat_event(stat, event.type, event.mode, event.delta)
    db.commit()
    db.refresh(stat)
    logger.info(
        f"Partido {match.id}: {event.type} {event.mode} {event.delta:+d} para usuario {event.user_id}"
    )
    return stat
