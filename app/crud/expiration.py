"""
Vencimiento automático de partidos.

Un partido programado que no juntó el mínimo de jugadores pasa a EXPIRED cuando
se lo lee después del período de gracia. No hay tareas en segundo plano: cada
lectura que devuelve partidos pasa por acá.
"""

from datetime import datetime, timedelta
from typing import Iterable
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.match import Match, MatchStatus
from app.utils.booking_state import MATCH_EXPIRE_GRACE_MINUTES, evaluate_match

logger = logging.getLogger(__name__)


def mark_expired_if_due(match: Match, now: datetime) -> bool:
    """
    Marca el partido como vencido en la sesión, sin commit.

    Returns:
        bool: True si el partido cambió de estado
    """
    evaluation = evaluate_match(match, now)
    if not evaluation.changed:
        return False
    match.status = evaluation.status
    match.canceled_at = evaluation.canceled_at
    return True


def refresh_expirations(db: Session, matches: Iterable[Match], now: datetime) -> None:
    """
    Aplica el vencimiento a un lote de partidos con un único commit.

    Si la escritura falla se hace rollback, se registra el error y los partidos
    quedan con el estado que tienen en la base: el vencimiento se reintenta en la
    próxima lectura.
    """
    expired = [match.id for match in matches if mark_expired_if_due(match, now)]
    if not expired:
        return

    try:
        db.commit()
        logger.info(f"Partidos vencidos por falta de jugadores: {expired}")
    except SQLAlchemyError as e:
        db.rollback()
        logger.warning(f"No se pudo persistir el vencimiento de partidos {expired}: {e}")


def expire_if_due(db: Session, match: Match, now: datetime) -> Match:
    refresh_expirations(db, [match], now)
    return match


def expire_due_matches(db: Session, query, now: datetime) -> None:
    """
    Aplica el vencimiento a todos los candidatos de una consulta antes de paginarla.

    Candidatos: partidos SCHEDULED con mínimo de jugadores cuyo inicio más el
    período de gracia ya pasó. Así un filtro por estado en SQL ve el estado vigente.

    Args:
        db: Sesión de base de datos
        query: Consulta de partidos ya filtrada por alcance (rol, cancha)
        now: Momento de referencia
    """
    deadline = now - timedelta(minutes=MATCH_EXPIRE_GRACE_MINUTES)
    candidates = query.filter(
        Match.status == MatchStatus.SCHEDULED,
        Match.min_players > 0,
        Match.date < deadline,
    ).all()
    refresh_expirations(db, candidates, now)
