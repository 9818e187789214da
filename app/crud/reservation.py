from datetime import date, datetime, time, timedelta
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.conflicts import find_court_conflict, raise_conflict
from app.crud.court import lock_court
from app.exceptions import ConflictError, NotFoundError
from app.models.arena import Arena
from app.models.court import Court
from app.models.reservation import Reservation
from app.models.user import UserRole
from app.schemas.reservation import ReservationCreate
from app.utils.booking_state import apply_reservation_action
from app.utils.time_slots import slot_price

logger = logging.getLogger(__name__)


def get_reservation(db: Session, reservation_id: int) -> Optional[Reservation]:
    return db.query(Reservation).filter(Reservation.id == reservation_id).first()


def get_user_reservations(
    db: Session, user_id: int, skip: int = 0, limit: int = 100
) -> List[Reservation]:
    return (
        db.query(Reservation)
        .filter(Reservation.user_id == user_id)
        .order_by(Reservation.start_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def get_reservations(
    db: Session,
    user,
    target_date: Optional[date] = None,
    arena_id: Optional[int] = None,
    court_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Reservation]:
    """
    Agenda de reservas visible para el usuario.

    admin ve todas, arena_owner las de las canchas de sus arenas y el resto
    solamente las propias.

    Args:
        db: Sesión de base de datos
        user: Usuario autenticado
        target_date: Día a consultar (reservas que empiezan ese día)
        arena_id: Filtrar por arena
        court_id: Filtrar por cancha
    """
    query = db.query(Reservation).join(Court, Reservation.court_id == Court.id)

    if user.role == UserRole.ARENA_OWNER:
        query = query.join(Arena, Court.arena_id == Arena.id).filter(
            Arena.owner_id == user.id
        )
    elif user.role != UserRole.ADMIN:
        query = query.filter(Reservation.user_id == user.id)

    if arena_id:
        query = query.filter(Court.arena_id == arena_id)
    if court_id:
        query = query.filter(Reservation.court_id == court_id)
    if target_date:
        day_start = datetime.combine(target_date, time.min)
        query = query.filter(
            Reservation.start_at >= day_start,
            Reservation.start_at < day_start + timedelta(days=1),
        )

    return query.order_by(Reservation.start_at).offset(skip).limit(limit).all()


def create_reservation(
    db: Session, reservation: ReservationCreate, user_id: int, now: datetime
) -> Reservation:
    """
    Crea una reserva PENDING / UNPAID si la cancha está libre en el intervalo.

    La cancha se bloquea (FOR UPDATE) mientras se verifican los conflictos y se
    inserta la reserva, todo en la misma transacción. El índice único parcial
    sobre (court_id, start_at) es el árbitro final ante altas concurrentes.

    Raises:
        NotFoundError: la cancha no existe
        ConflictError: el intervalo se solapa con una reserva o un partido activo
    """
    court = lock_court(db, reservation.court_id)
    if not court:
        raise NotFoundError("Court not found")

    start_at = reservation.start_at
    end_at = start_at + timedelta(minutes=reservation.duration_minutes)

    conflict = find_court_conflict(db, court.id, start_at, end_at, now)
    if conflict:
        db.rollback()
        raise_conflict(conflict)

    db_reservation = Reservation(
        court_id=court.id,
        user_id=user_id,
        start_at=start_at,
        end_at=end_at,
        total_price=slot_price(court.price_per_hour, reservation.duration_minutes),
        notes=reservation.notes,
    )
    db.add(db_reservation)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(
            f"Alta concurrente rechazada en cancha {court.id} a las {start_at:%Y-%m-%d %H:%M}"
        )
        conflict = find_court_conflict(db, reservation.court_id, start_at, end_at, now)
        if conflict:
            raise_conflict(conflict)
        raise ConflictError("Time slot already reserved", conflict={"type": "reservation"})

    db.refresh(db_reservation)
    logger.info(
        f"Reserva {db_reservation.id} creada en cancha {court.id} por usuario {user_id}"
    )
    return db_reservation


def transition_reservation(db: Session, reservation: Reservation, action: str) -> Reservation:
    previous = reservation.status.value
    apply_reservation_action(reservation, action)
    db.commit()
    db.refresh(reservation)
    logger.info(
        f"Reserva {reservation.id}: {action} ({previous} -> {reservation.status.value}, "
        f"pago {reservation.payment_status.value})"
    )
    return reservation
