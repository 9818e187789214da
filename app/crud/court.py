from sqlalchemy.orm import Session
from typing import List, Optional

from app.models.arena import Arena
from app.models.court import Court
from app.models.user import UserRole
from app.schemas.court import CourtCreate, CourtUpdate


def get_court(db: Session, court_id: int) -> Optional[Court]:
    return db.query(Court).filter(Court.id == court_id).first()


def lock_court(db: Session, court_id: int) -> Optional[Court]:
    """
    Obtiene la cancha con SELECT ... FOR UPDATE.

    Serializa las altas de reservas y partidos sobre la misma cancha hasta el commit.
    En SQLite el FOR UPDATE se ignora.
    """
    return db.query(Court).filter(Court.id == court_id).with_for_update().first()


def get_courts(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    arena_id: Optional[int] = None,
    owner_id: Optional[int] = None,
) -> List[Court]:
    query = db.query(Court)

    if arena_id:
        query = query.filter(Court.arena_id == arena_id)
    if owner_id:
        query = query.join(Arena).filter(Arena.owner_id == owner_id)

    return query.order_by(Court.id).offset(skip).limit(limit).all()


def get_courts_for_user(
    db: Session,
    user,
    arena_id: Optional[int] = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Court]:
    # arena_owner solo ve las canchas de sus arenas; el resto ve todas
    owner_id = user.id if user.role == UserRole.ARENA_OWNER else None
    return get_courts(db, skip=skip, limit=limit, arena_id=arena_id, owner_id=owner_id)


def create_court(db: Session, court: CourtCreate) -> Court:
    db_court = Court(**court.model_dump())
    db.add(db_court)
    db.commit()
    db.refresh(db_court)
    return db_court


def update_court(db: Session, db_court: Court, court: CourtUpdate) -> Court:
    update_data = court.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        # name, type y capacity no admiten null
        if value is None and field in ("name", "type", "capacity", "covered"):
            continue
        setattr(db_court, field, value)

    db.commit()
    db.refresh(db_court)
    return db_court
