from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Annotated, List, Optional

from app.database import get_db
from app.crud import court as crud
from app.crud.arena import get_arena
from app.exceptions import NotFoundError
from app.schemas.court import CourtResponse, CourtCreate, CourtUpdate
from app.services.auth import get_current_user
from app.models.user import User
from app.utils.access_policy import COURT_CREATE, COURT_UPDATE, require_permission

router = APIRouter()


@router.post("/", response_model=CourtResponse, status_code=status.HTTP_201_CREATED)
def create_court(
    court: CourtCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    arena = get_arena(db, court.arena_id)
    if arena is None:
        raise NotFoundError("Arena not found")

    # Solo el dueño de la arena (o un admin) agrega canchas
    require_permission(
        current_user, COURT_CREATE, arena, message="Can only create courts for your own arenas"
    )
    return crud.create_court(db=db, court=court)


@router.get("/", response_model=List[CourtResponse])
def read_courts(
    arena_id: Annotated[Optional[int], Query(alias="arenaId")] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return crud.get_courts_for_user(
        db, current_user, arena_id=arena_id, skip=skip, limit=limit
    )


@router.get("/{court_id}", response_model=CourtResponse)
def read_court(court_id: int, db: Session = Depends(get_db)):
    db_court = crud.get_court(db, court_id=court_id)
    if db_court is None:
        raise NotFoundError("Court not found")
    return db_court


@router.patch("/{court_id}", response_model=CourtResponse)
def update_court(
    court_id: int,
    court: CourtUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db_court = crud.get_court(db, court_id=court_id)
    if db_court is None:
        raise NotFoundError("Court not found")

    require_permission(
        current_user, COURT_UPDATE, db_court, message="Can only update courts of your own arenas"
    )
    return crud.update_court(db, db_court, court)
