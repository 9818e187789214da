from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional

from app.database import get_db
from app.crud import arena as crud
from app.exceptions import NotFoundError
from app.schemas.arena import ArenaCreate, ArenaResponse, ArenaUpdate
from app.services.auth import get_current_user
from app.models.user import User
from app.utils.access_policy import ARENA_CREATE, ARENA_UPDATE, require_permission

router = APIRouter()


@router.get("/", response_model=List[ArenaResponse])
def read_arenas(
    city: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    # Directorio público: sin autenticación y sin emails de los dueños
    return crud.get_arenas(db, skip=skip, limit=limit, city=city)


@router.get("/{slug}", response_model=ArenaResponse)
def read_arena(slug: str, db: Session = Depends(get_db)):
    db_arena = crud.get_arena_by_slug(db, slug)
    if db_arena is None:
        raise NotFoundError("Arena not found")
    return db_arena


@router.post("/", response_model=ArenaResponse, status_code=status.HTTP_201_CREATED)
def create_arena(
    arena: ArenaCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_permission(
        current_user, ARENA_CREATE, message="Only arena owners can create arenas"
    )
    return crud.create_arena(db, arena, owner_id=current_user.id)


@router.patch("/{arena_id}", response_model=ArenaResponse)
def update_arena(
    arena_id: int,
    arena: ArenaUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    db_arena = crud.get_arena(db, arena_id)
    if db_arena is None:
        raise NotFoundError("Arena not found")

    require_permission(
        current_user, ARENA_UPDATE, db_arena, message="Can only update your own arenas"
    )
    return crud.update_arena(db, db_arena, arena)
