from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from app.models.arena import Arena
from app.schemas.arena import ArenaCreate, ArenaUpdate
from app.utils.slug import slugify

logger = logging.getLogger(__name__)


def get_arena(db: Session, arena_id: int) -> Optional[Arena]:
    return db.query(Arena).filter(Arena.id == arena_id).first()


def get_arena_by_slug(db: Session, slug: str) -> Optional[Arena]:
    return db.query(Arena).filter(Arena.slug == slug).first()


def get_arenas(
    db: Session,
    skip: int = 0,
    limit: int = 100,
    city: Optional[str] = None,
) -> List[Arena]:
    query = db.query(Arena)

    if city:
        query = query.filter(Arena.city.ilike(city))

    return query.order_by(Arena.created_at.desc()).offset(skip).limit(limit).all()


def generate_unique_slug(
    db: Session, name: str, exclude_arena_id: Optional[int] = None
) -> str:
    """
    Genera un slug único para una arena, agregando un sufijo numérico si ya existe.

    Args:
        db: Sesión de base de datos
        name: Nombre de la arena
        exclude_arena_id: Arena que se está renombrando (su slug actual no cuenta)

    Returns:
        str: Slug disponible
    """
    base = slugify(name)
    slug = base
    counter = 2
    while True:
        query = db.query(Arena.id).filter(Arena.slug == slug)
        if exclude_arena_id is not None:
            query = query.filter(Arena.id != exclude_arena_id)
        if query.first() is None:
            return slug
        slug = f"{base}-{counter}"
        counter += 1


def create_arena(db: Session, arena: ArenaCreate, owner_id: int) -> Arena:
    db_arena = Arena(
        **arena.model_dump(),
        slug=generate_unique_slug(db, arena.name),
        owner_id=owner_id,
    )
    db.add(db_arena)
    db.commit()
    db.refresh(db_arena)
    logger.info(f"Arena {db_arena.id} creada con slug {db_arena.slug}")
    return db_arena


def update_arena(db: Session, db_arena: Arena, arena: ArenaUpdate) -> Arena:
    update_data = arena.model_dump(exclude_unset=True)

    # El nombre es obligatorio: un null explícito se ignora
    if update_data.get("name") is None:
        update_data.pop("name", None)

    if "name" in update_data and update_data["name"] != db_arena.name:
        db_arena.slug = generate_unique_slug(
            db, update_data["name"], exclude_arena_id=db_arena.id
        )

    for field, value in update_data.items():
        setattr(db_arena, field, value)

    db.commit()
    db.refresh(db_arena)
    return db_arena
