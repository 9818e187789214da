from sqlalchemy.orm import Session
from app.models.user import User, UserRole
from app.services.auth import get_password_hash
import logging
import os

logger = logging.getLogger(__name__)


def create_initial_admin(db: Session):
    """
    Crea el admin inicial si la tabla de usuarios está vacía.

    Los datos salen de INITIAL_ADMIN_EMAIL / INITIAL_ADMIN_PASSWORD; sin ellos no
    se crea nada.
    """
    email = os.getenv("INITIAL_ADMIN_EMAIL")
    password = os.getenv("INITIAL_ADMIN_PASSWORD")
    if not email or not password:
        logger.info("INITIAL_ADMIN_EMAIL no configurado, no se crea admin inicial.")
        return None

    if db.query(User).count() > 0:
        logger.info("Ya existen usuarios, no se crea el admin inicial.")
        return None

    db_user = User(
        name=os.getenv("INITIAL_ADMIN_NAME", "Admin"),
        email=email,
        phone=None,
        hashed_password=get_password_hash(password),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    logger.info(f"Admin creado: {email}")
    return db_user
