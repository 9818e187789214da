"""
Configuración compartida para tests pytest
"""
import os

# La app no debe intentar conectarse a PostgreSQL al importarse
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.arena import Arena
from app.models.court import Court, CourtType
from app.models.user import User, UserRole
from app.services.auth import create_user_token


# Base de datos en memoria para tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def tomorrow_at(hour: int, minute: int = 0) -> datetime:
    """Horario fijo de mañana, para no depender de la hora en que corren los tests"""
    day = datetime.now().date() + timedelta(days=1)
    return datetime(day.year, day.month, day.day, hour, minute)


@pytest.fixture
def db():
    """Crear base de datos de test y limpiarla después"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def override_get_db(db):
    """Override de get_db para tests"""
    def _get_db():
        try:
            yield db
        finally:
            pass
    return _get_db


@pytest.fixture
def client(override_get_db):
    """Cliente HTTP sobre la app con la base de test (sin lifespan)"""
    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


def _create_user(db, name, email, role):
    user = User(
        name=name,
        email=email,
        hashed_password="hashed",
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin(db):
    return _create_user(db, "Admin", "admin@example.com", UserRole.ADMIN)


@pytest.fixture
def arena_owner(db):
    """Dueño de la arena de prueba"""
    return _create_user(db, "Dona Arena", "owner@example.com", UserRole.ARENA_OWNER)


@pytest.fixture
def other_arena_owner(db):
    return _create_user(db, "Outro Dono", "other_owner@example.com", UserRole.ARENA_OWNER)


@pytest.fixture
def organizer(db):
    """Organizador de partidos (rol owner)"""
    return _create_user(db, "Organizador", "organizer@example.com", UserRole.OWNER)


@pytest.fixture
def player(db):
    return _create_user(db, "Jogador A", "player_a@example.com", UserRole.USER)


@pytest.fixture
def player_b(db):
    return _create_user(db, "Jogador B", "player_b@example.com", UserRole.USER)


@pytest.fixture
def player_c(db):
    return _create_user(db, "Jogador C", "player_c@example.com", UserRole.USER)


@pytest.fixture
def arena(db, arena_owner):
    """Arena abierta de 08:00 a 23:00"""
    arena = Arena(
        name="Arena Central",
        slug="arena-central",
        city="Salvador",
        open_time="08:00",
        close_time="23:00",
        owner_id=arena_owner.id,
    )
    db.add(arena)
    db.commit()
    db.refresh(arena)
    return arena


@pytest.fixture
def court(db, arena):
    """Cancha de futsal a 100 por hora"""
    court = Court(
        name="Quadra 1",
        type=CourtType.FUTSAL,
        arena_id=arena.id,
        price_per_hour=100,
        capacity=14,
    )
    db.add(court)
    db.commit()
    db.refresh(court)
    return court


@pytest.fixture
def at():
    """tomorrow_at como fixture: at(10, 30) -> mañana a las 10:30"""
    return tomorrow_at


@pytest.fixture
def headers():
    """auth_headers como fixture: headers(user) -> Authorization Bearer"""
    return auth_headers
