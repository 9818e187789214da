from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    OWNER = "owner"  # Organizador de partidas
    ARENA_OWNER = "arena_owner"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    hashed_password = Column(String)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    arenas = relationship("Arena", back_populates="owner", cascade="all, delete-orphan")
    reservations = relationship(
        "Reservation", back_populates="user", cascade="all, delete-orphan"
    )
    organized_matches = relationship(
        "Match", back_populates="organizer", cascade="all, delete-orphan"
    )