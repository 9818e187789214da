from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Enum,
    Boolean,
)
from sqlalchemy.orm import relationship
from app.database import Base
import enum
from datetime import datetime


class CourtType(str, enum.Enum):
    FUTSAL = "FUTSAL"
    FUT7 = "FUT7"
    CAMPO = "CAMPO"
    VOLEI = "VOLEI"
    FUTVOLEI = "FUTVOLEI"
    BEACH_TENNIS = "BEACH_TENNIS"
    BASQUETE = "BASQUETE"
    TENIS = "TENIS"
    HANDEBOL = "HANDEBOL"
    SKATE = "SKATE"
    OUTRO = "OUTRO"


class Court(Base):
    __tablename__ = "courts"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    type = Column(Enum(CourtType), default=CourtType.FUTSAL, nullable=False)
    surface = Column(String, nullable=True)
    covered = Column(Boolean, default=False)
    arena_id = Column(
        Integer, ForeignKey("arenas.id", ondelete="CASCADE"), nullable=False, index=True
    )
    price_per_hour = Column(Integer, nullable=True)  # Precio entero por hora
    capacity = Column(Integer, default=14, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    arena = relationship("Arena", back_populates="courts")
    reservations = relationship(
        "Reservation", back_populates="court", cascade="all, delete-orphan"
    )
    matches = relationship("Match", back_populates="court", cascade="all, delete-orphan")

    @property
    def owner_id(self):
        # La propiedad del recurso sale siempre de la arena
        return self.arena.owner_id if self.arena else None
