from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Enum,
    Index,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.database import Base
from app.models.court import CourtType


class MatchStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    LIVE = "LIVE"
    FINISHED = "FINISHED"
    CANCELED = "CANCELED"
    EXPIRED = "EXPIRED"


class MatchKind(str, enum.Enum):
    BOOKING = "BOOKING"  # Reserva formal
    PELADA = "PELADA"  # Partido abierto


class Match(Base):
    __tablename__ = "matches"
    __table_args__ = (
        Index("ix_matches_court_date", "court_id", "date"),
        Index(
            "uq_active_match_court_date",
            "court_id",
            "date",
            unique=True,
            postgresql_where=text("status IN ('SCHEDULED', 'LIVE')"),
            sqlite_where=text("status IN ('SCHEDULED', 'LIVE')"),
        ),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    court_id = Column(
        Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False
    )
    organizer_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(DateTime, nullable=False)  # Inicio del partido
    type = Column(Enum(CourtType), default=CourtType.FUT7, nullable=False)
    kind = Column(Enum(MatchKind), default=MatchKind.BOOKING, nullable=False, index=True)
    status = Column(Enum(MatchStatus), default=MatchStatus.SCHEDULED, nullable=False)
    max_players = Column(Integer, default=14, nullable=False)
    min_players = Column(Integer, default=0, nullable=False)  # 0 = sin mínimo
    price_per_player = Column(Integer, default=30, nullable=False)
    started_at = Column(DateTime, nullable=True)
    finished_at = Column(DateTime, nullable=True)
    canceled_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    court = relationship("Court", back_populates="matches")
    organizer = relationship("User", back_populates="organized_matches")
    presences = relationship(
        "MatchPresence",
        back_populates="match",
        cascade="all, delete-orphan",
        order_by="MatchPresence.created_at",
    )
    stats = relationship(
        "MatchPlayerStat", back_populates="match", cascade="all, delete-orphan"
    )

    @property
    def presence_count(self) -> int:
        return len(self.presences)

    def has_player(self, user_id: int) -> bool:
        return any(p.user_id == user_id for p in self.presences)


class MatchPresence(Base):
    __tablename__ = "match_presences"
    __table_args__ = (
        UniqueConstraint("match_id", "user_id", name="uq_match_presence"),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(
        Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    match = relationship("Match", back_populates="presences")
    user = relationship("User")


class MatchPlayerStat(Base):
    __tablename__ = "match_player_stats"
    __table_args__ = (
        UniqueConstraint("match_id", "user_id", name="uq_match_player_stat"),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(
        Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    goals_official = Column(Integer, default=0, nullable=False)
    assists_official = Column(Integer, default=0, nullable=False)
    goals_unofficial = Column(Integer, default=0, nullable=False)
    assists_unofficial = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    match = relationship("Match", back_populates="stats")
    user = relationship("User")
