from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Enum,
    Index,
    CheckConstraint,
    text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.database import Base


class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELED = "CANCELED"


class PaymentStatus(str, enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    REFUNDED = "REFUNDED"


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (
        CheckConstraint("start_at < end_at", name="ck_reservation_window"),
        Index("ix_reservations_court_start", "court_id", "start_at"),
        # Última barrera contra reservas simultáneas en el mismo inicio
        Index(
            "uq_active_reservation_court_start",
            "court_id",
            "start_at",
            unique=True,
            postgresql_where=text("status != 'CANCELED'"),
            sqlite_where=text("status != 'CANCELED'"),
        ),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(
        Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    total_price = Column(Integer, nullable=True)
    status = Column(
        Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False
    )
    payment_status = Column(
        Enum(PaymentStatus), default=PaymentStatus.UNPAID, nullable=False
    )
    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    court = relationship("Court", back_populates="reservations")
    user = relationship("User", back_populates="reservations")
