from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base
from datetime import datetime


class Arena(Base):
    __tablename__ = "arenas"
    __table_args__ = {"extend_existing": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, unique=True, index=True, nullable=False)
    city = Column(String, nullable=True)
    district = Column(String, nullable=True)
    address = Column(String, nullable=True)
    open_time = Column(String, nullable=True)  # "HH:MM"
    close_time = Column(String, nullable=True)  # "HH:MM", puede ser después de medianoche
    owner_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User", back_populates="arenas")
    courts = relationship(
        "Court",
        back_populates="arena",
        cascade="all, delete-orphan",
        order_by="Court.id",
    )

    @property
    def courts_count(self) -> int:
        return len(self.courts)
