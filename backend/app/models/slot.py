"""One 15-minute bookable unit of a presence. Only ever created/deleted in bulk with its presence."""
from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.db.types import UTCDateTime


class Slot(Base):
    __tablename__ = "slots"
    __table_args__ = (UniqueConstraint("presence_id", "start_at", name="uq_slots_presence_start"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    presence_id = Column(Integer, ForeignKey("presences.id", ondelete="CASCADE"), nullable=False, index=True)
    start_at = Column(UTCDateTime, nullable=False, index=True)  # UTC

    presence = relationship("Presence", back_populates="slots")
    reservations = relationship("Reservation", back_populates="slot", cascade="all, delete-orphan")
