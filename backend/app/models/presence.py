"""An organizer's appearance at a location on a date. Slots are generated from its time window."""
from sqlalchemy import Column, Date, DateTime, Integer, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base


class Presence(Base):
    __tablename__ = "presences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    location = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)  # local to EVENT_TIMEZONE
    end_time = Column(Time, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    slots = relationship(
        "Slot",
        back_populates="presence",
        cascade="all, delete-orphan",
        order_by="Slot.start_at",
    )
