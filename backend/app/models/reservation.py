"""A booking of one slot. The token is the only credential for self-service view/edit/cancel."""
from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.base import Base
from app.db.types import UTCDateTime


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_reservations_quantity_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(128), nullable=False)
    last_name = Column(String(128), nullable=False)
    phone = Column(String(64), nullable=False)
    quantity = Column(Integer, nullable=False)  # informational, not a capacity counter
    comment = Column(Text, nullable=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(UTCDateTime, server_default=func.now(), nullable=False)

    slot = relationship("Slot", back_populates="reservations")
