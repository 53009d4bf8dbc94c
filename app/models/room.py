from sqlalchemy import Column, DateTime, Float, Integer, String
from app.db import Base
from app.utils.clock import utcnow


ROOM_TYPES = ("small", "medium", "large")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, index=True, nullable=False)
    room_type = Column(String(16), index=True, nullable=False)
    capacity = Column(Integer, nullable=False)
    price_per_hour = Column(Float, nullable=False)
    image_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
