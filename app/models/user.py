from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.clock import utcnow


ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String(16), nullable=False, default=ROLE_USER)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    reservations = relationship("Reservation", back_populates="user")


def is_admin(user) -> bool:
    """``user`` is the dict returned by ``get_current_user``."""
    return bool(user) and user.get("role") == ROLE_ADMIN
