from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship
from app.db import Base
from app.utils.clock import utcnow


STATUS_BOOKED = "booked"
STATUS_PAID = "paid"
STATUS_CANCELLED = "cancelled"
STATUSES = (STATUS_BOOKED, STATUS_PAID, STATUS_CANCELLED)


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    contact_name = Column(String, nullable=False)
    contact_phone = Column(String, nullable=False)
    contact_company = Column(String, nullable=False)
    note = Column(String, nullable=True)
    subtotal_room = Column(Float, nullable=False, default=0.0)
    subtotal_snack = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)
    total_participants = Column(Integer, nullable=False, default=0)
    add_snack = Column(Boolean, nullable=False, default=False)
    status = Column(String(16), nullable=False, default=STATUS_BOOKED, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="reservations")
    details = relationship(
        "ReservationDetail",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="ReservationDetail.id",
        lazy="selectin",
    )


class ReservationDetail(Base):
    """One booked room line. Room and snack fields are a snapshot taken at booking time."""

    __tablename__ = "reservation_details"
    __table_args__ = (Index("ix_reservation_details_room_window", "room_id", "start_at", "end_at"),)

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id", ondelete="SET NULL"), nullable=True)
    room_name = Column(String, nullable=False)
    room_type = Column(String(16), nullable=False)
    room_price = Column(Float, nullable=False)
    snack_id = Column(Integer, ForeignKey("snacks.id", ondelete="SET NULL"), nullable=True)
    snack_name = Column(String, nullable=True)
    snack_price = Column(Float, nullable=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=False)
    duration_minute = Column(Integer, nullable=False)
    total_participants = Column(Integer, nullable=False)
    total_room = Column(Float, nullable=False)
    total_snack = Column(Float, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    reservation = relationship("Reservation", back_populates="details")
