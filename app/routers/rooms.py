import logging
import math
from datetime import date, datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.db import get_db
from app.exceptions import InvalidRequest
from app.models.reservation import ReservationDetail
from app.models.room import Room
from app.repositories.sql import SqlReservationRepository
from app.schemas.room import (
    RoomCreate,
    RoomUpdate,
    RoomResponse,
    RoomPage,
    RoomScheduleEntry,
    RoomScheduleResponse,
)
from app.services.availability import AvailabilityChecker
from app.utils.auth import get_current_admin, get_current_user
from app.utils.clock import to_naive_utc, utcnow
from app.utils.validation_helpers import validate_room_type

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/rooms",
    tags=["rooms"],
)


@router.post("/", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(room: RoomCreate, db: Session = Depends(get_db), current_user: dict = Depends(get_current_admin)):
    """
    Create a new meeting room.
    Requires administrator privileges.
    """
    db_room = Room(**room.dict())
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    logger.debug(f"Created room: {db_room.id}")
    return db_room


@router.get("/", response_model=RoomPage)
def get_rooms(
    name: Optional[str] = None,
    room_type: Optional[str] = None,
    capacity: Optional[int] = Query(None, ge=1, description="Minimum capacity"),
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    Retrieve meeting rooms, optionally filtered by name, type and minimum capacity.
    """
    validate_room_type(room_type)
    query = db.query(Room)
    if name:
        query = query.filter(Room.name.ilike(f"%{name}%"))
    if room_type:
        query = query.filter(Room.room_type == room_type)
    if capacity:
        query = query.filter(Room.capacity >= capacity)

    total = query.count()
    rooms = query.order_by(Room.id).offset((page - 1) * page_size).limit(page_size).all()
    return RoomPage(
        data=[RoomResponse.model_validate(room) for room in rooms],
        page=page,
        page_size=page_size,
        total_page=math.ceil(total / page_size),
        total_data=total,
    )


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(room_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_user)):
    """
    Retrieve a specific meeting room by ID.
    """
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.get("/{room_id}/reservation", response_model=RoomScheduleResponse)
def get_room_schedule(
    room_id: int,
    day: Optional[date] = Query(None, alias="date"),
    start_datetime: Optional[datetime] = None,
    end_datetime: Optional[datetime] = None,
    db: Session = Depends(get_db),
    current_user: dict = Depends(get_current_user),
):
    """
    List the booked time windows of a room.

    - **start_datetime**, **end_datetime**: RFC 3339 window; both must be given together.
    - **date**: one whole day, used when no window is given (today by default).
    """
    checker = AvailabilityChecker(SqlReservationRepository(db))
    if start_datetime is not None or end_datetime is not None:
        if start_datetime is None or end_datetime is None:
            raise InvalidRequest("start_datetime and end_datetime must be given together")
        rows = checker.schedule_window(room_id, to_naive_utc(start_datetime), to_naive_utc(end_datetime))
    else:
        rows = checker.schedule(room_id, day or utcnow().date())
    room = db.query(Room).filter(Room.id == room_id).first()
    return RoomScheduleResponse(
        room=RoomResponse.model_validate(room),
        schedules=[
            RoomScheduleEntry(
                reservation_id=detail.reservation_id,
                start_at=detail.start_at,
                end_at=detail.end_at,
                status=reservation_status,
                total_participants=detail.total_participants,
            )
            for detail, reservation_status in rows
        ],
    )


@router.put("/{room_id}", response_model=RoomResponse)
def update_room(room_id: int, room_update: RoomUpdate, db: Session = Depends(get_db), current_user: dict = Depends(get_current_admin)):
    """
    Update a meeting room's details.
    Requires administrator privileges. Existing reservations keep the
    name and price they were booked with.
    """
    db_room = db.query(Room).filter(Room.id == room_id).first()
    if not db_room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    update_data = room_update.dict(exclude_unset=True)
    for key, value in update_data.items():
        if value is not None:
            setattr(db_room, key, value)

    db.commit()
    db.refresh(db_room)
    return db_room


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_room(room_id: int, db: Session = Depends(get_db), current_user: dict = Depends(get_current_admin)):
    """
    Delete a meeting room.
    Requires administrator privileges. Reservation lines keep their snapshot
    but no longer point at the room.
    """
    db_room = db.query(Room).filter(Room.id == room_id).first()
    if not db_room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")

    db.query(ReservationDetail).filter(ReservationDetail.room_id == room_id).update(
        {ReservationDetail.room_id: None}, synchronize_session=False
    )
    db.delete(db_room)
    db.commit()
    logger.debug(f"Deleted room: {room_id}")
    return None
