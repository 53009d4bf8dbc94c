from pydantic import BaseModel, validator
from datetime import datetime
from typing import List, Optional
from app.models.room import ROOM_TYPES


def check_room_type(value):
    if value is not None and value not in ROOM_TYPES:
        raise ValueError(f"room_type must be one of: {', '.join(ROOM_TYPES)}")
    return value


def check_positive(value):
    if value is not None and value <= 0:
        raise ValueError("must be greater than 0")
    return value


def check_not_negative(value):
    if value is not None and value < 0:
        raise ValueError("must not be negative")
    return value


class RoomBase(BaseModel):
    name: str
    room_type: str
    capacity: int
    price_per_hour: float
    image_url: Optional[str] = None

    @validator("room_type")
    def validate_room_type(cls, value):
        return check_room_type(value)

    @validator("capacity")
    def validate_capacity(cls, value):
        return check_positive(value)

    @validator("price_per_hour")
    def validate_price(cls, value):
        return check_not_negative(value)


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: Optional[str] = None
    room_type: Optional[str] = None
    capacity: Optional[int] = None
    price_per_hour: Optional[float] = None
    image_url: Optional[str] = None

    @validator("room_type")
    def validate_room_type(cls, value):
        return check_room_type(value)

    @validator("capacity")
    def validate_capacity(cls, value):
        return check_positive(value)

    @validator("price_per_hour")
    def validate_price(cls, value):
        return check_not_negative(value)


class RoomResponse(RoomBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class RoomPage(BaseModel):
    data: List[RoomResponse]
    page: int
    page_size: int
    total_page: int
    total_data: int


class RoomScheduleEntry(BaseModel):
    reservation_id: int
    start_at: datetime
    end_at: datetime
    status: str
    total_participants: int


class RoomScheduleResponse(BaseModel):
    room: RoomResponse
    schedules: List[RoomScheduleEntry]
