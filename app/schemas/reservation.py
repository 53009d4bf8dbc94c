from pydantic import BaseModel, validator
from datetime import datetime
from typing import List, Optional
from app.utils.clock import to_naive_utc


class RoomLineRequest(BaseModel):
    room_id: int
    start_time: datetime
    end_time: datetime
    participant: int
    snack_id: Optional[int] = None
    add_snack: bool = False

    @validator("start_time", "end_time")
    def normalize_time(cls, value):
        return to_naive_utc(value)


class CalculationRequest(BaseModel):
    rooms: List[RoomLineRequest]


class ReservationCreate(BaseModel):
    name: str
    phone_number: str
    company: str
    notes: Optional[str] = None
    rooms: List[RoomLineRequest]

    @validator("name", "phone_number", "company")
    def check_not_blank(cls, value):
        if not value.strip():
            raise ValueError("must not be blank")
        return value.strip()


class StatusUpdate(BaseModel):
    reservation_id: Optional[int] = None
    status: str

    @validator("status")
    def normalize_status(cls, value):
        value = value.strip().lower()
        # older clients send "cancel"
        return "cancelled" if value == "cancel" else value


class LineQuoteResponse(BaseModel):
    room_id: int
    room_name: str
    room_type: str
    room_price: float
    capacity: int
    image_url: Optional[str] = None
    snack_id: Optional[int] = None
    snack_name: Optional[str] = None
    snack_unit: Optional[str] = None
    snack_price: Optional[float] = None
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    participant: int
    room_cost: float
    snack_cost: float
    total: float

    class Config:
        from_attributes = True


class CalculationResponse(BaseModel):
    rooms: List[LineQuoteResponse]
    subtotal_room: float
    subtotal_snack: float
    total: float


class ReservationDetailResponse(BaseModel):
    id: int
    room_id: Optional[int] = None
    room_name: str
    room_type: str
    room_price: float
    snack_id: Optional[int] = None
    snack_name: Optional[str] = None
    snack_price: Optional[float] = None
    start_at: datetime
    end_at: datetime
    duration_minute: int
    total_participants: int
    total_room: float
    total_snack: float

    class Config:
        from_attributes = True


class ReservationResponse(BaseModel):
    id: int
    user_id: int
    contact_name: str
    contact_phone: str
    contact_company: str
    note: Optional[str] = None
    subtotal_room: float
    subtotal_snack: float
    total: float
    total_participants: int
    add_snack: bool
    status: str
    created_at: datetime
    updated_at: datetime
    details: List[ReservationDetailResponse]

    class Config:
        from_attributes = True


class ReservationPage(BaseModel):
    data: List[ReservationResponse]
    page: int
    page_size: int
    total_page: int
    total_data: int



class ScheduleLineResponse(BaseModel):
    reservation_id: int
    company: Optional[str] = None
    start_at: datetime
    end_at: datetime
    status: str
    progress: str

    class Config:
        from_attributes = True


class RoomScheduleSummary(BaseModel):
    room_id: int
    room_name: str
    schedules: List[ScheduleLineResponse]

    class Config:
        from_attributes = True


class SchedulePage(BaseModel):
    data: List[RoomScheduleSummary]
    page: int
    page_size: int
    total_page: int
    total_data: int
