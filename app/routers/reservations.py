from dataclasses import asdict
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.config import DEFAULT_PAGE_SIZE
from app.db import get_db
from app.repositories.sql import SqlReservationRepository
from app.schemas.reservation import (
    CalculationRequest,
    CalculationResponse,
    LineQuoteResponse,
    ReservationCreate,
    ReservationPage,
    ReservationResponse,
    RoomLineRequest,
    RoomScheduleSummary,
    SchedulePage,
    StatusUpdate,
)
from app.services.availability import AvailabilityChecker
from app.services.history import HistoryFilter, HistoryQuery
from app.services.pricing import RoomLine
from app.services.reservations import Contact, ReservationService
from app.services.status import StatusGuard
from app.utils.auth import get_current_user
import logging

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/reservations",
    tags=["reservations"],
)


def get_repository(db: Session = Depends(get_db)) -> SqlReservationRepository:
    return SqlReservationRepository(db)


def to_room_lines(rooms: List[RoomLineRequest]) -> List[RoomLine]:
    return [RoomLine(**room.dict()) for room in rooms]


@router.post(
    "/calculation",
    response_model=CalculationResponse,
    summary="Preview reservation price",
    description="Price one or more room lines and check their availability without booking. Requires authentication."
)
def calculate_reservation(
    request: CalculationRequest,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    """
    Price a reservation without saving it.

    - **rooms**: room lines with room ID, start and end time, participant count and optional snack.

    Returns every line with its room and snack cost, plus the reservation subtotals and total.
    """
    logger.debug(f"Calculating reservation for user: {current_user['username']}, {len(request.rooms)} room(s)")
    quote = ReservationService(repository).calculate(to_room_lines(request.rooms))
    return CalculationResponse(
        rooms=[LineQuoteResponse(**asdict(line), total=line.total) for line in quote.lines],
        subtotal_room=quote.subtotal_room,
        subtotal_snack=quote.subtotal_snack,
        total=quote.total,
    )


@router.post(
    "/",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a reservation",
    description="Book one or more rooms in a single all-or-nothing reservation. Requires authentication."
)
def create_reservation(
    reservation: ReservationCreate,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    """
    Book one or more rooms.

    - **name**, **phone_number**, **company**: contact details.
    - **notes**: optional notes.
    - **rooms**: room lines to book; if any room is already taken nothing is booked.

    Returns the created reservation with its lines.
    """
    logger.debug(f"Creating reservation for user: {current_user['username']}, {len(reservation.rooms)} room(s)")
    contact = Contact(
        name=reservation.name,
        phone_number=reservation.phone_number,
        company=reservation.company,
        notes=reservation.notes,
    )
    return ReservationService(repository).create(current_user["id"], contact, to_room_lines(reservation.rooms))


@router.get(
    "/history",
    response_model=ReservationPage,
    summary="Reservation history",
    description="Filtered, paginated reservation history. Regular users only see their own reservations."
)
def get_reservation_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    room_type: Optional[str] = None,
    reservation_status: Optional[str] = Query(None, alias="status"),
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    """
    List reservations, newest first.

    - **start_date**, **end_date**: creation date range, inclusive.
    - **room_type**: small, medium or large.
    - **status**: booked, paid or cancelled.
    - **page**, **page_size**: pagination.
    """
    filters = HistoryFilter(
        start_date=start_date,
        end_date=end_date,
        room_type=room_type,
        status=reservation_status,
        page=page,
        page_size=page_size,
    )
    result = HistoryQuery(repository).list(filters, current_user)
    logger.debug(f"Retrieved {len(result.items)} of {result.total_data} reservations")
    return ReservationPage(
        data=[ReservationResponse.model_validate(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total_page=result.total_page,
        total_data=result.total_data,
    )


@router.get(
    "/schedules",
    response_model=SchedulePage,
    summary="Room schedules",
    description="Booked time windows of every room between two dates, grouped by room and paginated by room."
)
def get_reservation_schedules(
    start_date: date,
    end_date: date,
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    """
    List room schedules.

    - **start_date**, **end_date**: YYYY-MM-DD, both inclusive, matched against line start times.
    - **page**, **page_size**: pagination over rooms.

    Each line carries its reservation status and whether it is done, in progress or upcoming.
    """
    result = AvailabilityChecker(repository).schedules(start_date, end_date, page, page_size)
    logger.debug(f"Retrieved schedules of {len(result.items)} of {result.total_data} rooms")
    return SchedulePage(
        data=[RoomScheduleSummary.model_validate(item) for item in result.items],
        page=result.page,
        page_size=result.page_size,
        total_page=result.total_page,
        total_data=result.total_data,
    )


@router.post(
    "/status",
    response_model=ReservationResponse,
    summary="Change reservation status",
    description="Move a reservation to paid or cancelled. Without reservation_id the caller's latest reservation is used."
)
def update_reservation_status(
    update: StatusUpdate,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    """
    Change the status of a reservation.

    - **reservation_id**: reservation to update (optional).
    - **status**: paid or cancelled; cancelled reservations cannot change any more.
    """
    return StatusGuard(repository).transition(update.status, current_user, update.reservation_id)


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Get a reservation by ID",
    description="Retrieve a reservation with the rooms and prices it was booked with."
)
def get_reservation(
    reservation_id: int,
    repository: SqlReservationRepository = Depends(get_repository),
    current_user: dict = Depends(get_current_user),
):
    return ReservationService(repository).get(reservation_id, current_user)
