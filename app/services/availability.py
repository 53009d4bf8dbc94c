import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.exceptions import InvalidRequest, RoomNotFound, RoomUnavailable
from app.repositories.base import ReservationRepository
from app.utils.clock import utcnow
from app.utils.validation_helpers import validate_date_range, validate_interval, validate_page

logger = logging.getLogger(__name__)

PROGRESS_DONE = "done"
PROGRESS_IN_PROGRESS = "in_progress"
PROGRESS_UPCOMING = "upcoming"


@dataclass
class ScheduleLine:
    reservation_id: int
    company: Optional[str]
    start_at: datetime
    end_at: datetime
    status: str
    progress: str


@dataclass
class RoomSchedule:
    room_id: int
    room_name: str
    schedules: List[ScheduleLine] = field(default_factory=list)


@dataclass
class SchedulePage:
    items: List[RoomSchedule] = field(default_factory=list)
    total_data: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_page(self) -> int:
        return math.ceil(self.total_data / self.page_size)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    """Half-open intervals overlap when each starts before the other ends."""
    return start_a < end_b and start_b < end_a


def progress(start: datetime, end: datetime, now: datetime) -> str:
    if end < now:
        return PROGRESS_DONE
    if start <= now:
        return PROGRESS_IN_PROGRESS
    return PROGRESS_UPCOMING


class AvailabilityChecker:
    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    def is_available(self, room_id: int, start_time: datetime, end_time: datetime) -> bool:
        validate_interval(start_time, end_time)
        return not self.repository.has_overlap(room_id, start_time, end_time)

    def ensure_available(self, lines):
        """
        Raise RoomUnavailable for the first line that collides with a stored
        booking or with an earlier line of the same request.

        Lines only need ``room_id``, ``start_time`` and ``end_time``; a
        ``room_name`` is used in the error message when present.
        """
        accepted = []
        for line in lines:
            room_name = getattr(line, "room_name", None)
            for other in accepted:
                if other.room_id == line.room_id and intervals_overlap(
                    other.start_time, other.end_time, line.start_time, line.end_time
                ):
                    logger.warning(f"Room {line.room_id} requested twice for overlapping times")
                    raise RoomUnavailable(line.room_id, room_name)
            if not self.is_available(line.room_id, line.start_time, line.end_time):
                logger.warning(
                    f"Room {line.room_id} already booked between {line.start_time} and {line.end_time}"
                )
                raise RoomUnavailable(line.room_id, room_name)
            accepted.append(line)

    def schedule(self, room_id: int, day: date):
        """Booked lines of a room touching ``day``, each paired with its reservation status."""
        day_start = datetime.combine(day, time.min)
        return self.schedule_window(room_id, day_start, day_start + timedelta(days=1))

    def schedule_window(self, room_id: int, start: datetime, end: datetime):
        validate_interval(start, end)
        if self.repository.get_room(room_id) is None:
            raise RoomNotFound(room_id)
        return self.repository.details_for_room(room_id, start, end)

    def schedules(self, start_date: date, end_date: date, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Lines starting between ``start_date`` and ``end_date`` (both inclusive),
        grouped by room. Pages count rooms, not lines.
        """
        if start_date is None or end_date is None:
            raise InvalidRequest("Start date and end date are required")
        validate_date_range(start_date, end_date)
        validate_page(page, page_size, MAX_PAGE_SIZE)

        rows, total = self.repository.details_in_range(start_date, end_date, page, page_size)
        now = utcnow()
        rooms = {}
        for detail, reservation in rows:
            if detail.room_id not in rooms:
                room = self.repository.get_room(detail.room_id)
                rooms[detail.room_id] = RoomSchedule(
                    room_id=detail.room_id,
                    room_name=room.name if room is not None else detail.room_name,
                )
            rooms[detail.room_id].schedules.append(
                ScheduleLine(
                    reservation_id=reservation.id,
                    company=reservation.contact_company,
                    start_at=detail.start_at,
                    end_at=detail.end_at,
                    status=reservation.status,
                    progress=progress(detail.start_at, detail.end_at, now),
                )
            )
        return SchedulePage(items=list(rooms.values()), total_data=total, page=page, page_size=page_size)
