import math
from dataclasses import dataclass, field, replace
from datetime import date
from typing import List, Optional

from app.config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.models.user import is_admin
from app.repositories.base import ReservationRepository
from app.utils.validation_helpers import validate_date_range, validate_page, validate_room_type, validate_status


@dataclass
class HistoryFilter:
    owner_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    room_type: Optional[str] = None
    status: Optional[str] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass
class HistoryPage:
    items: List = field(default_factory=list)
    total_data: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def total_page(self) -> int:
        return math.ceil(self.total_data / self.page_size)


class HistoryQuery:
    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    def list(self, filters: HistoryFilter, caller: dict) -> HistoryPage:
        """Regular users only ever see their own reservations."""
        if not is_admin(caller):
            filters = replace(filters, owner_id=caller["id"])

        validate_room_type(filters.room_type)
        validate_status(filters.status)
        validate_date_range(filters.start_date, filters.end_date)
        validate_page(filters.page, filters.page_size, MAX_PAGE_SIZE)

        items, total = self.repository.list_reservations(filters)
        return HistoryPage(items=items, total_data=total, page=filters.page, page_size=filters.page_size)
