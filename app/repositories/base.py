from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING, ContextManager, Iterable, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from app.models.reservation import Reservation, ReservationDetail
from app.models.room import Room
from app.models.snack import Snack

if TYPE_CHECKING:
    from app.services.history import HistoryFilter


@runtime_checkable
class CatalogRepository(Protocol):
    def get_room(self, room_id: int) -> Optional[Room]: ...
    def get_snack(self, snack_id: int) -> Optional[Snack]: ...


@runtime_checkable
class ReservationRepository(CatalogRepository, Protocol):
    # transactions
    def transaction(self) -> ContextManager[None]: ...
    def lock_rooms(self, room_ids: Iterable[int]) -> None: ...

    # availability
    def has_overlap(self, room_id: int, start: datetime, end: datetime) -> bool: ...
    def details_for_room(self, room_id: int, start: datetime, end: datetime) -> List[Tuple[ReservationDetail, str]]: ...
    def details_in_range(
        self, start_date: date, end_date: date, page: int, page_size: int
    ) -> Tuple[List[Tuple[ReservationDetail, Reservation]], int]: ...

    # reservations
    def add_reservation(self, reservation: Reservation) -> Reservation: ...
    def get_reservation(self, reservation_id: int) -> Optional[Reservation]: ...
    def get_status(self, reservation_id: int) -> Optional[str]: ...
    def latest_reservation_id(self, user_id: int) -> Optional[int]: ...
    def transition_status(self, reservation_id: int, allowed_from: Sequence[str], target: str) -> bool: ...
    def list_reservations(self, filters: HistoryFilter) -> Tuple[List[Reservation], int]: ...
