from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import update
from sqlalchemy.exc import OperationalError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.exceptions import TransactionFailure
from app.models.reservation import Reservation, ReservationDetail
from app.models.room import Room
from app.models.snack import Snack
from app.services.history import HistoryFilter
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)

# serialization failure, deadlock, lock not available, statement timeout
TRANSIENT_SQLSTATES = ("40001", "40P01", "55P03", "57014")
TRANSIENT_MESSAGES = ("locked", "timeout", "timed out")


def is_transient(exc: SQLAlchemyError) -> bool:
    """Lock waits and timeouts that a retry may get past."""
    if isinstance(exc, PoolTimeoutError):
        return True
    if not isinstance(exc, OperationalError):
        return False
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True
    message = str(orig).lower()
    return any(marker in message for marker in TRANSIENT_MESSAGES)


class SqlReservationRepository:
    """Reservation storage on an explicit SQLAlchemy session."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------
    # Transactions
    # ------------------------------------
    @contextmanager
    def transaction(self):
        """Commit on success, roll back on any error.

        Driver errors are reported as TransactionFailure; lock waits and
        timeouts are flagged retryable.
        """
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            if is_transient(exc):
                logger.error(f"Transaction rolled back, database busy: {exc}")
                raise TransactionFailure("Database is busy, please retry", retryable=True) from exc
            logger.error(f"Transaction rolled back: {exc}")
            raise TransactionFailure() from exc
        except Exception:
            self.session.rollback()
            raise

    def lock_rooms(self, room_ids: Iterable[int]) -> None:
        # A no-op UPDATE takes a row lock on PostgreSQL and the write lock on SQLite.
        for room_id in sorted(set(room_ids)):
            self.session.execute(
                update(Room)
                .where(Room.id == room_id)
                .values(updated_at=Room.updated_at)
                .execution_options(synchronize_session=False)
            )

    # ------------------------------------
    # Catalog
    # ------------------------------------
    def get_room(self, room_id: int) -> Optional[Room]:
        return self.session.get(Room, room_id)

    def get_snack(self, snack_id: int) -> Optional[Snack]:
        return self.session.get(Snack, snack_id)

    # ------------------------------------
    # Availability
    # ------------------------------------
    def has_overlap(self, room_id: int, start: datetime, end: datetime) -> bool:
        conflict = self.session.query(ReservationDetail.id).filter(
            ReservationDetail.room_id == room_id,
            ReservationDetail.start_at < end,
            ReservationDetail.end_at > start,
        ).first()
        return conflict is not None

    def details_for_room(self, room_id: int, start: datetime, end: datetime) -> List[Tuple[ReservationDetail, str]]:
        rows = (
            self.session.query(ReservationDetail, Reservation.status)
            .join(Reservation, ReservationDetail.reservation_id == Reservation.id)
            .filter(
                ReservationDetail.room_id == room_id,
                ReservationDetail.start_at < end,
                ReservationDetail.end_at > start,
            )
            .order_by(ReservationDetail.start_at)
            .all()
        )
        return [(detail, status) for detail, status in rows]

    def details_in_range(
        self, start_date: date, end_date: date, page: int, page_size: int
    ) -> Tuple[List[Tuple[ReservationDetail, Reservation]], int]:
        """Lines starting between two dates (inclusive), paginated by room.

        Returns the lines of one page of rooms, ordered by room and start
        time, and the number of rooms in the whole range.
        """
        range_start = datetime.combine(start_date, time.min)
        range_end = datetime.combine(end_date, time.min) + timedelta(days=1)
        in_range = (
            ReservationDetail.room_id.isnot(None),
            ReservationDetail.start_at >= range_start,
            ReservationDetail.start_at < range_end,
        )

        room_ids = self.session.query(ReservationDetail.room_id).filter(*in_range).distinct()
        total = room_ids.count()
        page_ids = [
            room_id
            for (room_id,) in room_ids.order_by(ReservationDetail.room_id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        ]
        if not page_ids:
            return [], total

        rows = (
            self.session.query(ReservationDetail, Reservation)
            .join(Reservation, ReservationDetail.reservation_id == Reservation.id)
            .filter(*in_range, ReservationDetail.room_id.in_(page_ids))
            .order_by(ReservationDetail.room_id, ReservationDetail.start_at)
            .all()
        )
        return [(detail, reservation) for detail, reservation in rows], total

    # ------------------------------------
    # Reservations
    # ------------------------------------
    def add_reservation(self, reservation: Reservation) -> Reservation:
        self.session.add(reservation)
        self.session.flush()
        return reservation

    def get_reservation(self, reservation_id: int) -> Optional[Reservation]:
        return self.session.get(Reservation, reservation_id)

    def get_status(self, reservation_id: int) -> Optional[str]:
        return (
            self.session.query(Reservation.status)
            .filter(Reservation.id == reservation_id)
            .scalar()
        )

    def latest_reservation_id(self, user_id: int) -> Optional[int]:
        row = (
            self.session.query(Reservation.id)
            .filter(Reservation.user_id == user_id)
            .order_by(Reservation.created_at.desc(), Reservation.id.desc())
            .first()
        )
        return row[0] if row else None

    def transition_status(self, reservation_id: int, allowed_from: Sequence[str], target: str) -> bool:
        result = self.session.execute(
            update(Reservation)
            .where(Reservation.id == reservation_id, Reservation.status.in_(list(allowed_from)))
            .values(status=target, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def list_reservations(self, filters: HistoryFilter) -> Tuple[List[Reservation], int]:
        query = self.session.query(Reservation)
        if filters.owner_id is not None:
            query = query.filter(Reservation.user_id == filters.owner_id)
        if filters.start_date:
            query = query.filter(Reservation.created_at >= datetime.combine(filters.start_date, time.min))
        if filters.end_date:
            end = datetime.combine(filters.end_date, time.min) + timedelta(days=1)
            query = query.filter(Reservation.created_at < end)
        if filters.status:
            query = query.filter(Reservation.status == filters.status)
        if filters.room_type:
            query = query.filter(
                Reservation.details.any(ReservationDetail.room_type == filters.room_type)
            )

        total = query.count()
        items = (
            query.order_by(Reservation.created_at.desc(), Reservation.id.desc())
            .offset((filters.page - 1) * filters.page_size)
            .limit(filters.page_size)
            .all()
        )
        return items, total
