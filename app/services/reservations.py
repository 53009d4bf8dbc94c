import logging
from dataclasses import dataclass
from typing import List, Optional

from app.exceptions import InvalidRequest, NotFound
from app.models.reservation import STATUS_BOOKED, Reservation, ReservationDetail
from app.models.user import is_admin
from app.repositories.base import ReservationRepository
from app.services.availability import AvailabilityChecker
from app.services.pricing import PricingCalculator, Quote, RoomLine
from app.utils.clock import utcnow
from app.utils.validation_helpers import validate_interval

logger = logging.getLogger(__name__)


@dataclass
class Contact:
    name: str
    phone_number: str
    company: str
    notes: Optional[str] = None


def _validate_lines(lines: List[RoomLine]):
    if not lines:
        raise InvalidRequest("At least one room is required")
    for line in lines:
        validate_interval(line.start_time, line.end_time)


def _build_reservation(owner_id: int, contact: Contact, quote: Quote) -> Reservation:
    now = utcnow()
    details = [
        ReservationDetail(
            room_id=line.room_id,
            room_name=line.room_name,
            room_type=line.room_type,
            room_price=line.room_price,
            snack_id=line.snack_id,
            snack_name=line.snack_name,
            snack_price=line.snack_price,
            start_at=line.start_time,
            end_at=line.end_time,
            duration_minute=line.duration_minutes,
            total_participants=line.participant,
            total_room=line.room_cost,
            total_snack=line.snack_cost,
            created_at=now,
        )
        for line in quote.lines
    ]
    return Reservation(
        user_id=owner_id,
        contact_name=contact.name,
        contact_phone=contact.phone_number,
        contact_company=contact.company,
        note=contact.notes,
        subtotal_room=quote.subtotal_room,
        subtotal_snack=quote.subtotal_snack,
        total=quote.total,
        total_participants=quote.total_participants,
        add_snack=any(line.snack_id is not None for line in quote.lines),
        status=STATUS_BOOKED,
        created_at=now,
        updated_at=now,
        details=details,
    )


class ReservationService:
    """Price previews, atomic reservation creation and reservation lookup."""

    def __init__(self, repository: ReservationRepository):
        self.repository = repository
        self.calculator = PricingCalculator(repository)
        self.availability = AvailabilityChecker(repository)

    def calculate(self, lines: List[RoomLine]) -> Quote:
        """Price the lines and check availability without writing anything."""
        _validate_lines(lines)
        quote = self.calculator.quote(lines)
        self.availability.ensure_available(quote.lines)
        return quote

    def create(self, owner_id: int, contact: Contact, lines: List[RoomLine]) -> Reservation:
        """
        Book every line or none of them.

        The rooms are locked before availability is re-checked, so two
        overlapping requests for the same room cannot both pass the check.
        """
        _validate_lines(lines)
        with self.repository.transaction():
            self.repository.lock_rooms(line.room_id for line in lines)
            quote = self.calculator.quote(lines)
            self.availability.ensure_available(quote.lines)
            reservation = self.repository.add_reservation(_build_reservation(owner_id, contact, quote))
            reservation_id = reservation.id
        logger.info(
            f"Created reservation {reservation_id} for user {owner_id}: "
            f"{len(quote.lines)} room(s), total {quote.total}"
        )
        return reservation

    def get(self, reservation_id: int, caller: dict) -> Reservation:
        reservation = self.repository.get_reservation(reservation_id)
        if reservation is None or not (is_admin(caller) or reservation.user_id == caller["id"]):
            raise NotFound("Reservation not found")
        return reservation
