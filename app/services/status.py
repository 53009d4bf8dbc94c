import logging
from typing import Optional

from app.exceptions import IllegalTransition, InvalidRequest, NotFound, PermissionDenied
from app.models.reservation import STATUS_BOOKED, STATUS_CANCELLED, STATUS_PAID, STATUSES, Reservation
from app.models.user import is_admin
from app.repositories.base import ReservationRepository

logger = logging.getLogger(__name__)

# cancelled is terminal
TRANSITIONS = {
    STATUS_BOOKED: (STATUS_PAID, STATUS_CANCELLED),
    STATUS_PAID: (STATUS_CANCELLED,),
    STATUS_CANCELLED: (),
}


def can_transition(current: str, target: str) -> bool:
    return target in TRANSITIONS.get(current, ())


def sources_for(target: str):
    """States from which ``target`` may be reached."""
    return [state for state, targets in TRANSITIONS.items() if target in targets]


class StatusGuard:
    def __init__(self, repository: ReservationRepository):
        self.repository = repository

    def transition(self, target: str, caller: dict, reservation_id: Optional[int] = None) -> Reservation:
        """
        Move a reservation to ``target``.

        Without ``reservation_id`` the caller's latest reservation is used.
        The check and the write are one conditional UPDATE, so concurrent
        requests on the same reservation cannot both apply.
        """
        if target not in STATUSES:
            raise InvalidRequest(f"Status must be one of: {', '.join(STATUSES)}")

        if reservation_id is None:
            reservation_id = self.repository.latest_reservation_id(caller["id"])
            if reservation_id is None:
                raise NotFound("Reservation not found")

        with self.repository.transaction():
            reservation = self.repository.get_reservation(reservation_id)
            if reservation is None:
                raise NotFound("Reservation not found")
            if not is_admin(caller) and reservation.user_id != caller["id"]:
                raise PermissionDenied("Not authorized to update this reservation")

            if not self.repository.transition_status(reservation_id, sources_for(target), target):
                current = self.repository.get_status(reservation_id)
                if current is None:
                    raise NotFound("Reservation not found")
                logger.warning(f"Rejected status change of reservation {reservation_id}: {current} -> {target}")
                raise IllegalTransition(current, target)

        logger.info(f"Reservation {reservation_id} is now {target}")
        return self.repository.get_reservation(reservation_id)
