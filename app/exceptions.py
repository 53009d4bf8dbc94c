"""Domain errors raised by the booking services.

Every error carries the HTTP status it is reported with; the handler in
``app.main`` turns them into ``{"detail": message}`` responses.
"""


class BookingError(Exception):
    """Base exception for all booking errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(BookingError):
    """Raised when a request is malformed beyond what schema validation catches."""


class InvalidInterval(BookingError):
    """Raised when a time interval does not end after it starts."""


class CapacityExceeded(BookingError):
    """Raised when the participant count does not fit the room."""


class PermissionDenied(BookingError):
    status_code = 403


class NotFound(BookingError):
    status_code = 404


class RoomNotFound(NotFound):
    def __init__(self, room_id: int):
        super().__init__(f"Room {room_id} not found")
        self.room_id = room_id


class SnackNotFound(NotFound):
    def __init__(self, snack_id):
        if snack_id is None:
            super().__init__("Snack is required when add_snack is set")
        else:
            super().__init__(f"Snack {snack_id} not found")
        self.snack_id = snack_id


class RoomUnavailable(BookingError):
    status_code = 409

    def __init__(self, room_id: int, room_name: str = None):
        label = f"{room_name} (id {room_id})" if room_name else f"Room {room_id}"
        super().__init__(f"{label} has already been booked for that time range")
        self.room_id = room_id


class IllegalTransition(BookingError):
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"Reservation status cannot change from {current} to {target}")
        self.current = current
        self.target = target


class TransactionFailure(BookingError):
    """Raised after a rollback; retryable failures are lock waits and timeouts."""

    def __init__(self, message: str = "Could not save the reservation", retryable: bool = False):
        super().__init__(message)
        self.retryable = retryable
        self.status_code = 503 if retryable else 500
