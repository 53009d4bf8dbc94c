from app.exceptions import InvalidInterval, InvalidRequest
from app.models.room import ROOM_TYPES
from app.models.reservation import STATUSES


def validate_interval(start_time, end_time):
    if start_time is None or end_time is None:
        raise InvalidInterval("Start time and end time are required")
    if end_time <= start_time:
        raise InvalidInterval("End time must be after start time")


def validate_room_type(value):
    if value and value not in ROOM_TYPES:
        raise InvalidRequest(f"Room type must be one of: {', '.join(ROOM_TYPES)}")
    return value


def validate_status(value):
    if value and value not in STATUSES:
        raise InvalidRequest(f"Status must be one of: {', '.join(STATUSES)}")
    return value


def validate_page(page, page_size, max_page_size):
    if page < 1:
        raise InvalidRequest("Page must be at least 1")
    if not 1 <= page_size <= max_page_size:
        raise InvalidRequest(f"Page size must be between 1 and {max_page_size}")


def validate_date_range(start_date, end_date):
    if start_date and end_date and start_date > end_date:
        raise InvalidRequest("Start date must not be after end date")
