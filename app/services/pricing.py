"""
Price calculation shared by the reservation preview and the booking itself.

Room time is charged per whole minute at the hourly rate; snacks are
charged per participant.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from app.exceptions import CapacityExceeded, InvalidRequest, RoomNotFound, SnackNotFound
from app.models.room import Room
from app.models.snack import Snack
from app.repositories.base import CatalogRepository
from app.utils.validation_helpers import validate_interval


@dataclass
class RoomLine:
    room_id: int
    start_time: datetime
    end_time: datetime
    participant: int
    snack_id: Optional[int] = None
    add_snack: bool = False


@dataclass
class LineQuote:
    room_id: int
    room_name: str
    room_type: str
    room_price: float
    capacity: int
    image_url: Optional[str]
    snack_id: Optional[int]
    snack_name: Optional[str]
    snack_unit: Optional[str]
    snack_price: Optional[float]
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    participant: int
    room_cost: float
    snack_cost: float

    @property
    def total(self) -> float:
        return self.room_cost + self.snack_cost


@dataclass
class Quote:
    lines: List[LineQuote] = field(default_factory=list)
    subtotal_room: float = 0.0
    subtotal_snack: float = 0.0

    @property
    def total(self) -> float:
        return self.subtotal_room + self.subtotal_snack

    @property
    def total_participants(self) -> int:
        return sum(line.participant for line in self.lines)


def duration_minutes(start_time: datetime, end_time: datetime) -> int:
    """Whole minutes between start and end, truncated."""
    validate_interval(start_time, end_time)
    return (end_time - start_time) // timedelta(minutes=1)


def price_line(room: Room, snack: Optional[Snack], line: RoomLine) -> LineQuote:
    minutes = duration_minutes(line.start_time, line.end_time)
    if line.participant is None or line.participant < 1:
        raise InvalidRequest("Participant count must be at least 1")
    if line.participant > room.capacity:
        raise CapacityExceeded(
            f"Room {room.name} holds {room.capacity} people, {line.participant} requested"
        )

    room_cost = room.price_per_hour * (minutes / 60.0)
    snack_cost = snack.price * line.participant if snack is not None else 0.0

    return LineQuote(
        room_id=room.id,
        room_name=room.name,
        room_type=room.room_type,
        room_price=room.price_per_hour,
        capacity=room.capacity,
        image_url=room.image_url,
        snack_id=snack.id if snack is not None else None,
        snack_name=snack.name if snack is not None else None,
        snack_unit=snack.unit if snack is not None else None,
        snack_price=snack.price if snack is not None else None,
        start_time=line.start_time,
        end_time=line.end_time,
        duration_minutes=minutes,
        participant=line.participant,
        room_cost=room_cost,
        snack_cost=snack_cost,
    )


def summarize(lines: List[LineQuote]) -> Quote:
    return Quote(
        lines=list(lines),
        subtotal_room=sum((line.room_cost for line in lines), 0.0),
        subtotal_snack=sum((line.snack_cost for line in lines), 0.0),
    )


class PricingCalculator:
    """Resolves rooms and snacks through the repository and prices each line."""

    def __init__(self, repository: CatalogRepository):
        self.repository = repository

    def quote(self, lines: List[RoomLine]) -> Quote:
        priced = []
        for line in lines:
            room = self.repository.get_room(line.room_id)
            if room is None:
                raise RoomNotFound(line.room_id)

            snack = None
            if line.add_snack:
                if line.snack_id is None:
                    raise SnackNotFound(None)
                snack = self.repository.get_snack(line.snack_id)
                if snack is None:
                    raise SnackNotFound(line.snack_id)

            priced.append(price_line(room, snack, line))
        return summarize(priced)
