import threading
from datetime import date, datetime

import pytest

from app.exceptions import (
    IllegalTransition,
    InvalidInterval,
    InvalidRequest,
    NotFound,
    PermissionDenied,
    RoomNotFound,
    RoomUnavailable,
)
from app.models.room import Room
from app.models.snack import Snack
from app.services.history import HistoryFilter, HistoryQuery
from app.services.pricing import RoomLine
from app.services.reservations import Contact, ReservationService
from app.services.status import StatusGuard, can_transition
from tests.fakes import InMemoryReservationRepository

ALICE = {"id": 1, "username": "alice", "role": "user"}
BOB = {"id": 2, "username": "bob", "role": "user"}
ADMIN = {"id": 3, "username": "root", "role": "admin"}
CONTACT = Contact(name="Alice", phone_number="08123456789", company="Acme", notes="projector please")


def at(hour, minute=0, day=15):
    return datetime(2030, 1, day, hour, minute)


@pytest.fixture
def repository():
    return InMemoryReservationRepository(
        rooms=[
            Room(id=1, name="Room A", room_type="medium", capacity=20, price_per_hour=100000.0),
            Room(id=2, name="Room B", room_type="small", capacity=6, price_per_hour=50000.0),
            Room(id=3, name="Hall", room_type="large", capacity=100, price_per_hour=300000.0),
        ],
        snacks=[Snack(id=7, name="Coffee break", unit="pax", price=5000.0, category="coffee break")],
    )


@pytest.fixture
def service(repository):
    return ReservationService(repository)


def book(service, owner, room_id, start, end, participant=2, **kwargs):
    return service.create(
        owner["id"], CONTACT, [RoomLine(room_id=room_id, start_time=start, end_time=end, participant=participant, **kwargs)]
    )


# Creation
def test_create_reservation_scenario(service):
    reservation = book(service, ALICE, 1, at(10), at(12), participant=10, snack_id=7, add_snack=True)
    assert reservation.status == "booked"
    assert reservation.subtotal_room == 200000.0
    assert reservation.subtotal_snack == 50000.0
    assert reservation.total == 250000.0
    assert reservation.add_snack is True
    assert reservation.total_participants == 10

    detail = reservation.details[0]
    assert detail.room_name == "Room A"
    assert detail.room_price == 100000.0
    assert detail.snack_name == "Coffee break"
    assert detail.snack_price == 5000.0
    assert detail.duration_minute == 120
    assert detail.total_room == 200000.0
    assert detail.total_snack == 50000.0


def test_multi_room_totals(service):
    reservation = service.create(
        ALICE["id"],
        CONTACT,
        [
            RoomLine(room_id=1, start_time=at(9), end_time=at(10, 30), participant=8, snack_id=7, add_snack=True),
            RoomLine(room_id=2, start_time=at(9), end_time=at(9, 40), participant=3),
        ],
    )
    assert len(reservation.details) == 2
    assert reservation.subtotal_room == sum(d.total_room for d in reservation.details)
    assert reservation.subtotal_snack == sum(d.total_snack for d in reservation.details)
    assert reservation.total == reservation.subtotal_room + reservation.subtotal_snack


def test_rooms_are_locked_in_id_order(service, repository):
    service.create(
        ALICE["id"],
        CONTACT,
        [
            RoomLine(room_id=3, start_time=at(9), end_time=at(10), participant=1),
            RoomLine(room_id=1, start_time=at(9), end_time=at(10), participant=1),
        ],
    )
    assert repository.locked_rooms == [[1, 3]]


def test_overlap_is_rejected_and_nothing_is_written(service, repository):
    book(service, ALICE, 1, at(10), at(11))
    with pytest.raises(RoomUnavailable) as excinfo:
        service.create(
            BOB["id"],
            CONTACT,
            [
                RoomLine(room_id=2, start_time=at(10), end_time=at(11), participant=1),
                RoomLine(room_id=1, start_time=at(10, 30), end_time=at(11, 30), participant=1),
            ],
        )
    assert "Room A" in excinfo.value.message
    assert len(repository.reservations) == 1
    assert not repository.has_overlap(2, at(10), at(11))


def test_touching_intervals_both_succeed(service):
    book(service, ALICE, 1, at(10), at(11))
    book(service, BOB, 1, at(11), at(12))


def test_overlap_fails_in_either_order(repository):
    first = ReservationService(repository)
    book(first, ALICE, 1, at(10, 30), at(11, 30))
    with pytest.raises(RoomUnavailable):
        book(first, BOB, 1, at(10), at(11))


def test_concurrent_overlapping_requests_one_wins(service):
    outcomes = []
    barrier = threading.Barrier(2)

    def attempt(owner, start, end):
        barrier.wait()
        try:
            book(service, owner, 1, start, end)
            outcomes.append("booked")
        except RoomUnavailable:
            outcomes.append("unavailable")

    threads = [
        threading.Thread(target=attempt, args=(ALICE, at(10), at(11))),
        threading.Thread(target=attempt, args=(BOB, at(10, 30), at(11, 30))),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert sorted(outcomes) == ["booked", "unavailable"]


def test_validation_happens_before_any_write(service, repository):
    with pytest.raises(InvalidInterval):
        book(service, ALICE, 1, at(11), at(10))
    with pytest.raises(InvalidRequest):
        service.create(ALICE["id"], CONTACT, [])
    with pytest.raises(RoomNotFound):
        book(service, ALICE, 42, at(10), at(11))
    assert repository.reservations == {}
    assert repository.locked_rooms == [[42]]


def test_calculate_does_not_persist(service, repository):
    quote = service.calculate([RoomLine(room_id=1, start_time=at(10), end_time=at(12), participant=10, snack_id=7, add_snack=True)])
    assert quote.total == 250000.0
    assert repository.reservations == {}


def test_calculate_and_create_agree(service):
    lines = [
        RoomLine(room_id=1, start_time=at(8, 7), end_time=at(9, 52), participant=7, snack_id=7, add_snack=True),
        RoomLine(room_id=3, start_time=at(13), end_time=at(13, 1), participant=50),
    ]
    quote = service.calculate(lines)
    reservation = service.create(ALICE["id"], CONTACT, lines)
    assert reservation.subtotal_room == quote.subtotal_room
    assert reservation.subtotal_snack == quote.subtotal_snack
    assert reservation.total == quote.total


def test_calculate_reports_conflicts(service):
    book(service, ALICE, 1, at(10), at(11))
    with pytest.raises(RoomUnavailable):
        service.calculate([RoomLine(room_id=1, start_time=at(10, 30), end_time=at(11, 30), participant=1)])


def test_snapshot_survives_catalog_changes(service, repository):
    reservation = book(service, ALICE, 1, at(10), at(12), participant=10, snack_id=7, add_snack=True)
    repository.rooms[1].price_per_hour = 1.0
    repository.rooms[1].name = "Renamed"
    repository.snacks[7].price = 1.0

    fetched = service.get(reservation.id, ALICE)
    detail = fetched.details[0]
    assert detail.room_name == "Room A"
    assert detail.room_price == 100000.0
    assert detail.snack_price == 5000.0
    assert fetched.total == 250000.0


def test_get_is_scoped_to_owner(service):
    reservation = book(service, ALICE, 1, at(10), at(11))
    assert service.get(reservation.id, ADMIN).id == reservation.id
    with pytest.raises(NotFound):
        service.get(reservation.id, BOB)
    with pytest.raises(NotFound):
        service.get(999, ADMIN)


# Status transitions
@pytest.mark.parametrize(
    "current, target, allowed",
    [
        ("booked", "booked", False),
        ("booked", "paid", True),
        ("booked", "cancelled", True),
        ("paid", "booked", False),
        ("paid", "paid", False),
        ("paid", "cancelled", True),
        ("cancelled", "booked", False),
        ("cancelled", "paid", False),
        ("cancelled", "cancelled", False),
    ],
)
def test_transition_table(service, repository, current, target, allowed):
    reservation = book(service, ALICE, 1, at(10), at(11))
    reservation.status = current
    guard = StatusGuard(repository)

    assert can_transition(current, target) is allowed
    if allowed:
        assert guard.transition(target, ALICE, reservation.id).status == target
    else:
        with pytest.raises(IllegalTransition):
            guard.transition(target, ALICE, reservation.id)
        assert repository.get_status(reservation.id) == current


def test_cancelled_is_terminal(service, repository):
    reservation = book(service, ALICE, 1, at(10), at(11))
    guard = StatusGuard(repository)
    guard.transition("cancelled", ALICE, reservation.id)
    with pytest.raises(IllegalTransition) as excinfo:
        guard.transition("paid", ALICE, reservation.id)
    assert excinfo.value.current == "cancelled"
    assert repository.get_status(reservation.id) == "cancelled"


def test_transition_defaults_to_latest_reservation(service, repository):
    older = book(service, ALICE, 1, at(10), at(11))
    newer = book(service, ALICE, 2, at(10), at(11))
    book(service, BOB, 3, at(10), at(11))
    guard = StatusGuard(repository)
    assert guard.transition("paid", ALICE).id == newer.id
    assert repository.get_status(older.id) == "booked"


def test_transition_errors(service, repository):
    reservation = book(service, ALICE, 1, at(10), at(11))
    guard = StatusGuard(repository)
    with pytest.raises(NotFound):
        guard.transition("paid", ALICE, 999)
    with pytest.raises(NotFound):
        guard.transition("paid", BOB)
    with pytest.raises(PermissionDenied):
        guard.transition("paid", BOB, reservation.id)
    with pytest.raises(InvalidRequest):
        guard.transition("refunded", ALICE, reservation.id)
    assert guard.transition("paid", ADMIN, reservation.id).status == "paid"


def test_concurrent_cancels_apply_once(service, repository):
    reservation = book(service, ALICE, 1, at(10), at(11))
    guard = StatusGuard(repository)
    outcomes = []
    barrier = threading.Barrier(2)

    def attempt(target):
        barrier.wait()
        try:
            guard.transition(target, ALICE, reservation.id)
            outcomes.append(target)
        except IllegalTransition:
            outcomes.append("rejected")

    threads = [threading.Thread(target=attempt, args=("cancelled",)) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert sorted(outcomes) == ["cancelled", "rejected"]


# History
def test_history_scopes_and_filters(service, repository):
    book(service, ALICE, 1, at(10), at(11))
    paid = book(service, ALICE, 2, at(10), at(11))
    book(service, BOB, 3, at(10), at(11))
    StatusGuard(repository).transition("paid", ALICE, paid.id)
    history = HistoryQuery(repository)

    mine = history.list(HistoryFilter(owner_id=BOB["id"]), ALICE)
    assert mine.total_data == 2
    assert all(r.user_id == ALICE["id"] for r in mine.items)

    everyone = history.list(HistoryFilter(), ADMIN)
    assert everyone.total_data == 3

    assert history.list(HistoryFilter(status="paid"), ALICE).total_data == 1
    small = history.list(HistoryFilter(room_type="small"), ADMIN)
    assert [r.id for r in small.items] == [paid.id]


def test_history_pagination(service, repository):
    for hour in range(8, 15):
        book(service, ALICE, 1, at(hour), at(hour, 30))
    history = HistoryQuery(repository)
    page = history.list(HistoryFilter(page=2, page_size=3), ALICE)
    assert page.total_data == 7
    assert page.total_page == 3
    assert len(page.items) == 3
    last = history.list(HistoryFilter(page=3, page_size=3), ALICE)
    assert len(last.items) == 1
    empty = history.list(HistoryFilter(page=5, page_size=3), ALICE)
    assert empty.items == []
    assert empty.total_page == 3


def test_history_date_range(service, repository):
    reservation = book(service, ALICE, 1, at(10), at(11))
    today = reservation.created_at.date()
    history = HistoryQuery(repository)
    assert history.list(HistoryFilter(start_date=today, end_date=today), ALICE).total_data == 1
    assert history.list(HistoryFilter(start_date=date(1999, 1, 1), end_date=date(1999, 1, 2)), ALICE).total_data == 0


@pytest.mark.parametrize(
    "filters",
    [
        HistoryFilter(room_type="huge"),
        HistoryFilter(status="pending"),
        HistoryFilter(page=0),
        HistoryFilter(page_size=0),
        HistoryFilter(page_size=1000),
        HistoryFilter(start_date=date(2030, 2, 1), end_date=date(2030, 1, 1)),
    ],
)
def test_history_rejects_bad_filters(repository, filters):
    with pytest.raises(InvalidRequest):
        HistoryQuery(repository).list(filters, ALICE)



def test_repositories_implement_the_protocol(repository):
    from app.repositories.base import CatalogRepository, ReservationRepository
    from app.repositories.sql import SqlReservationRepository

    assert isinstance(repository, ReservationRepository)
    assert isinstance(SqlReservationRepository(session=None), ReservationRepository)
    assert isinstance(repository, CatalogRepository)
