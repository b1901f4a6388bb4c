from database.models import ReservationStatus, TimeSlot
from database.store import StoreError
from services.availability import (
    SlotAvailability, calculate_slot_availability, check_slot_availability, slots_availability
)

SLOT = "17:00 - 19:00"


def test_free_slot_has_all_tables(services):
    availability = check_slot_availability(services.reservations, "2024-06-06", SLOT)

    assert availability == SlotAvailability(available=True, spots_left=4, total=4)


def test_pending_and_confirmed_occupy_rejected_does_not(services, make_reservation):
    make_reservation(status=ReservationStatus.PENDING_PAYMENT)
    make_reservation(status=ReservationStatus.CONFIRMED)
    make_reservation(status=ReservationStatus.REJECTED)
    make_reservation(time="19:00 - 21:00")
    make_reservation(date="2024-06-07")

    availability = check_slot_availability(services.reservations, "2024-06-06", SLOT)

    assert availability.spots_left == 2
    assert availability.available


def test_slot_full_at_four_reservations(services, make_reservation):
    for _ in range(4):
        make_reservation()

    availability = check_slot_availability(services.reservations, "2024-06-06", SLOT)

    assert not availability.available
    assert availability.spots_left == 0


def test_spots_left_never_negative():
    assert SlotAvailability.from_occupied(6).spots_left == 0


def test_cache_and_query_paths_agree(services, make_reservation):
    make_reservation()
    make_reservation(status=ReservationStatus.CONFIRMED)
    make_reservation(status=ReservationStatus.REJECTED)
    make_reservation(date="2024-06-07")

    reservations = services.reservations.get_reservations()
    for date in ("2024-06-06", "2024-06-07", "2024-06-08"):
        assert (calculate_slot_availability(reservations, date, SLOT)
                == check_slot_availability(services.reservations, date, SLOT))


def test_query_path_accepts_timestamps(services, make_reservation):
    make_reservation()

    availability = check_slot_availability(services.reservations, "2024-06-06T22:00:00-03:00", SLOT)

    assert availability.spots_left == 3


class _BrokenRepository:
    def get_slot_reservations(self, date, time):
        raise StoreError("database is locked")


def test_query_failure_reports_slot_unavailable():
    availability = check_slot_availability(_BrokenRepository(), "2024-06-06", SLOT)

    assert availability == SlotAvailability(available=False, spots_left=0, total=4)


def test_slots_availability_skips_inactive_slots(make_reservation, services):
    make_reservation()
    time_slots = [
        TimeSlot(id="a", label=SLOT, active=True, order=1),
        TimeSlot(id="b", label="19:00 - 21:00", active=False, order=2),
    ]

    result = slots_availability(services.reservations.get_reservations(), time_slots, "2024-06-06")

    assert [(slot.id, availability.spots_left) for slot, availability in result] == [("a", 3)]


def test_scenario_three_occupying_one_rejected(services, make_reservation):
    for _ in range(3):
        make_reservation(date="2024-06-01")
    make_reservation(date="2024-06-01", status=ReservationStatus.REJECTED)

    assert check_slot_availability(services.reservations, "2024-06-01", SLOT) == SlotAvailability(True, 1, 4)

    make_reservation(date="2024-06-01")

    assert check_slot_availability(services.reservations, "2024-06-01", SLOT) == SlotAvailability(False, 0, 4)


def test_rejecting_frees_exactly_one_table(services, make_reservation):
    first = make_reservation()
    make_reservation()

    services.reservations.set_status(first.id, ReservationStatus.REJECTED)
    assert check_slot_availability(services.reservations, "2024-06-06", SLOT).spots_left == 3

    services.reservations.set_status(first.id, ReservationStatus.REJECTED)
    assert check_slot_availability(services.reservations, "2024-06-06", SLOT).spots_left == 3
