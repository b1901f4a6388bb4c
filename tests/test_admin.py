import pytest

from database.models import Reservation, ReservationStatus, TimeSlot
from services.admin import (
    build_free_table, build_reservation_changes, filter_reservations, paginate, parse_command_args,
    validate_alias, validate_price, validate_slot_label
)
from services.errors import ValidationError

TIME_SLOTS = [TimeSlot(id="a", label="17:00 - 19:00"), TimeSlot(id="b", label="19:00 - 21:00")]


def reservation(user_name="Ana", game="Catan", date="2024-06-06", status=ReservationStatus.PENDING_PAYMENT):
    return Reservation(
        id=None, user_id=1, user_name=user_name, phone="1", date=date, time="17:00 - 19:00",
        people=2, game=game, price_per_person=5000, total=10000, status=status
    )


def test_filter_by_text_dates_and_status():
    reservations = [
        reservation("Ana", "Catan", "2024-06-06"),
        reservation("Bruno", "Azul", "2024-06-07", ReservationStatus.CONFIRMED),
        reservation("Carla", "Catan Junior", "2024-06-09", "pending"),
        reservation("Diego", "Dixit", "2024-06-13", ReservationStatus.REJECTED),
    ]

    assert [r.user_name for r in filter_reservations(reservations, text="CATAN")] == ["Ana", "Carla"]
    assert [r.user_name for r in filter_reservations(reservations, text="bru")] == ["Bruno"]
    assert [r.user_name for r in filter_reservations(
        reservations, date_from="2024-06-07", date_to="2024-06-09")] == ["Bruno", "Carla"]
    assert [r.user_name for r in filter_reservations(reservations, status="pending")] == ["Ana", "Carla"]
    assert [r.user_name for r in filter_reservations(
        reservations, status=ReservationStatus.REJECTED)] == ["Diego"]


def test_paginate_clamps_page():
    items = list(range(23))

    assert paginate(items, 1).items == list(range(10))
    last = paginate(items, 99)
    assert (last.page, last.total_pages, last.items) == (3, 3, [20, 21, 22])
    assert paginate(items, 0).page == 1
    assert paginate([], 5).total_pages == 1


def test_parse_command_args():
    positional, options = parse_command_args('/editar abc juego="Catan Junior" Personas=3')

    assert positional == ["abc"]
    assert options == {"juego": "Catan Junior", "personas": "3"}

    with pytest.raises(ValidationError):
        parse_command_args('/editar abc juego="Catan')


def test_reservation_changes():
    changes = build_reservation_changes(
        {"fecha": "2024-06-07", "horario": "19:00 - 21:00", "personas": "4", "estado": "confirmed"},
        TIME_SLOTS
    )

    assert changes == {"date": "2024-06-07", "time": "19:00 - 21:00", "people": 4, "status": "confirmed"}


@pytest.mark.parametrize("options", [
    {},
    {"mesa": "2"},
    {"cliente": ""},
    {"personas": "7"},
    {"personas": "dos"},
    {"estado": "cancelled"},
    {"horario": "09:00 - 11:00"},
    {"fecha": "mañana"},
])
def test_invalid_reservation_changes(options):
    with pytest.raises(ValidationError):
        build_reservation_changes(options, TIME_SLOTS)


def test_edit_reservation_through_repository(services, make_reservation):
    created = make_reservation()
    changes = build_reservation_changes({"cliente": "Ana María", "fecha": "2024-06-07"}, TIME_SLOTS)

    assert services.reservations.update_reservation(created.id, changes)
    stored = services.reservations.get_reservation_by_id(created.id)
    assert (stored.user_name, stored.date) == ("Ana María", "2024-06-07")
    assert not services.reservations.update_reservation("missing", changes)


def test_bulk_delete_counts_only_existing(services, make_reservation):
    ids = [make_reservation().id for _ in range(3)]

    assert services.reservations.delete_reservations(ids[:2] + ["missing"]) == 2
    assert [r.id for r in services.reservations.get_reservations()] == [ids[2]]


def test_price_alias_and_slot_validation():
    assert validate_price("6500") == 6500
    assert validate_alias("  mesas.juegos ") == "mesas.juegos"
    assert validate_slot_label(" 17:00 - 19:00 ") == "17:00 - 19:00"

    for value in ("0", "-5", "abc"):
        with pytest.raises(ValidationError):
            validate_price(value)
    with pytest.raises(ValidationError):
        validate_alias("   ")
    with pytest.raises(ValidationError):
        validate_slot_label("tarde")


def test_build_free_table():
    table = build_free_table({"numero": "3", "cupos": "5", "juego": "Azul", "rango": "19:00 - 23:00"})

    assert (table.number, table.capacity, table.game, table.time_range, table.date) == (3, 5, "Azul", "19:00 - 23:00", None)

    with pytest.raises(ValidationError):
        build_free_table({"numero": "3", "juego": "Azul"})
    with pytest.raises(ValidationError):
        build_free_table({"numero": "3", "cupos": "0", "juego": "Azul"})


def test_filter_tolerates_incomplete_documents(services):
    services.store.create("reservations", {
        "userName": None, "time": "17:00 - 19:00",
        "status": "pending_payment", "createdAt": "2024-06-01T10:00:00"
    })
    reservations = services.reservations.get_reservations()

    assert reservations[0].user_name == ""
    assert reservations[0].date is None
    assert filter_reservations(reservations, text="ana", date_from="2024-06-01") == []
    assert filter_reservations(reservations, date_to="2024-06-30") == []
    assert len(filter_reservations(reservations, status="pending")) == 1
