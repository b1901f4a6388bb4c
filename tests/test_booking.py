import pytest

from database.models import GAME_DECIDE_ON_SITE, ReservationStatus
from services.booking import (
    GAME_DECIDE_LATER, GAME_SPECIFIC, BookingDraft, confirm_booking, normalize_phone, validate_draft
)
from services.errors import SlotUnavailableError, ValidationError

SLOT = "17:00 - 19:00"


def make_draft(**overrides):
    values = dict(date="2024-06-06", time=SLOT, people=3, game_type=GAME_DECIDE_LATER,
                  game_name="", phone="+5491155555555")
    values.update(overrides)
    return BookingDraft(**values)


@pytest.mark.parametrize("overrides, message", [
    ({"date": None, "time": None, "phone": ""}, "Seleccioná una fecha"),
    ({"time": None, "phone": ""}, "Seleccioná un horario"),
    ({"game_type": GAME_SPECIFIC, "game_name": "  ", "phone": ""}, "Ingresá el nombre del juego"),
    ({"phone": "abc"}, "Ingresá un número de teléfono válido"),
    ({"people": 7}, "La cantidad de personas debe estar entre 1 y 6"),
])
def test_validation_order(overrides, message):
    with pytest.raises(ValidationError, match=message):
        validate_draft(make_draft(**overrides))


def test_game_label():
    assert make_draft().game == GAME_DECIDE_ON_SITE
    assert make_draft(game_type=GAME_SPECIFIC, game_name=" Azul ").game == "Azul"


def test_normalize_phone():
    assert normalize_phone("+54 9 11 5555-5555") == "+5491155555555"
    assert normalize_phone("011 4444 4444") == "01144444444"


def test_confirm_booking_snapshots_price(services):
    services.venue_config.set_price(4000)

    reservation = confirm_booking(
        make_draft(), 42, "Ana", services.reservations, services.venue_config, username="ana"
    )
    services.venue_config.set_price(9000)

    stored = services.reservations.get_reservation_by_id(reservation.id)
    assert stored.status == ReservationStatus.PENDING_PAYMENT
    assert stored.price_per_person == 4000
    assert stored.total == 12000
    assert stored.game == GAME_DECIDE_ON_SITE
    assert stored.username == "ana"
    assert stored.created_at


def test_confirm_booking_rejects_full_slot(services, make_reservation):
    for _ in range(4):
        make_reservation()

    with pytest.raises(SlotUnavailableError):
        confirm_booking(make_draft(), 42, "Ana", services.reservations, services.venue_config)
    assert len(services.reservations.get_reservations()) == 4


def test_rejected_reservation_frees_the_table(services, make_reservation):
    reservations = [make_reservation() for _ in range(4)]
    services.reservations.set_status(reservations[0].id, ReservationStatus.REJECTED)

    reservation = confirm_booking(make_draft(), 42, "Ana", services.reservations, services.venue_config)

    assert reservation.id


def test_invalid_draft_writes_nothing(services):
    with pytest.raises(ValidationError):
        confirm_booking(make_draft(phone=""), 42, "Ana", services.reservations, services.venue_config)
    assert services.reservations.get_reservations() == []
